"""
Pattern Normalizer
==================

Snaps allocation amounts onto a cosmetic numeric sequence ending in a fixed
suffix (…067), so large allocations read consistently across the UI.

Pure functions only: no logging, no state.

Usage:
    from allocation.normalizer import normalize, REP_PATTERN

    normalize(10050, 20000)                 # 10067
    normalize(1234, 5000, REP_PATTERN)      # 1267
"""

import math
from typing import Optional, Union

from .types import PatternRule, PoolKind


Number = Union[int, float]

TDH_PATTERN = PatternRule(threshold=10_000, block_size=1_000, suffix=67)
REP_PATTERN = PatternRule(threshold=1_000, block_size=100, suffix=67)

_RULES = {
    PoolKind.TDH: TDH_PATTERN,
    PoolKind.REP: REP_PATTERN,
}

DEFAULT_BOOST_FRACTION = 0.1


def rule_for(pool: PoolKind) -> PatternRule:
    """Pattern rule for a pool."""
    return _RULES[pool]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _in_range(candidate: int, rule: PatternRule, ceiling: int) -> bool:
    return rule.threshold <= candidate <= ceiling


def normalize(requested: Number, ceiling: Number, rule: PatternRule = TDH_PATTERN) -> int:
    """
    Map a requested amount onto the pool's pattern, never exceeding ceiling.

    Args:
        requested: Amount asked for (may be negative or above ceiling)
        ceiling: Largest allowed result (>= 0)
        rule: Pattern rule of the pool

    Returns:
        Snapped amount in [0, ceiling]
    """
    if not math.isfinite(requested) or not math.isfinite(ceiling):
        return 0

    max_int = max(0, int(math.floor(ceiling)))
    if max_int == 0:
        return 0

    value = min(max(0, _round_half_up(requested)), max_int)

    # Patterning only applies to large allocations
    if max_int < rule.threshold:
        return value

    # Let the user land exactly on max
    if max_int - value <= rule.ceiling_slack:
        return max_int

    if value < rule.threshold:
        return value

    down = ((value - rule.suffix) // rule.block_size) * rule.block_size + rule.suffix
    up = down if down == value else down + rule.block_size

    down_ok = _in_range(down, rule, max_int)
    up_ok = _in_range(up, rule, max_int)

    if not down_ok and not up_ok:
        return value
    if not down_ok:
        return up
    if not up_ok:
        return down

    # Equidistant resolves to the lower candidate
    return up if (up - value) < (value - down) else down


def calculate_boost(available: Number, fraction: Optional[float] = None) -> int:
    """
    Amount a one-click boost adds: a fraction of available credit, at least 1.

    Returns 0 when less than one unit is available.
    """
    if fraction is None:
        fraction = DEFAULT_BOOST_FRACTION
    if not math.isfinite(available) or available < 1:
        return 0
    whole = int(math.floor(available))
    amount = max(1, int(math.floor(available * fraction)))
    return min(amount, whole)
