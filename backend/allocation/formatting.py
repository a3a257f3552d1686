"""
Display helpers for credit amounts.
"""

import math
import re

_TRAILING_ZEROS = re.compile(r'\.0+$')


def to_precision(value: float, digits: int = 3) -> str:
    """
    Format with `digits` significant digits.

    Mirrors the browser's Number.prototype.toPrecision: fixed notation
    unless the exponent is below -6 or at least `digits`.
    """
    if value == 0:
        return "0" if digits == 1 else "0." + "0" * (digits - 1)
    mantissa, exponent = f"{value:.{digits - 1}e}".split("e")
    exponent = int(exponent)
    if exponent < -6 or exponent >= digits:
        sign = "+" if exponent >= 0 else "-"
        return f"{mantissa}e{sign}{abs(exponent)}"
    decimals = max(0, digits - 1 - exponent)
    return f"{value:.{decimals}f}"


def format_compact_tdh(amount: float) -> str:
    """Compact TDH label: 3 significant digits with K/M suffixes."""
    if not math.isfinite(amount) or amount == 0:
        return "0"

    sign = "-" if amount < 0 else ""
    magnitude = abs(amount)

    if magnitude >= 1_000_000:
        return f"{sign}{to_precision(magnitude / 1_000_000)}M"
    if magnitude >= 1_000:
        return f"{sign}{to_precision(magnitude / 1_000)}K"
    return f"{sign}{_TRAILING_ZEROS.sub('', to_precision(magnitude))}"


def format_votes(votes: float) -> str:
    """Playlist vote label: rounded half-up, one decimal with K/M suffixes."""
    if not math.isfinite(votes):
        return "0"
    votes = math.floor(votes + 0.5)
    if votes >= 1_000_000:
        return f"{votes / 1_000_000:.1f}M"
    if votes >= 1_000:
        return f"{votes / 1_000:.1f}K"
    return str(int(votes))
