"""
Credit Ledger
=============

In-memory view of the TDH and REP pools for the submission in focus.

Only set_authoritative, apply_optimistic and rollback change committed
values; stage_assignment only moves the pending (slider) value. The two
pools are independent, so a TDH mutation and a REP mutation can interleave
without locking.
"""

import logging
from typing import Dict

from .types import CreditPool, PoolKind, PoolSnapshot


logger = logging.getLogger(__name__)


def _whole(amount) -> int:
    return max(0, int(amount))


class CreditLedger:
    """One CreditPool per PoolKind."""

    def __init__(self):
        self._pools: Dict[PoolKind, CreditPool] = {
            kind: CreditPool(kind=kind) for kind in PoolKind
        }

    def pool(self, kind: PoolKind) -> CreditPool:
        return self._pools[kind]

    @property
    def tdh(self) -> CreditPool:
        return self._pools[PoolKind.TDH]

    @property
    def rep(self) -> CreditPool:
        return self._pools[PoolKind.REP]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def set_authoritative(self, kind: PoolKind, total_assigned: int, available_credit: int) -> CreditPool:
        """
        Overwrite the pool with server-confirmed values.

        Also resets the pending assignment to the confirmed total.
        """
        pool = self._pools[kind]
        pool.total_assigned = _whole(total_assigned)
        pool.available_credit = _whole(available_credit)
        pool.pending_assignment = pool.total_assigned
        logger.debug(
            f"[{kind.value}] authoritative total={pool.total_assigned} "
            f"available={pool.available_credit}"
        )
        return pool

    def stage_assignment(self, kind: PoolKind, amount: int) -> int:
        """
        Stage a slider value, clamped to [0, total + available].

        Returns:
            The staged amount
        """
        pool = self._pools[kind]
        pool.pending_assignment = min(_whole(amount), pool.ceiling)
        return pool.pending_assignment

    def apply_optimistic(self, kind: PoolKind, new_total: int) -> PoolSnapshot:
        """
        Show new_total as committed before the server confirms it.

        Args:
            kind: Pool to update
            new_total: Proposed total for the submission in focus

        Returns:
            Snapshot of the pre-update state for rollback
        """
        pool = self._pools[kind]
        snapshot = PoolSnapshot(
            pool=kind,
            total_assigned=pool.total_assigned,
            available_credit=pool.available_credit,
        )
        new_total = _whole(new_total)
        delta = new_total - pool.total_assigned
        pool.total_assigned = new_total
        pool.available_credit = max(0, pool.available_credit - delta)
        pool.pending_assignment = new_total
        logger.debug(
            f"[{kind.value}] optimistic total={new_total} (delta={delta:+d}) "
            f"available={pool.available_credit}"
        )
        return snapshot

    def rollback(self, kind: PoolKind, snapshot: PoolSnapshot) -> CreditPool:
        """Restore total and available from a snapshot taken by apply_optimistic."""
        if snapshot.pool is not kind:
            raise ValueError(f"Snapshot of {snapshot.pool.value} cannot roll back {kind.value}")
        pool = self._pools[kind]
        pool.total_assigned = snapshot.total_assigned
        pool.available_credit = snapshot.available_credit
        pool.pending_assignment = min(pool.pending_assignment, pool.ceiling)
        logger.debug(
            f"[{kind.value}] rolled back to total={pool.total_assigned} "
            f"available={pool.available_credit}"
        )
        return pool

    def reset(self):
        """Zero both pools (disconnect)."""
        for kind in PoolKind:
            self._pools[kind] = CreditPool(kind=kind)
