"""
Core Types for the Allocation Engine
====================================

This module contains pure data structures with no algorithms.
All computation is in separate modules.

Pools:
  TDH: primary voting credit, assigned per submission
  REP: reputation credit, assigned per artist and category
"""

from dataclasses import dataclass
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class PoolKind(Enum):
    """The two independent credit pools."""
    TDH = "tdh"     # Primary voting credit
    REP = "rep"     # Reputation credit


class MutationKind(Enum):
    """User-initiated changes that go through the mutation controller."""
    BOOST = "boost"             # One-click fraction of available TDH
    VOTE = "vote"               # Commit the staged TDH slider value
    ASSIGN_REP = "assign_rep"   # Commit the staged REP slider value


class MutationState(Enum):
    """Per-mutation state machine."""
    IDLE = "idle"
    COMPUTING = "computing"
    OPTIMISTICALLY_APPLIED = "optimistically_applied"
    COMMITTED = "committed"
    ROLLING_BACK = "rolling_back"
    RE_AUTHENTICATING = "re_authenticating"
    RETRYING = "retrying"
    FAILED = "failed"


# =============================================================================
# PATTERN RULES
# =============================================================================

@dataclass(frozen=True)
class PatternRule:
    """
    Snapping rule for one pool.

    Amounts at or above `threshold` snap to `block_size * k + suffix`.
    Amounts within `ceiling_slack` of the ceiling snap to the ceiling.
    """
    threshold: int
    block_size: int
    suffix: int
    ceiling_slack: int = 2


# =============================================================================
# LEDGER STATE
# =============================================================================

@dataclass
class CreditPool:
    """
    Client-side view of one credit pool.

    total_assigned is scoped to the submission in focus;
    available_credit is pool-wide.
    """
    kind: PoolKind
    total_assigned: int = 0
    available_credit: int = 0
    pending_assignment: int = 0

    @property
    def ceiling(self) -> int:
        """Largest total the user may assign to the item in focus."""
        return self.total_assigned + self.available_credit


@dataclass(frozen=True)
class PoolSnapshot:
    """Pre-mutation state returned by apply_optimistic, used for rollback."""
    pool: PoolKind
    total_assigned: int
    available_credit: int


@dataclass(frozen=True)
class AllocationRequest:
    """
    One logical allocation attempt.

    `generation` ties the request to the focus it was issued under;
    responses are applied only while it is still current.
    """
    submission_id: str
    pool: PoolKind
    requested_amount: int
    generation: int


@dataclass
class RefreshThrottleState:
    """Owned and mutated by the staleness guard only."""
    last_refresh_ms: float = 0.0
    in_flight: bool = False
    has_refreshed: bool = False


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a committed mutation."""
    kind: MutationKind
    request: AllocationRequest
    optimistic_total: int
    total_assigned: int
    available_credit: int
    retried: bool = False
    applied: bool = True    # False when the focus moved before the server answered
