"""
Voter domain model
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Voter:
    """
    Voter domain model - the authenticated wallet's server-side totals

    Source: remote voting API (user-data refresh, rep credit lookup)

    Note: Values here are authoritative snapshots. The allocation engine
    keeps its optimistic view in the credit ledger, never here.
    """
    wallet: str

    # TDH (primary voting credit)
    tdh: int = 0
    available_tdh: int = 0
    total_tdh_voted: int = 0
    total_votes: int = 0

    # REP (reputation credit)
    rep_credit: int = 0

    # Profile
    handle: Optional[str] = None

    # Additional metadata
    metadata: dict = field(default_factory=dict)

    @property
    def has_credits(self) -> bool:
        """Check if voter has any TDH left to allocate"""
        return self.available_tdh > 0

    @property
    def has_rep_credit(self) -> bool:
        """Check if voter has any REP left to assign"""
        return self.rep_credit > 0

    def without_credit(self) -> 'Voter':
        """Copy with zero available TDH, used when availability is unknown"""
        return Voter(
            wallet=self.wallet,
            tdh=self.tdh,
            available_tdh=0,
            total_tdh_voted=self.total_tdh_voted,
            total_votes=self.total_votes,
            rep_credit=self.rep_credit,
            handle=self.handle,
            metadata=dict(self.metadata),
        )
