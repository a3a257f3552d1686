"""
Voting session context.

Holds everything one authenticated wallet session knows: the voter's
authoritative totals, the playlist, per-submission TDH votes, per-artist REP
ratings, the submission in focus, the credit ledger and the staleness guard.
Created on successful authentication, discarded on disconnect.
"""

import logging
from typing import Dict, List, Optional, Tuple

from config import Settings, get_settings
from models.domain.submission import Submission, top_submissions
from models.domain.voter import Voter

from .guard import StalenessGuard
from .ledger import CreditLedger
from .remote import UserData
from .types import AllocationRequest, PoolKind


logger = logging.getLogger(__name__)

RepKey = Tuple[str, str]    # (artist identity, category)


class VotingSession:
    """Explicit session state shared by the controller and the UI layer."""

    def __init__(self, settings: Optional[Settings] = None, guard: Optional[StalenessGuard] = None):
        self.settings = settings or get_settings()
        self.ledger = CreditLedger()
        self.guard = guard or StalenessGuard(
            credit_source=lambda: self.ledger.tdh.available_credit,
            refresh_interval_ms=self.settings.refresh_interval_ms,
        )
        self.voter: Optional[Voter] = None
        self.submissions: List[Submission] = []
        self.votes_map: Dict[str, int] = {}
        self.rep_ratings: Dict[RepKey, int] = {}
        self.current: Optional[Submission] = None
        self.authenticated = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, wallet: str):
        """Called once the wallet has authenticated."""
        self.end()
        self.voter = Voter(wallet=wallet)
        self.authenticated = True
        logger.info(f"Session started for {wallet}")

    def end(self):
        """Discard all session state (disconnect or account switch)."""
        self.ledger.reset()
        self.guard.reset()
        self.voter = None
        self.submissions = []
        self.votes_map = {}
        self.rep_ratings = {}
        self.current = None
        self.authenticated = False

    # =========================================================================
    # Playlist and focus
    # =========================================================================

    def set_submissions(self, submissions: List[Submission]) -> List[Submission]:
        """Keep the top of the playlist by projected rating."""
        self.submissions = top_submissions(submissions, self.settings.playlist_size)
        return self.submissions

    def find_submission(self, submission_id: str) -> Optional[Submission]:
        for submission in self.submissions:
            if submission.submission_id == submission_id:
                return submission
        return None

    def focus(self, submission: Submission) -> int:
        """
        Move the focus to a submission.

        Issues a new generation so that in-flight responses for the previous
        focus are discarded, and points both pools at the new item.

        Returns:
            The generation issued for this focus
        """
        self.current = submission
        generation = self.guard.issue_generation()

        self.ledger.set_authoritative(
            PoolKind.TDH,
            self.votes_map.get(submission.submission_id, 0),
            self.ledger.tdh.available_credit,
        )
        key = self.rep_key(submission)
        self.ledger.set_authoritative(
            PoolKind.REP,
            self.rep_ratings.get(key, 0) if key else 0,
            self.ledger.rep.available_credit,
        )
        logger.debug(f"Focused {submission.submission_id} (generation {generation})")
        return generation

    def rep_key(self, submission: Optional[Submission] = None) -> Optional[RepKey]:
        submission = submission or self.current
        if submission is None or not submission.artist_identity:
            return None
        return (submission.artist_identity, submission.category(self.settings.max_category_length))

    def request(self, pool: PoolKind, amount: int) -> AllocationRequest:
        """Tag an allocation for the current focus and generation."""
        return AllocationRequest(
            submission_id=self.current.submission_id if self.current else "",
            pool=pool,
            requested_amount=amount,
            generation=self.guard.generation,
        )

    # =========================================================================
    # Authoritative updates
    # =========================================================================

    def apply_user_data(self, data: UserData):
        """
        Overwrite TDH state with a refresh result (server wins).

        The snapshot is pool-wide, so it applies regardless of which
        submission is in focus.
        """
        rep_credit = self.voter.rep_credit if self.voter else 0
        wallet = self.voter.wallet if self.voter else data.voter.wallet
        self.voter = data.voter
        self.voter.wallet = wallet
        self.voter.rep_credit = rep_credit
        self.votes_map = dict(data.user_votes_map)

        current_total = self.votes_map.get(self.current.submission_id, 0) if self.current else 0
        self.ledger.set_authoritative(PoolKind.TDH, current_total, data.voter.available_tdh)

    def apply_refresh_failure(self):
        """Treat unknown availability as zero when configured to."""
        if not self.settings.zero_credit_on_refresh_failure:
            return
        pool = self.ledger.tdh
        self.ledger.set_authoritative(PoolKind.TDH, pool.total_assigned, 0)
        if self.voter:
            self.voter = self.voter.without_credit()

    def apply_rep(self, key: RepKey, rating: int, rep_credit: int, update_focus: bool = True):
        """Record a REP rating and the pool-wide REP credit."""
        self.rep_ratings[key] = rating
        if self.voter:
            self.voter.rep_credit = rep_credit
        if update_focus and self.rep_key() == key:
            self.ledger.set_authoritative(PoolKind.REP, rating, rep_credit)
        else:
            rep = self.ledger.rep
            self.ledger.set_authoritative(PoolKind.REP, rep.total_assigned, rep_credit)

    def record_vote(self, submission_id: str, total: int):
        self.votes_map[submission_id] = total
