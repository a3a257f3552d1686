"""
Optimistic Mutation Controller
==============================

Orchestrates every user-initiated change to the credit pools:

    COMPUTING → OPTIMISTICALLY_APPLIED → COMMITTED
                                       → RE_AUTHENTICATING → RETRYING → COMMITTED
                                       → ROLLING_BACK → FAILED

1. Compute the target from the ledger (validation errors stop here, ledger
   untouched)
2. Apply the target optimistically
3. Issue the remote write through the re-auth retry policy
4. On success, reconcile with one authoritative read (server wins)
5. On failure, roll back to the pre-mutation snapshot

Mutations of the same kind are serialized (the triggering control is
disabled while one is in flight). Different kinds may interleave: each
targets its own pool.

Usage:
    controller = MutationController(session, SessionClient(), signer)
    await controller.connect(wallet)

    result = await controller.boost()
    controller.stage(PoolKind.REP, 1234)
    await controller.assign_rep()
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Set

from config import Settings
from models.domain.submission import Submission

from .errors import (
    AllocationError,
    InsufficientCreditError,
    InvalidAmountError,
    MutationInProgressError,
    NoSubmissionError,
    RemoteError,
    SessionExpiredError,
    ValidationError,
)
from .ledger import CreditLedger
from .guard import StalenessGuard
from .normalizer import calculate_boost, normalize, rule_for
from .remote import RemoteSessionClient, SignMessage
from .retry import ReauthRetryPolicy
from .session import VotingSession
from .types import (
    AllocationRequest,
    MutationKind,
    MutationResult,
    MutationState,
    PoolKind,
    PoolSnapshot,
)


logger = logging.getLogger(__name__)

POOL_BY_KIND = {
    MutationKind.BOOST: PoolKind.TDH,
    MutationKind.VOTE: PoolKind.TDH,
    MutationKind.ASSIGN_REP: PoolKind.REP,
}


class MutationController:
    """Drives boost / vote / assign-rep against one voting session."""

    def __init__(
        self,
        session: VotingSession,
        remote: RemoteSessionClient,
        signer: SignMessage,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.remote = remote
        self.signer = signer
        self.settings = settings or session.settings
        self._states: Dict[MutationKind, MutationState] = {
            kind: MutationState.IDLE for kind in MutationKind
        }
        self._in_flight: Set[MutationKind] = set()
        self._epoch = 0
        self._refresh_requested = False

    @property
    def ledger(self) -> CreditLedger:
        return self.session.ledger

    @property
    def guard(self) -> StalenessGuard:
        return self.session.guard

    # =========================================================================
    # State machine
    # =========================================================================

    def state(self, kind: MutationKind) -> MutationState:
        """Latest state of a mutation kind."""
        return self._states[kind]

    def is_busy(self, kind: MutationKind) -> bool:
        """True while the triggering control should stay disabled."""
        return kind in self._in_flight

    def _transition(self, kind: MutationKind, state: MutationState):
        previous = self._states[kind]
        self._states[kind] = state
        logger.debug(f"[{kind.value}] {previous.value} -> {state.value}")

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    async def connect(self, wallet: str) -> List[Submission]:
        """
        Authenticate, load authoritative data and focus the first submission.

        Returns:
            The playlist (top submissions)

        Raises:
            AuthError if signing or login fails
        """
        self.remote.set_wallet_address(wallet)
        await self.remote.authenticate(self.signer)
        self.session.start(wallet)
        self._epoch += 1
        logger.info(f"🔐 Authenticated {wallet}")

        await self.refresh(force=True)

        playlist = self.session.set_submissions(await self.remote.get_submissions())
        logger.info(f"Loaded {len(playlist)} submissions")
        if playlist:
            await self.focus(playlist[0].submission_id)
        return playlist

    def disconnect(self):
        """Discard session state; in-flight responses become stale."""
        self.session.end()
        self._epoch += 1
        self._refresh_requested = False
        for kind in MutationKind:
            self._states[kind] = MutationState.IDLE
        logger.info("Session disconnected")

    async def _reauthenticate(self):
        await self.remote.authenticate(self.signer)

    # =========================================================================
    # Focus and staging
    # =========================================================================

    async def focus(self, submission_id: str) -> int:
        """
        Move the focus to a submission and load its REP state.

        Returns:
            The generation issued for the new focus
        """
        submission = self.session.find_submission(submission_id)
        if submission is None:
            raise NoSubmissionError(f"Unknown submission: {submission_id}")
        generation = self.session.focus(submission)
        await self._load_rep(submission, generation)
        return generation

    async def _load_rep(self, submission: Submission, generation: int):
        key = self.session.rep_key(submission)
        if key is None:
            return
        epoch = self._epoch
        try:
            rating = await self.remote.get_rep_rating(*key)
            credit = await self.remote.get_rep_credit()
        except RemoteError as e:
            logger.warning(f"Could not load REP for {key[0]} / {key[1]}: {e}")
            return
        if epoch != self._epoch:
            return
        self.session.apply_rep(key, rating, credit, update_focus=self.guard.is_current(generation))

    def stage(self, pool: PoolKind, amount: int) -> int:
        """
        Stage a slider value, snapped to the pool's pattern.

        Returns:
            The staged amount
        """
        credit_pool = self.ledger.pool(pool)
        snapped = normalize(amount, credit_pool.ceiling, rule_for(pool))
        return self.ledger.stage_assignment(pool, snapped)

    # =========================================================================
    # Authoritative refresh
    # =========================================================================

    async def refresh(self, force: bool = False) -> bool:
        """
        Fetch the authoritative user snapshot if the guard allows it.

        Failures are non-fatal: they are logged and the configured fallback
        (zero available TDH) is applied.
        A forced refresh that arrives while another is in flight runs again
        once that one lands.

        Returns:
            True if a snapshot was applied
        """
        if not self.session.authenticated:
            return False
        if not self.guard.should_refresh(force):
            if force and self.guard.refresh_in_flight:
                # The snapshot in flight may predate the caller's write
                self._refresh_requested = True
                logger.debug("Forced refresh queued behind the one in flight")
            else:
                logger.debug("Refresh skipped (throttled or already in flight)")
            return False

        applied = await self._refresh_once()
        while self._refresh_requested and self.session.authenticated:
            self._refresh_requested = False
            applied = await self._refresh_once()
        return applied

    async def _refresh_once(self) -> bool:
        epoch = self._epoch
        try:
            with self.guard.track_refresh():
                data = await self.remote.refresh_user_data()
        except RemoteError as e:
            logger.warning(f"User data refresh failed: {e}")
            if epoch == self._epoch:
                self.session.apply_refresh_failure()
            return False

        if epoch != self._epoch:
            logger.debug("Discarding refresh from a previous session")
            return False
        self.session.apply_user_data(data)
        logger.debug(
            f"Refreshed: available={data.voter.available_tdh} "
            f"voted={data.voter.total_tdh_voted}"
        )
        return True

    # =========================================================================
    # Mutations
    # =========================================================================

    async def boost(self) -> MutationResult:
        """Add a fraction of the available TDH to the submission in focus."""
        submission = self._require_focus()
        return await self._execute(
            MutationKind.BOOST,
            compute=self._compute_boost,
            send=lambda total: self.remote.submit_vote(submission.submission_id, total),
        )

    async def vote(self, amount: Optional[int] = None) -> MutationResult:
        """Commit the staged TDH value (staging `amount` first when given)."""
        submission = self._require_focus()
        self._require_idle(MutationKind.VOTE)
        if amount is not None:
            self.stage(PoolKind.TDH, amount)
        return await self._execute(
            MutationKind.VOTE,
            compute=self._compute_vote,
            send=lambda total: self.remote.submit_vote(submission.submission_id, total),
        )

    async def assign_rep(self, amount: Optional[int] = None) -> MutationResult:
        """Commit the staged REP value for the focused submission's artist."""
        submission = self._require_focus()
        key = self.session.rep_key(submission)
        if key is None:
            raise ValidationError("Submission has no artist identity to assign REP to")
        self._require_idle(MutationKind.ASSIGN_REP)
        if amount is not None:
            self.stage(PoolKind.REP, amount)
        artist, category = key
        return await self._execute(
            MutationKind.ASSIGN_REP,
            compute=self._compute_rep,
            send=lambda total: self.remote.assign_rep(artist, total, category),
        )

    def _require_idle(self, kind: MutationKind):
        if kind in self._in_flight:
            raise MutationInProgressError(f"{kind.value} is already in progress")

    def _require_focus(self) -> Submission:
        if not self.session.authenticated:
            raise ValidationError("Wallet is not connected")
        if self.session.current is None:
            raise NoSubmissionError("No submission selected")
        return self.session.current

    def _compute_boost(self) -> int:
        pool = self.ledger.tdh
        available = pool.available_credit
        if available < 1:
            raise InsufficientCreditError("No TDH available to boost")
        current = pool.total_assigned
        amount = calculate_boost(available, self.settings.boost_fraction)
        target = normalize(current + amount, current + available, rule_for(PoolKind.TDH))
        if target - current < 1:
            raise InsufficientCreditError("Boost amount rounds to zero")
        return target

    def _compute_vote(self) -> int:
        target = self.ledger.tdh.pending_assignment
        if target <= 0:
            raise InvalidAmountError("Vote amount must be greater than zero")
        return target

    def _compute_rep(self) -> int:
        pool = self.ledger.rep
        target = pool.pending_assignment
        increase = max(0, target - pool.total_assigned)
        if increase > pool.available_credit:
            raise InsufficientCreditError(
                f"Not enough REP: need {increase}, have {pool.available_credit}"
            )
        return target

    async def _execute(
        self,
        kind: MutationKind,
        compute: Callable[[], int],
        send: Callable[[int], Awaitable[None]],
    ) -> MutationResult:
        self._require_idle(kind)

        pool = POOL_BY_KIND[kind]
        self._in_flight.add(kind)
        try:
            self._transition(kind, MutationState.COMPUTING)
            try:
                target = compute()
            except AllocationError as e:
                logger.info(f"[{kind.value}] rejected: {e}")
                self._transition(kind, MutationState.IDLE)
                raise

            request = self.session.request(pool, target)
            snapshot = self.ledger.apply_optimistic(pool, target)
            self._transition(kind, MutationState.OPTIMISTICALLY_APPLIED)

            attempts = {"retried": False}

            def mark_retry():
                attempts["retried"] = True
                self._transition(kind, MutationState.RETRYING)

            policy = ReauthRetryPolicy(
                self._reauthenticate,
                on_reauth=lambda: self._transition(kind, MutationState.RE_AUTHENTICATING),
                on_retry=mark_retry,
            )
            try:
                await policy.run(lambda: send(target), label=kind.value)
            except asyncio.CancelledError:
                self._abandon(kind, request, snapshot)
                raise
            except Exception as e:
                await self._fail(kind, request, snapshot, e)
                raise

            return await self._commit(kind, request, attempts["retried"])
        finally:
            self._in_flight.discard(kind)

    async def _fail(
        self,
        kind: MutationKind,
        request: AllocationRequest,
        snapshot: PoolSnapshot,
        error: Exception,
    ):
        self._transition(kind, MutationState.ROLLING_BACK)
        if self.guard.is_current(request.generation):
            self.ledger.rollback(request.pool, snapshot)
        else:
            # The ledger already belongs to another focus; let the server
            # settle the pool-wide credit instead.
            logger.info(f"[{kind.value}] focus moved before failure; resyncing {request.pool.value}")
            await self._resync(request.pool)
        self._transition(kind, MutationState.FAILED)

        if isinstance(error, SessionExpiredError):
            logger.warning(f"[{kind.value}] session expired: {error}")
        else:
            logger.warning(f"[{kind.value}] failed for {request.submission_id}: {error}")

    def _abandon(self, kind: MutationKind, request: AllocationRequest, snapshot: PoolSnapshot):
        """Cancelled mid-write: roll back without awaiting anything."""
        self._transition(kind, MutationState.ROLLING_BACK)
        if self.guard.is_current(request.generation):
            self.ledger.rollback(request.pool, snapshot)
        self._transition(kind, MutationState.FAILED)
        logger.warning(f"[{kind.value}] cancelled for {request.submission_id}; optimistic value discarded")

    async def _resync(self, pool: PoolKind):
        if pool is PoolKind.TDH:
            await self.refresh(force=True)
        elif self.session.current is not None:
            await self._load_rep(self.session.current, self.guard.generation)

    async def _commit(self, kind: MutationKind, request: AllocationRequest, retried: bool) -> MutationResult:
        target = request.requested_amount
        current = self.guard.is_current(request.generation)

        if request.pool is PoolKind.TDH:
            self.session.record_vote(request.submission_id, target)
            await self.refresh(force=True)
        else:
            await self._confirm_rep(request, current)

        self._transition(kind, MutationState.COMMITTED)
        pool = self.ledger.pool(request.pool)
        logger.info(
            f"✅ [{kind.value}] committed {target} for {request.submission_id}"
            f"{' after re-auth' if retried else ''}"
        )
        return MutationResult(
            kind=kind,
            request=request,
            optimistic_total=target,
            total_assigned=pool.total_assigned if current else target,
            available_credit=pool.available_credit,
            retried=retried,
            applied=current,
        )

    async def _confirm_rep(self, request: AllocationRequest, current: bool):
        submission = self.session.find_submission(request.submission_id)
        key = self.session.rep_key(submission) if submission else None
        try:
            credit = await self.remote.get_rep_credit()
        except RemoteError as e:
            logger.warning(f"REP credit lookup after commit failed: {e}")
            return
        if key is not None:
            self.session.apply_rep(key, request.requested_amount, credit, update_focus=current)
        else:
            rep = self.ledger.rep
            self.ledger.set_authoritative(PoolKind.REP, rep.total_assigned, credit)
