"""
Staleness/Concurrency Guard
===========================

Two jobs:

1. Generation tokens - every focus change issues a new generation; responses
   tagged with an older one are discarded.
2. Refresh throttling - at most one authoritative refresh in flight, and no
   refresh within the interval unless forced or the pool looks empty.

Usage:
    guard = StalenessGuard(credit_source=lambda: ledger.tdh.available_credit)

    generation = guard.issue_generation()
    ...
    if guard.is_current(generation):
        apply(response)

    if guard.should_refresh(force=False):
        with guard.track_refresh():
            data = await remote.refresh_user_data()
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from .types import RefreshThrottleState


logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_MS = 30_000


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class StalenessGuard:
    """Generation tokens plus refresh throttle state."""

    def __init__(
        self,
        credit_source: Optional[Callable[[], int]] = None,
        refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.credit_source = credit_source
        self.refresh_interval_ms = refresh_interval_ms
        self.clock = clock or monotonic_ms
        self.throttle = RefreshThrottleState()
        self._generation = 0

    # =========================================================================
    # Generations
    # =========================================================================

    @property
    def generation(self) -> int:
        """Latest issued generation."""
        return self._generation

    def issue_generation(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        current = generation == self._generation
        if not current:
            logger.debug(f"Discarding stale response (generation {generation}, latest {self._generation})")
        return current

    # =========================================================================
    # Refresh throttling
    # =========================================================================

    @property
    def refresh_in_flight(self) -> bool:
        return self.throttle.in_flight

    def should_refresh(self, force: bool = False) -> bool:
        """
        Decide whether an authoritative refresh should run now.

        Never while another refresh is in flight, even when forced.
        """
        if self.throttle.in_flight:
            return False
        if force or not self.throttle.has_refreshed:
            return True
        if self.credit_source is not None and self.credit_source() < 1:
            return True
        elapsed = self.clock() - self.throttle.last_refresh_ms
        return elapsed > self.refresh_interval_ms

    @contextmanager
    def track_refresh(self) -> Iterator[RefreshThrottleState]:
        """
        Mark a refresh in flight for the duration of the block.

        The timestamp only moves on success; the flag is always cleared.
        """
        state = self.throttle
        if state.in_flight:
            raise RuntimeError("A refresh is already in flight")
        state.in_flight = True
        try:
            yield state
        finally:
            state.in_flight = False
        # Only reached when the block did not raise. A reset() during the
        # refresh swapped in a fresh state, which stays untouched.
        state.last_refresh_ms = self.clock()
        state.has_refreshed = True

    def reset(self):
        """Zero the throttle state and invalidate every outstanding generation."""
        self.throttle = RefreshThrottleState()
        self._generation += 1
