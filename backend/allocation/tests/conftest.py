"""
Pytest configuration for allocation engine tests.

FakeRemote stands in for the voting API: it keeps server-side state so
authoritative refreshes reflect committed writes, and lets tests queue
failures or hold a call open with an asyncio.Event.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest
from unittest.mock import AsyncMock

from allocation import MutationController, RemoteSessionClient, UserData, VotingSession
from config import Settings
from models.domain.submission import Submission
from models.domain.voter import Voter


WALLET = "0x1234567890abcdef1234567890abcdef12345678"


def pytest_configure(config):
    """Configure pytest with asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


class FakeRemote(RemoteSessionClient):
    """In-memory voting API."""

    def __init__(
        self,
        available_tdh: int = 100,
        rep_credit: int = 500,
        votes: Optional[Dict[str, int]] = None,
        rep_ratings: Optional[Dict[Tuple[str, str], int]] = None,
        submissions: Optional[List[Submission]] = None,
    ):
        self.available_tdh = available_tdh
        self.rep_credit = rep_credit
        self.votes_map: Dict[str, int] = dict(votes or {})
        self.rep_ratings: Dict[Tuple[str, str], int] = dict(rep_ratings or {})
        self.submissions = list(submissions or [])
        self.calls: List[tuple] = []
        self.failures: Dict[str, List[Exception]] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.on_write = None
        self.wallet = ""

    def fail(self, method: str, *errors: Exception):
        """Queue errors raised by the next calls to `method`."""
        self.failures.setdefault(method, []).extend(errors)

    def hold(self, method: str) -> asyncio.Event:
        """Block calls to `method` until the returned event is set."""
        gate = asyncio.Event()
        self.gates[method] = gate
        return gate

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    async def _enter(self, method: str, *args):
        self.calls.append((method, *args))
        gate = self.gates.get(method)
        if gate is not None:
            await gate.wait()
        queue = self.failures.get(method)
        if queue:
            raise queue.pop(0)

    def set_wallet_address(self, wallet):
        self.wallet = wallet

    async def authenticate(self, sign_message):
        await self._enter("authenticate", self.wallet)
        await sign_message("Sign in to vote")

    async def submit_vote(self, submission_id, total_amount):
        if self.on_write:
            self.on_write("submit_vote")
        await self._enter("submit_vote", submission_id, total_amount)
        previous = self.votes_map.get(submission_id, 0)
        self.available_tdh -= total_amount - previous
        self.votes_map[submission_id] = total_amount

    async def assign_rep(self, artist_identity, total_amount, category):
        if self.on_write:
            self.on_write("assign_rep")
        await self._enter("assign_rep", artist_identity, total_amount, category)
        key = (artist_identity, category)
        previous = self.rep_ratings.get(key, 0)
        self.rep_credit -= total_amount - previous
        self.rep_ratings[key] = total_amount

    async def refresh_user_data(self):
        # Read server state at request time, like a real round trip
        voter = Voter(
            wallet=self.wallet,
            tdh=self.available_tdh + sum(self.votes_map.values()),
            available_tdh=self.available_tdh,
            total_tdh_voted=sum(self.votes_map.values()),
            total_votes=len(self.votes_map),
        )
        data = UserData(voter=voter, user_votes_map=dict(self.votes_map))
        await self._enter("refresh_user_data")
        return data

    async def get_rep_rating(self, artist_identity, category):
        await self._enter("get_rep_rating", artist_identity, category)
        return self.rep_ratings.get((artist_identity, category), 0)

    async def get_rep_credit(self):
        await self._enter("get_rep_credit")
        return self.rep_credit

    async def get_submissions(self):
        await self._enter("get_submissions")
        return list(self.submissions)


@pytest.fixture
def submissions():
    return [
        Submission(submission_id="drop-2", title="Night Owl", author_handle="bob", rating_prediction=300.0, rank=2),
        Submission(submission_id="drop-1", title="Sunrise Meme", author_handle="alice", rating_prediction=500.0, rank=1),
        Submission(submission_id="drop-3", title=None, rating_prediction=100.0, rank=3),
    ]


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def remote(submissions):
    return FakeRemote(submissions=submissions)


@pytest.fixture
def signer():
    return AsyncMock(return_value="0xsignature")


@pytest.fixture
def session(settings):
    return VotingSession(settings=settings)


@pytest.fixture
def controller(session, remote, signer):
    return MutationController(session, remote, signer)


@pytest.fixture
def wallet():
    return WALLET


@pytest.fixture
def make_remote(submissions):
    """Factory for a FakeRemote with custom server state."""
    def _make(**kwargs):
        kwargs.setdefault("submissions", submissions)
        return FakeRemote(**kwargs)
    return _make


@pytest.fixture
def make_controller(session, signer):
    """Factory binding a remote to the shared session."""
    def _make(remote):
        return MutationController(session, remote, signer)
    return _make
