"""
Remote Session Client contract.

The allocation engine consumes this interface; services.session_client
provides the HTTP implementation. Every method raises a RemoteError
subclass on failure.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List

from models.domain.voter import Voter
from models.domain.submission import Submission


# Wallet signer: challenge text in, signature out
SignMessage = Callable[[str], Awaitable[str]]


@dataclass
class UserData:
    """Authoritative snapshot returned by refresh_user_data()."""
    voter: Voter
    user_votes: List[Dict[str, Any]] = field(default_factory=list)
    user_votes_map: Dict[str, int] = field(default_factory=dict)

    def votes_for(self, submission_id: str) -> int:
        return self.user_votes_map.get(submission_id, 0)


class RemoteSessionClient:
    """
    Base class for the remote source of truth.

    Subclasses must implement every coroutine below.
    """

    def set_wallet_address(self, wallet: str) -> None:
        """Bind the client to a wallet; a different wallet drops the session."""
        raise NotImplementedError(f"{self.__class__.__name__} must implement set_wallet_address()")

    async def authenticate(self, sign_message: SignMessage) -> None:
        """Sign a server challenge; raises AuthError if signing or login fails."""
        raise NotImplementedError(f"{self.__class__.__name__} must implement authenticate()")

    async def submit_vote(self, submission_id: str, total_amount: int) -> None:
        """Set the absolute TDH total the voter assigns to a submission."""
        raise NotImplementedError(f"{self.__class__.__name__} must implement submit_vote()")

    async def assign_rep(self, artist_identity: str, total_amount: int, category: str) -> None:
        """Set the absolute REP total for an artist within a category."""
        raise NotImplementedError(f"{self.__class__.__name__} must implement assign_rep()")

    async def refresh_user_data(self) -> UserData:
        raise NotImplementedError(f"{self.__class__.__name__} must implement refresh_user_data()")

    async def get_rep_rating(self, artist_identity: str, category: str) -> int:
        raise NotImplementedError(f"{self.__class__.__name__} must implement get_rep_rating()")

    async def get_rep_credit(self) -> int:
        raise NotImplementedError(f"{self.__class__.__name__} must implement get_rep_credit()")

    async def get_submissions(self) -> List[Submission]:
        raise NotImplementedError(f"{self.__class__.__name__} must implement get_submissions()")
