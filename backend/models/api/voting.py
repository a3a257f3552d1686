"""
Pydantic models for the remote voting API
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional

from models.domain.voter import Voter
from models.domain.submission import Submission


class NonceResponse(BaseModel):
    """Challenge issued by GET /auth/nonce"""
    nonce: str
    server_signature: str


class LoginRequest(BaseModel):
    """Body for POST /auth/login"""
    server_signature: str
    client_signature: str


class LoginResponse(BaseModel):
    """Bearer token returned after a signed challenge"""
    token: str


class UserSummary(BaseModel):
    """Authoritative TDH totals for the connected wallet"""
    tdh: int = 0
    available_tdh: int = Field(default=0, alias="availableTDH")
    total_tdh_voted: int = Field(default=0, alias="totalTDHVoted")
    total_votes: int = Field(default=0, alias="totalVotes")

    model_config = {
        "populate_by_name": True
    }

    @field_validator('tdh', 'available_tdh', 'total_tdh_voted', 'total_votes', mode='before')
    @classmethod
    def coerce_amount(cls, v):
        """API returns TDH as floats; the ledger works in whole units"""
        if v is None:
            return 0
        return max(0, int(v))


class UserDataResponse(BaseModel):
    """Snapshot returned by the user-data refresh"""
    user: UserSummary
    user_votes: List[Dict[str, Any]] = Field(default_factory=list, alias="userVotes")
    user_votes_map: Dict[str, int] = Field(default_factory=dict, alias="userVotesMap")

    model_config = {
        "populate_by_name": True
    }

    @field_validator('user_votes_map', mode='before')
    @classmethod
    def coerce_vote_amounts(cls, v):
        if not v:
            return {}
        return {str(k): max(0, int(amount or 0)) for k, amount in v.items()}

    def to_voter(self, wallet: str, rep_credit: int = 0) -> Voter:
        return Voter(
            wallet=wallet,
            tdh=self.user.tdh,
            available_tdh=self.user.available_tdh,
            total_tdh_voted=self.user.total_tdh_voted,
            total_votes=self.user.total_votes,
            rep_credit=rep_credit,
        )


class RepCreditResponse(BaseModel):
    rep_credit: int = 0


class RepRatingResponse(BaseModel):
    rating: int = 0


class VoteRequest(BaseModel):
    """Absolute TDH total for one submission"""
    rating: int


class RepAssignRequest(BaseModel):
    """Absolute REP total for one artist within a category"""
    amount: int
    category: str


class AuthorPayload(BaseModel):
    handle: Optional[str] = None
    primary_address: Optional[str] = None


class SubmissionPayload(BaseModel):
    """Submission as listed by the voting endpoint"""
    id: str
    title: Optional[str] = None
    author: AuthorPayload = Field(default_factory=AuthorPayload)
    picture: Optional[str] = None
    rank: Optional[int] = None
    rating_prediction: float = 0.0
    realtime_rating: float = 0.0

    def to_domain(self) -> Submission:
        return Submission(
            submission_id=self.id,
            title=self.title,
            author_handle=self.author.handle,
            author_wallet=self.author.primary_address,
            picture=self.picture,
            rank=self.rank,
            rating_prediction=self.rating_prediction,
            realtime_rating=self.realtime_rating,
        )
