"""
Submission domain model
"""
from dataclasses import dataclass, field
from typing import Optional
import re

DEFAULT_CATEGORY = "Untitled"
MAX_CATEGORY_LENGTH = 100

_WHITESPACE = re.compile(r'\s+')


def derive_category(title: Optional[str], max_length: int = MAX_CATEGORY_LENGTH) -> str:
    """
    Derive the REP category label from a submission title.

    Whitespace is collapsed and the result truncated to the remote's
    category length limit. Empty titles map to DEFAULT_CATEGORY.
    """
    cleaned = _WHITESPACE.sub(' ', title or '').strip()
    if not cleaned:
        return DEFAULT_CATEGORY
    return cleaned[:max_length].rstrip()


@dataclass
class Submission:
    """
    Submission domain model - a content item open for voting

    Owned by the remote source; the allocation engine only reads it.
    """
    submission_id: str
    title: Optional[str] = None

    # Author identity
    author_handle: Optional[str] = None
    author_wallet: Optional[str] = None

    # Display metadata
    picture: Optional[str] = None
    rank: Optional[int] = None
    rating_prediction: float = 0.0
    realtime_rating: float = 0.0

    metadata: dict = field(default_factory=dict)

    @property
    def display_title(self) -> str:
        return self.title or DEFAULT_CATEGORY

    @property
    def artist_identity(self) -> Optional[str]:
        """Identity REP is assigned to: handle when known, wallet otherwise"""
        return self.author_handle or self.author_wallet

    def category(self, max_length: int = MAX_CATEGORY_LENGTH) -> str:
        """REP category label for this submission"""
        return derive_category(self.title, max_length)

    def label(self) -> str:
        """'<title> by <handle>' as shown in the playlist"""
        return f"{self.display_title} by {self.artist_identity or 'unknown'}"


def top_submissions(submissions: list, limit: int = 10) -> list:
    """
    Select the playlist: highest projected rating first, rank as tie-break.
    """
    ordered = sorted(
        submissions,
        key=lambda s: (-s.rating_prediction, s.rank if s.rank is not None else float('inf')),
    )
    return ordered[:limit]
