"""
Allocation error taxonomy.

Validation and credit errors are raised before any network call and never
touch the ledger. Remote errors carry the HTTP status (when there was one)
and the server-provided text.
"""

from typing import Optional


class AllocationError(Exception):
    """Base class for everything the allocation engine surfaces."""
    pass


# =============================================================================
# Local (never sent to the network)
# =============================================================================

class ValidationError(AllocationError):
    """Raised when a mutation request is malformed."""
    pass


class InvalidAmountError(ValidationError):
    """Raised when the requested amount cannot be submitted (e.g. <= 0)."""
    pass


class NoSubmissionError(ValidationError):
    """Raised when a mutation is attempted without a focused submission."""
    pass


class MutationInProgressError(ValidationError):
    """Raised when the same mutation is triggered while it is still in flight."""
    pass


class InsufficientCreditError(AllocationError):
    """Raised when the pool cannot cover the requested increase."""
    pass


# =============================================================================
# Remote
# =============================================================================

class RemoteError(AllocationError):
    """Raised when a call to the remote session client fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"HTTP {self.status}: {self.message}"
        return self.message


class AuthError(RemoteError):
    """Raised when signing is rejected or the server refuses the session."""
    pass


class SessionExpiredError(AuthError):
    """Raised when re-authentication or the single retry also failed."""
    pass


class NetworkError(RemoteError):
    """Raised when the request never produced an HTTP response."""
    pass


class ServerError(RemoteError):
    """Raised for non-auth HTTP failures."""
    pass
