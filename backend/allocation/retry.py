"""
Re-authenticate-then-retry policy applied uniformly to remote writes.

An auth-class failure (HTTP 401 or "Unauthorized" in the message) triggers
exactly one re-authentication and one retry of the identical call. Anything
else propagates untouched.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import AuthError, SessionExpiredError


logger = logging.getLogger(__name__)

T = TypeVar('T')

AUTH_MARKERS = ("401", "unauthorized")


def is_auth_error(error: BaseException) -> bool:
    """True when the error means the session is no longer authenticated."""
    if isinstance(error, AuthError):
        return True
    if getattr(error, 'status', None) == 401:
        return True
    message = str(error).lower()
    return any(marker in message for marker in AUTH_MARKERS)


class ReauthRetryPolicy:
    """
    Wraps one remote call with a single re-auth-and-retry on auth failure.

    Args:
        reauthenticate: Coroutine function re-signing a fresh challenge
        is_auth: Predicate classifying errors as auth-class
        on_reauth: Called before re-authentication starts
        on_retry: Called before the retry is issued
    """

    def __init__(
        self,
        reauthenticate: Callable[[], Awaitable[None]],
        is_auth: Callable[[BaseException], bool] = is_auth_error,
        on_reauth: Optional[Callable[[], None]] = None,
        on_retry: Optional[Callable[[], None]] = None,
    ):
        self.reauthenticate = reauthenticate
        self.is_auth = is_auth
        self.on_reauth = on_reauth
        self.on_retry = on_retry

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "remote call") -> T:
        """
        Run operation, re-authenticating and retrying it once if needed.

        Raises:
            SessionExpiredError: re-authentication or the retry failed
            Exception: any non-auth failure of the first attempt
        """
        try:
            return await operation()
        except Exception as e:
            if not self.is_auth(e):
                raise
            logger.warning(f"🔐 {label} rejected as unauthenticated ({e}); re-authenticating")

        if self.on_reauth:
            self.on_reauth()
        try:
            await self.reauthenticate()
        except Exception as e:
            logger.warning(f"Re-authentication for {label} failed: {e}")
            raise SessionExpiredError(f"Session expired, please reconnect ({e})", status=401) from e

        if self.on_retry:
            self.on_retry()
        try:
            result = await operation()
        except Exception as e:
            logger.warning(f"Retry of {label} after re-authentication failed: {e}")
            raise SessionExpiredError(f"Session expired, please reconnect ({e})", status=401) from e

        logger.info(f"✅ {label} succeeded after re-authentication")
        return result
