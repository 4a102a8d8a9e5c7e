"""Retry policy for catalog page requests."""

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)
import httpx


# Non-2xx responses and every transport-level failure (connect errors,
# timeouts, DNS) are retried the same way.
TRANSIENT_FETCH_ERRORS = (
    httpx.HTTPStatusError,
    httpx.TransportError,
)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 5.0


def fetch_retrying(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
) -> AsyncRetrying:
    """Build the retry controller for one page request.

    Args:
        max_attempts: Consecutive failures tolerated before giving up
        backoff_seconds: Fixed delay between attempts

    Returns:
        AsyncRetrying that re-raises the last transient error when exhausted
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(backoff_seconds),
        retry=retry_if_exception_type(TRANSIENT_FETCH_ERRORS),
        reraise=True,
    )
