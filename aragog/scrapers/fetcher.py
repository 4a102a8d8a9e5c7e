"""Catalog page fetching with bounded fixed-delay retries."""

from typing import Optional

import httpx
import structlog

from aragog.core.exceptions import FetchError
from aragog.scrapers.models import CrawlCursor
from aragog.scrapers.utils.retry import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    TRANSIENT_FETCH_ERRORS,
    fetch_retrying,
)


# Slow shops answer in minutes, not seconds
DEFAULT_FETCH_TIMEOUT = 600.0


class RetryingFetcher:
    """HTTP GET with a consecutive-failure budget.

    A failed attempt (non-2xx or transport error) increments
    ``cursor.consecutive_failures``, waits ``backoff_seconds`` and retries the
    same URL. Any successful fetch resets the counter.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        logger=None,
    ):
        self.client = client
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.timeout = timeout
        self.logger = logger or structlog.get_logger(__name__)

    async def fetch_once(self, url: str) -> str:
        """Fetch a URL a single time.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response
            httpx.TransportError: On network-level failure
        """
        response = await self.client.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.text

    async def get(self, url: str, cursor: Optional[CrawlCursor] = None) -> str:
        """Fetch a page, retrying transient failures.

        Args:
            url: Page URL
            cursor: Crawl cursor whose failure counter is maintained

        Returns:
            Response body

        Raises:
            FetchError: When ``max_attempts`` consecutive attempts failed
        """
        body = ""
        try:
            async for attempt in fetch_retrying(self.max_attempts, self.backoff_seconds):
                with attempt:
                    body = await self._attempt(url, cursor, attempt.retry_state.attempt_number)
        except httpx.HTTPStatusError as e:
            raise FetchError(url, str(e), status_code=e.response.status_code) from e
        except httpx.TransportError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e
        return body

    async def _attempt(self, url: str, cursor: Optional[CrawlCursor], attempt: int) -> str:
        try:
            body = await self.fetch_once(url)
        except TRANSIENT_FETCH_ERRORS as e:
            if cursor is not None:
                cursor.consecutive_failures += 1
            status = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            self.logger.error(
                "fetch_failed",
                url=url,
                attempt=attempt,
                max_attempts=self.max_attempts,
                status=status,
                error=str(e) or type(e).__name__,
            )
            raise

        if cursor is not None:
            cursor.consecutive_failures = 0
        self.logger.debug("fetch_succeeded", url=url, attempt=attempt)
        return body
