"""Custom exception classes for the crawler."""

from typing import Any, Optional


class AragogException(Exception):
    """Base exception for all Aragog errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class MalformedPriceError(AragogException):
    """Raised when a price string holds no parseable number."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Malformed price text: {raw!r}")


class FetchError(AragogException):
    """Raised when a page cannot be fetched after all retry attempts."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")


class CrawlError(AragogException):
    """Raised when a shop crawl aborts.

    Offers published before the abort stay published; ``report`` holds the
    statistics gathered up to that point.
    """

    def __init__(self, shop: str, message: str, report: Any = None):
        self.shop = shop
        self.report = report
        super().__init__(f"Crawl aborted for {shop}: {message}")
