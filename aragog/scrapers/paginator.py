"""Next-page discovery and crawl depth budgeting."""

import math
from typing import Optional
from urllib.parse import urldefrag, urljoin

import structlog
from bs4 import BeautifulSoup

from aragog.scrapers.models import ShopSelectorSet

logger = structlog.get_logger(__name__)


class Paginator:
    """Walks a shop's "next page" links."""

    def __init__(self, selectors: ShopSelectorSet):
        self.selectors = selectors

    def next_page(self, document: BeautifulSoup, current_url: str) -> Optional[str]:
        """Locate the next page of the listing.

        Args:
            document: Parsed listing page
            current_url: URL the page was fetched from (base for relative links)

        Returns:
            Absolute next-page URL, or None when this is the last page
        """
        element = document.select_one(self.selectors.next_page)
        if element is None:
            return None

        href = (element.get("href") or "").strip()
        if not href:
            return None

        next_url = urljoin(current_url, href)
        if urldefrag(next_url).url == urldefrag(current_url).url:
            logger.warning("next_page_points_to_itself", url=current_url)
            return None
        return next_url

    @staticmethod
    def page_budget(item_limit: int, page_size: int) -> int:
        """Number of pages to fetch for an approximate item limit.

        The budget bounds crawl depth only; filtering can publish fewer items.

        Args:
            item_limit: Approximate number of offers wanted
            page_size: Items the shop lists per page

        Returns:
            ceil(item_limit / page_size), at least 1
        """
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        return max(1, math.ceil(item_limit / page_size))
