"""Base shop adapter.

Every shop runs the same pipeline:

    fetch page -> extract entries -> refine (per-shop hook) -> normalize
    -> publish -> next page

Shop subclasses supply a ShopSelectorSet, a page size and, where the markup
needs it, an override of ``refine_entry``.
"""

import asyncio
from abc import ABC
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Union
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup
from opentelemetry import trace

from aragog.core.exceptions import CrawlError, FetchError, MalformedPriceError
from aragog.scrapers.extractor import EntryExtractor
from aragog.scrapers.fetcher import RetryingFetcher
from aragog.scrapers.models import (
    CrawlCursor,
    CrawlReport,
    CrawlState,
    Extracted,
    ExtractionResult,
    Filtered,
    Missing,
    Offer,
    RawEntry,
    ShopSelectorSet,
)
from aragog.scrapers.paginator import Paginator
from aragog.scrapers.publisher import Publisher
from aragog.scrapers.utils.normalizer import NameNormalizer, PriceParser, clean_availability
from aragog.scrapers.utils.retry import TRANSIENT_FETCH_ERRORS

DEFAULT_ITEM_LIMIT = 70
DEFAULT_DETAIL_FETCH_DELAY = 5.0


class BaseShopAdapter(ABC):
    """Abstract base class for all shop adapters.

    Subclasses must define ``shop_slug``, ``shop_name``, ``start_url``,
    ``page_size`` and ``selectors``; this is checked when the subclass is
    declared.
    """

    shop_slug: str = ""  # Must be overridden in subclass (e.g., "dungeonmarvels")
    shop_name: str = ""  # Value of Offer.shop_name (e.g., "DungeonMarvels")
    start_url: str = ""
    page_size: int = 24  # Items per listing page
    selectors: Optional[ShopSelectorSet] = None
    empty_name_is_error: bool = True

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        missing = [
            attr for attr in ("shop_slug", "shop_name", "start_url") if not getattr(cls, attr)
        ]
        if not isinstance(cls.selectors, ShopSelectorSet):
            missing.append("selectors")
        if missing:
            raise TypeError(f"{cls.__name__} must define {', '.join(missing)}")
        if cls.page_size <= 0:
            raise TypeError(f"{cls.__name__}.page_size must be positive, got {cls.page_size}")

    def __init__(
        self,
        fetcher: RetryingFetcher,
        publisher: Publisher,
        name_normalizer: Optional[NameNormalizer] = None,
        detail_fetch_delay: float = DEFAULT_DETAIL_FETCH_DELAY,
        tracer: Optional[trace.Tracer] = None,
        logger=None,
    ):
        """Initialize the adapter with its collaborators.

        Args:
            fetcher: Page fetcher (owns the retry budget)
            publisher: Backend publisher
            name_normalizer: Title filter/cleanup, default blocklist if omitted
            detail_fetch_delay: Pause before each product detail request
            tracer: Tracer for the ``crawl`` and ``entry.process`` spans
            logger: structlog logger, bound to the shop slug if omitted

        Raises:
            TypeError: If instantiated without a shop declaration
        """
        if self.selectors is None:
            raise TypeError(f"{type(self).__name__} is not a shop adapter; subclass it")

        self.fetcher = fetcher
        self.publisher = publisher
        self.name_normalizer = name_normalizer or NameNormalizer()
        self.detail_fetch_delay = detail_fetch_delay
        self.tracer = tracer or trace.get_tracer(__name__)
        self.extractor = EntryExtractor(self.selectors, empty_name_is_error=self.empty_name_is_error)
        self.paginator = Paginator(self.selectors)
        self.logger = logger or structlog.get_logger(__name__).bind(adapter=self.shop_slug)

    # ------------------------------------------------------------------
    # Crawl
    # ------------------------------------------------------------------

    async def crawl(
        self, start_url: Optional[str] = None, item_limit: int = DEFAULT_ITEM_LIMIT
    ) -> CrawlReport:
        """Crawl the shop catalog and publish every valid offer.

        Args:
            start_url: First listing page, the shop default if omitted
            item_limit: Approximate number of items wanted; bounds the number
                of pages fetched, not the number of offers published

        Returns:
            CrawlReport with state DONE (even if nothing was published)

        Raises:
            CrawlError: If a page could not be fetched after all retries.
                Offers already published stay published.
        """
        url = start_url or self.start_url
        cursor = CrawlCursor(
            current_url=url,
            page_limit=Paginator.page_budget(item_limit, self.page_size),
        )
        report = CrawlReport(shop_slug=self.shop_slug)
        batch = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H")
        log = self.logger.bind(batch=batch)

        log.info("crawl_started", url=url, item_limit=item_limit, page_limit=cursor.page_limit)

        with self.tracer.start_as_current_span("crawl", attributes={"shop": self.shop_name}):
            while True:
                self._transition(report, CrawlState.FETCHING_PAGE, log)
                try:
                    body = await self.fetcher.get(cursor.current_url, cursor)
                except FetchError as e:
                    self._transition(report, CrawlState.ABORTED, log)
                    log.error(
                        "crawl_aborted",
                        url=cursor.current_url,
                        consecutive_failures=cursor.consecutive_failures,
                        error=str(e),
                        **report.as_log_fields(),
                    )
                    raise CrawlError(self.shop_slug, str(e), report=report) from e

                cursor.pages_fetched += 1
                report.pages_fetched = cursor.pages_fetched
                document = BeautifulSoup(body, "html.parser")

                self._transition(report, CrawlState.EXTRACTING_ENTRIES, log)
                offers = await self._extract_offers(document, cursor.current_url, report, log)

                self._transition(report, CrawlState.PUBLISHING, log)
                for offer in offers:
                    outcome = await self.publisher.publish(offer)
                    report.outcomes[outcome] += 1

                if cursor.pages_fetched >= cursor.page_limit:
                    log.info("page_budget_reached", pages_fetched=cursor.pages_fetched)
                    break

                next_url = self.paginator.next_page(document, cursor.current_url)
                if next_url is None:
                    log.info("last_page_reached", url=cursor.current_url)
                    break

                self._transition(report, CrawlState.NEXT_PAGE, log)
                cursor.current_url = next_url

        self._transition(report, CrawlState.DONE, log)
        log.info("crawl_finished", **report.as_log_fields())
        return report

    @staticmethod
    def _transition(report: CrawlReport, state: CrawlState, log) -> None:
        log.debug("crawl_state", previous=report.state.value, state=state.value)
        report.state = state

    async def _extract_offers(
        self, document: BeautifulSoup, page_url: str, report: CrawlReport, log
    ) -> List[Offer]:
        """Run extraction over every fragment of a page.

        A fragment that is filtered, misses a field or blows up is dropped on
        its own; the rest of the page is still processed. Each fragment gets
        its own ``entry.process`` span so per-entry markers such as
        ``error_detail`` never leak onto the crawl span.
        """
        offers: List[Offer] = []
        fragments = document.select(self.selectors.entry)
        log.info("page_entries_found", url=page_url, count=len(fragments))

        for fragment in fragments:
            report.entries_seen += 1
            with self.tracer.start_as_current_span(
                "entry.process",
                attributes={"shop": self.shop_name, "error_detail": "OK"},
            ) as span:
                try:
                    result = self.extractor.extract(fragment)
                    if isinstance(result, Extracted):
                        result = await self.refine_entry(result.entry, page_url)
                    if isinstance(result, Extracted):
                        result = self.build_offer(result.entry)
                except Exception as e:
                    span.set_attribute("error_detail", type(e).__name__)
                    report.dropped += 1
                    log.error("entry_processing_failed", url=page_url, error=str(e), exc_info=True)
                    continue

                if isinstance(result, Offer):
                    log.info("offer_extracted", name=result.name, url=result.url)
                    offers.append(result)
                else:
                    self._record_drop(result, report, log)

        return offers

    @staticmethod
    def _record_drop(result: Union[Filtered, Missing], report: CrawlReport, log) -> None:
        if isinstance(result, Filtered):
            report.filtered += 1
            if result.reason == "empty_fragment":
                log.debug("entry_filtered", reason=result.reason)
            else:
                log.info("entry_filtered", reason=result.reason)
            return

        report.dropped += 1
        if result.field == "link":
            log.warning("entry_dropped", field=result.field, detail=result.detail)
        else:
            log.error("entry_dropped", field=result.field, detail=result.detail)

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def build_offer(self, entry: RawEntry) -> Union[Offer, Filtered, Missing]:
        """Turn a raw entry into an Offer.

        Args:
            entry: Raw strings from the listing

        Returns:
            Offer, Filtered if the name is excluded, or Missing if a price
            cannot be parsed
        """
        name = self.name_normalizer.normalize(entry.name_text or "")
        if name is None:
            return Filtered("excluded_name")

        try:
            offer_price = PriceParser.parse(entry.price_text or "")
            normal_price = PriceParser.parse_optional(entry.regular_price_text)
        except MalformedPriceError as e:
            return Missing("price", e.message)

        if normal_price is None:
            # Not discounted
            normal_price = offer_price

        return Offer(
            name=name,
            url=entry.link_href or "",
            normal_price=normal_price,
            offer_price=offer_price,
            availability=clean_availability(entry.availability_text)
            or self.selectors.default_availability,
            shop_name=self.shop_name,
        )

    # ------------------------------------------------------------------
    # Per-shop hooks
    # ------------------------------------------------------------------

    async def refine_entry(self, entry: RawEntry, page_url: str) -> ExtractionResult:
        """Apply shop-specific fixes to an extracted entry.

        Shops declaring ``selectors.detail_name`` get truncated listing names
        replaced by the full name from the product page; an entry whose name
        cannot be recovered is dropped. Otherwise the entry is unchanged.
        """
        if not self.selectors.detail_name:
            return Extracted(entry)
        if not self.name_normalizer.is_truncated(entry.name_text or ""):
            return Extracted(entry)

        detail_url = self.absolute_link(page_url, entry.link_href or "")
        name = await self._fetch_detail_name(detail_url, self.selectors.detail_name)
        if name is None:
            return Missing("name", f"unable to read full name from {detail_url}")
        return Extracted(replace(entry, name_text=name))

    async def _fetch_detail_name(self, url: str, selector: str) -> Optional[str]:
        """Read the full product name from the product's own page.

        One attempt only, after ``detail_fetch_delay`` seconds. Failures are
        logged and return None.
        """
        await asyncio.sleep(self.detail_fetch_delay)

        try:
            body = await self.fetcher.fetch_once(url)
        except TRANSIENT_FETCH_ERRORS as e:
            self.logger.error("detail_fetch_failed", url=url, error=str(e) or type(e).__name__)
            return None

        element = BeautifulSoup(body, "html.parser").select_one(selector)
        if element is None:
            self.logger.error("detail_name_not_found", url=url)
            return None

        name = " ".join(element.get_text().split())
        if not name:
            self.logger.error("detail_name_empty", url=url)
            return None

        self.logger.info("detail_name_recovered", url=url, name=name)
        return name

    @staticmethod
    def absolute_link(page_url: str, href: str) -> str:
        return urljoin(page_url, href)
