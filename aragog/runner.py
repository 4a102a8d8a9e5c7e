"""Concurrent crawl runner.

Runs one crawl per shop, each on its own asyncio task with its own HTTP
client, waits for all of them, and summarizes the results.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx
import structlog

from aragog.config import Settings, settings as default_settings
from aragog.core.exceptions import CrawlError
from aragog.scrapers.base import DEFAULT_ITEM_LIMIT
from aragog.scrapers.factory import AdapterFactory
from aragog.scrapers.register_adapters import register_all_adapters
from aragog.telemetry import TraceContextInjector

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Per-shop crawl runner
# ---------------------------------------------------------------------------


@dataclass
class ShopResult:
    """Summary of a crawl for a single shop."""

    shop_slug: str
    offers_published: int
    publish_failures: int
    pages_fetched: int
    elapsed_seconds: float
    error: Optional[str] = None
    aborted: bool = False


async def scrape_shop(
    shop_slug: str,
    factory: AdapterFactory,
    item_limit: int = DEFAULT_ITEM_LIMIT,
    injector: Optional[TraceContextInjector] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ShopResult:
    """Crawl a single shop and publish its offers.

    Args:
        shop_slug: Shop identifier (e.g. "dracotienda")
        factory: Factory with the shop's adapter registered
        item_limit: Approximate number of items wanted
        injector: Trace context producer passed to the publisher
        transport: HTTP transport override for the shop's client

    Returns:
        ShopResult summary. Failures are reported in the result, never raised.
    """
    start_time = time.monotonic()

    async with httpx.AsyncClient(follow_redirects=True, transport=transport) as client:
        adapter = factory.create_adapter(shop_slug, client, injector=injector)
        if adapter is None:
            return ShopResult(
                shop_slug=shop_slug,
                offers_published=0,
                publish_failures=0,
                pages_fetched=0,
                elapsed_seconds=time.monotonic() - start_time,
                error="unknown shop",
            )

        try:
            report = await adapter.crawl(item_limit=item_limit)
        except CrawlError as exc:
            partial = exc.report
            return ShopResult(
                shop_slug=shop_slug,
                offers_published=partial.offers_published if partial else 0,
                publish_failures=partial.publish_failures if partial else 0,
                pages_fetched=partial.pages_fetched if partial else 0,
                elapsed_seconds=time.monotonic() - start_time,
                error=exc.message,
                aborted=True,
            )
        except Exception as exc:
            log.error("shop_crawl_failed", shop=shop_slug, error=str(exc), exc_info=True)
            return ShopResult(
                shop_slug=shop_slug,
                offers_published=0,
                publish_failures=0,
                pages_fetched=0,
                elapsed_seconds=time.monotonic() - start_time,
                error=str(exc),
                aborted=True,
            )

    return ShopResult(
        shop_slug=shop_slug,
        offers_published=report.offers_published,
        publish_failures=report.publish_failures,
        pages_fetched=report.pages_fetched,
        elapsed_seconds=time.monotonic() - start_time,
    )


async def run_shops(
    shops: Sequence[str],
    item_limit: int = DEFAULT_ITEM_LIMIT,
    settings: Optional[Settings] = None,
    injector: Optional[TraceContextInjector] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[ShopResult]:
    """Crawl every shop concurrently and wait for all of them.

    Args:
        shops: Shop slugs to crawl
        item_limit: Approximate number of items wanted per shop
        settings: Settings used to build adapters, the global ones if omitted
        injector: Trace context producer passed to every publisher
        transport: HTTP transport override shared by all shop clients

    Returns:
        One ShopResult per shop, in the order given
    """
    factory = register_all_adapters(AdapterFactory(settings or default_settings))

    log.info("run_started", shops=list(shops), item_limit=item_limit)
    results = await asyncio.gather(
        *(
            scrape_shop(slug, factory, item_limit=item_limit, injector=injector, transport=transport)
            for slug in shops
        )
    )
    log.info(
        "run_finished",
        offers_published=sum(r.offers_published for r in results),
        aborted=[r.shop_slug for r in results if r.aborted],
    )
    return list(results)


# ---------------------------------------------------------------------------
# Summary printer
# ---------------------------------------------------------------------------


def print_summary(results: List[ShopResult]) -> None:
    """Print a formatted summary table of all crawl results.

    Args:
        results: List of ShopResult objects.
    """
    print("\n" + "=" * 60)
    print("  Crawl summary")
    print("=" * 60)
    print(f"{'Shop':<16} {'Pages':>6} {'Sent':>6} {'Failed':>6} {'Time':>8}  Status")
    print("-" * 60)

    total_pages = total_sent = total_failed = 0

    for r in results:
        status = "aborted" if r.aborted else ("ok" if not r.error else "error")
        print(
            f"{r.shop_slug:<16} "
            f"{r.pages_fetched:>6} "
            f"{r.offers_published:>6} "
            f"{r.publish_failures:>6} "
            f"{r.elapsed_seconds:>7.1f}s  "
            f"{status}"
        )
        total_pages += r.pages_fetched
        total_sent += r.offers_published
        total_failed += r.publish_failures

    print("-" * 60)
    print(f"{'Total':<16} {total_pages:>6} {total_sent:>6} {total_failed:>6}")
    print("=" * 60)

    errors = [(r.shop_slug, r.error) for r in results if r.error]
    if errors:
        print("\n[errors]")
        for slug, err in errors:
            print(f"  {slug}: {err}")
