"""Command-line entry point.

Usage:
    # Crawl all shops
    aragog

    # Crawl a specific shop, about 200 items
    aragog --shop dungeonmarvels --limit 200

    # Several shops
    aragog --shop dracotienda --shop jugamosotra
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import structlog

from aragog.config import settings
from aragog.runner import print_summary, run_shops
from aragog.scrapers.base import DEFAULT_ITEM_LIMIT
from aragog.scrapers.register_adapters import SHOP_ADAPTERS
from aragog.telemetry import init_telemetry, shutdown_telemetry

log = structlog.get_logger("aragog")

ALL_SHOPS = "all"


def known_shops() -> List[str]:
    return [slug for slug, _ in SHOP_ADAPTERS]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed Namespace object.
    """
    parser = argparse.ArgumentParser(
        prog="aragog",
        description="Crawl board game shop catalogs and publish their offers to the backend.",
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_ITEM_LIMIT,
        help=(
            "Approximate number of items per shop (default: %(default)s). "
            "Bounds the number of listing pages fetched."
        ),
    )

    parser.add_argument(
        "--shop",
        action="append",
        dest="shops",
        metavar="SHOP_SLUG",
        help=(
            "Shop to crawl (may be given several times). "
            f"Choices: {ALL_SHOPS}, {', '.join(known_shops())}. "
            "Defaults to all shops."
        ),
    )

    return parser.parse_args(argv)


def resolve_shops(requested: Optional[List[str]]) -> List[str]:
    """Expand the --shop arguments into a list of shop slugs.

    Raises:
        ValueError: If an unknown slug is given
    """
    if not requested or ALL_SHOPS in requested:
        return known_shops()

    unknown = [s for s in requested if s not in known_shops()]
    if unknown:
        raise ValueError(f"Unknown shop(s): {', '.join(unknown)}")

    # Keep order, drop duplicates
    return list(dict.fromkeys(requested))


def main(argv: Optional[List[str]] = None) -> int:
    """Run the crawler.

    Returns:
        Process exit status: 1 if any crawl aborted, 0 otherwise
    """
    args = parse_args(argv)

    try:
        shops = resolve_shops(args.shops)
    except ValueError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        print(f"        Valid shops: {', '.join(known_shops())}", file=sys.stderr)
        return 2

    if args.limit <= 0:
        print("[error] --limit must be positive", file=sys.stderr)
        return 2

    init_telemetry(settings)
    try:
        results = asyncio.run(run_shops(shops, item_limit=args.limit, settings=settings))
    except KeyboardInterrupt:
        log.warning("run_interrupted")
        return 130
    finally:
        shutdown_telemetry()

    print_summary(results)
    return 1 if any(r.aborted for r in results) else 0


if __name__ == "__main__":
    sys.exit(main())
