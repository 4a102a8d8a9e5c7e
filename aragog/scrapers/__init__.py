"""Scraper system for crawling shop catalogs and publishing offers.

This package provides:
- The generic shop crawl pipeline and its data structures
- Extraction, pagination, fetching and publishing stages
- Shop-specific adapters and the factory that wires them
"""

from .base import BaseShopAdapter
from .factory import AdapterFactory
from .models import (
    CrawlCursor,
    CrawlReport,
    CrawlState,
    Extracted,
    Filtered,
    Missing,
    Offer,
    PublishOutcome,
    RawEntry,
    ShopSelectorSet,
)

__all__ = [
    # Base classes
    "BaseShopAdapter",
    # Data structures
    "Offer",
    "RawEntry",
    "ShopSelectorSet",
    "CrawlCursor",
    "CrawlReport",
    "CrawlState",
    "PublishOutcome",
    "Extracted",
    "Filtered",
    "Missing",
    # Factory
    "AdapterFactory",
]
