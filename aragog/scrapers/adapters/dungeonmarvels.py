"""DungeonMarvels scraper adapter.

Board game catalog (PrestaShop), 24 products per page.

Structure: div.product-container
  - h2.product-title a (name)
  - div.thumbnail-container a.thumbnail (product link)
  - .price (current price), .regular-price (pre-discount price)
  - div.stock-product span.stock-tag (free text availability)
"""

from opentelemetry import trace

from aragog.scrapers.base import BaseShopAdapter
from aragog.scrapers.models import ExtractionResult, Extracted, Missing, RawEntry, ShopSelectorSet


class DungeonMarvelsAdapter(BaseShopAdapter):
    """DungeonMarvels board game catalog adapter."""

    shop_slug = "dungeonmarvels"
    shop_name = "DungeonMarvels"
    start_url = "https://dungeonmarvels.com/10-juegos-de-tablero"
    page_size = 24
    empty_name_is_error = False

    selectors = ShopSelectorSet(
        entry="div.product-container",
        name="h2.product-title a",
        link="div.thumbnail-container a.thumbnail",
        price=".price",
        regular_price=".regular-price",
        availability="div.stock-product span.stock-tag",
        next_page="a.next",
        default_availability="Available",
    )

    async def refine_entry(self, entry: RawEntry, page_url: str) -> ExtractionResult:
        """Drop entries whose listing title is truncated.

        DungeonMarvels cuts long titles with "..."; the truncated text would
        not match anything on the backend.
        """
        if self.name_normalizer.is_truncated(entry.name_text or ""):
            trace.get_current_span().set_attribute("error_detail", "dots_in_name")
            return Missing("name", f"truncated name {entry.name_text!r}")
        return Extracted(entry)
