"""Dracotienda scraper adapter.

Board game catalog, PrestaShop "laber" theme.

Structure: div.laberProduct-container
  - h2.productName (name, first text node; empty placeholders exist)
  - a (product link)
  - span.price (current price)
  - span.regular-price (pre-discount price, only on discounted items)
"""

from aragog.scrapers.base import BaseShopAdapter
from aragog.scrapers.models import ShopSelectorSet


class DracotiendaAdapter(BaseShopAdapter):
    """Dracotienda board game catalog adapter."""

    shop_slug = "dracotienda"
    shop_name = "Dracotienda"
    start_url = "https://dracotienda.com/1715-juegos-de-tablero"
    page_size = 24

    # The listing pads the grid with fragments that have no name
    empty_name_is_error = False

    selectors = ShopSelectorSet(
        entry="div.laberProduct-container",
        name="h2.productName",
        name_first_text_only=True,
        link="a",
        price="span.price",
        regular_price="span.regular-price",
        next_page="a.next",
        default_availability="Available",
    )
