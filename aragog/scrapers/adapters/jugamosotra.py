"""JugamosOtra scraper adapter.

Board game catalog (PrestaShop), 80 products per page, sorted by sales.

Structure: div.thumbnail-container
  - .product-title a (name and product link)
  - .product-price-and-shipping .price / .regular-price
  - li.product-flag.agotado when sold out (no other stock information)

Long names are shortened with "..." in the listing; ``detail_name`` makes the
base adapter read the full name from h1[itemprop=name] on the product page.
"""

from aragog.scrapers.base import BaseShopAdapter
from aragog.scrapers.models import ShopSelectorSet


class JugamosotraAdapter(BaseShopAdapter):
    """JugamosOtra board game catalog adapter."""

    shop_slug = "jugamosotra"
    shop_name = "JugamosOtra"
    start_url = "https://jugamosotra.com/es/24-juegos?order=product.sales.desc"
    page_size = 80
    empty_name_is_error = True

    selectors = ShopSelectorSet(
        entry="div.thumbnail-container",
        name=".product-title a",
        link=".product-title a",
        price=".product-price-and-shipping .price",
        regular_price=".product-price-and-shipping .regular-price",
        next_page="a.next",
        availability_flag_scope="li",
        availability_flags=(("product-flag agotado", "Agotado"),),
        default_availability="Disponible",
        detail_name="h1.h1[itemprop='name']",
    )
