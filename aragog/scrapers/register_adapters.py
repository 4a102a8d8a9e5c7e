"""Register all shop adapters with a factory.

Call ``register_all_adapters(factory)`` before creating adapters.
"""

import structlog

from aragog.scrapers.adapters import (
    DracotiendaAdapter,
    DungeonMarvelsAdapter,
    JugamosotraAdapter,
)
from aragog.scrapers.factory import AdapterFactory

logger = structlog.get_logger(__name__)

SHOP_ADAPTERS = [
    ("dracotienda", DracotiendaAdapter),
    ("jugamosotra", JugamosotraAdapter),
    ("dungeonmarvels", DungeonMarvelsAdapter),
]


def register_all_adapters(factory: AdapterFactory) -> AdapterFactory:
    """Register every available adapter.

    Args:
        factory: Factory to fill

    Returns:
        The factory, for chaining
    """
    for shop_slug, adapter_class in SHOP_ADAPTERS:
        factory.register_adapter(shop_slug, adapter_class)

    logger.info(
        "all_adapters_registered",
        count=len(factory.get_registered_shops()),
        shops=factory.get_registered_shops(),
    )
    return factory
