"""Shop-specific adapter implementations.

Each adapter module implements a class that inherits from BaseShopAdapter
and supplies the shop's selectors, page size and markup quirks.
"""

from .dracotienda import DracotiendaAdapter
from .dungeonmarvels import DungeonMarvelsAdapter
from .jugamosotra import JugamosotraAdapter

__all__ = [
    "DracotiendaAdapter",
    "DungeonMarvelsAdapter",
    "JugamosotraAdapter",
]
