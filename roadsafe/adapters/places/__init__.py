"""Places adapters for RoadSafe."""
from .static_file import StaticPlacesProvider, load_places

__all__ = ["StaticPlacesProvider", "load_places"]
