"""Google Maps adapters for RoadSafe."""
from .client import GoogleMapsClient

__all__ = ["GoogleMapsClient"]
