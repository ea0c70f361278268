"""
Port interfaces for RoadSafe hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the alert engine and external collaborators.
"""

from .location import LocationCallback, LocationPort
from .providers import DirectionsPort, PlacesPort, TrafficPort
from .notify import AlertSinkPort
from .kvstore import KVStorePort

__all__ = [
    "LocationCallback", "LocationPort", "DirectionsPort", "PlacesPort", "TrafficPort",
    "AlertSinkPort", "KVStorePort",
]
