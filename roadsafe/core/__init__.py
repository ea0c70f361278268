"""
Core domain models and pure logic for RoadSafe.

This module contains the domain models and the alert engine, which are
independent of external I/O and infrastructure concerns.
"""

from .models import (
    AlertCategory, AlertEvent, AlertState, Coordinate, Destination, Notice, POI,
    Position, Route, RouteStep, SessionState, TrafficEstimate,
)
from .errors import InvalidState, MalformedResponse, ProviderUnavailable, RoadSafeError
from .engine import AlertEngine

__all__ = [
    "AlertCategory", "AlertEvent", "AlertState", "Coordinate", "Destination", "Notice", "POI",
    "Position", "Route", "RouteStep", "SessionState", "TrafficEstimate",
    "InvalidState", "MalformedResponse", "ProviderUnavailable", "RoadSafeError",
    "AlertEngine",
]
