"""RoadSafe geospatial driving alert service."""

__version__ = "0.1.0"
