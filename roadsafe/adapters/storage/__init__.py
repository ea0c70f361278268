"""
Storage adapters for RoadSafe.

This module contains the session store implementations.
"""
from .sqlite_kv import SQLiteKVStore
from .memory import InMemoryKVStore

__all__ = ["SQLiteKVStore", "InMemoryKVStore"]
