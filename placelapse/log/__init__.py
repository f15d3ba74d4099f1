"""
Placement event storage.

This module provides:
- EventStore: Abstract interface for event storage
- SqliteEventStore: SQLite-backed store (one row per event)
"""

from .store import EventStore
from .sqlite_store import SqliteEventStore, StoreStats

__all__ = [
    "EventStore",
    "SqliteEventStore",
    "StoreStats",
]
