"""Snapshot storage backends."""

from distrovitals.storage.base import DistributionNotFoundError, SnapshotStore, StoreError
from distrovitals.storage.sqlite import SQLiteStore

__all__ = ["DistributionNotFoundError", "SnapshotStore", "SQLiteStore", "StoreError"]
