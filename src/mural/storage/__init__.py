"""Mural storage layer."""

from mural.storage.base import StorageBackend, StorageTransaction
from mural.storage.sqlite_store import SQLiteStore

__all__ = ["SQLiteStore", "StorageBackend", "StorageTransaction"]
