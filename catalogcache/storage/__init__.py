"""Persistent store and storage media for the catalog cache."""

from .store import (
    PersistentStore,
    StorageError,
    StorageMedium,
    MemoryMedium,
    FileMedium,
)

__all__ = [
    "PersistentStore",
    "StorageError",
    "StorageMedium",
    "MemoryMedium",
    "FileMedium",
]
