"""
Persistent key-value store for the catalog cache.

The store maps namespaced keys to JSON documents held by a StorageMedium.
It separates:
- Medium: where bytes live (memory, a directory of files, a Postgres table)
- Store: how collections are encoded, decoded and guarded

Key principles:
- Reads never raise: corrupt or unreadable data reads as an empty collection
- Writes raise StorageError so callers can abort and let the user retry
- Values are sanitized before encoding (None and binary payloads are dropped)
"""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the storage medium rejects a write (quota, disabled, I/O)."""


class StorageMedium:
    """
    Abstract storage medium interface.

    Implement this interface with the actual backing store. Values are
    already-encoded JSON strings; the medium never interprets them.
    """

    def get(self, key: str) -> Optional[str]:
        """
        Return the raw value stored under key, or None if absent.

        Raises:
            StorageError: If the medium cannot be read
        """
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageError: If the medium rejects the write
        """
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove key if present."""
        raise NotImplementedError


class MemoryMedium(StorageMedium):
    """
    In-process medium, used by tests and short-lived sessions.

    `quota_bytes` mimics the browser storage quota: a write that would grow
    the total size of keys plus values beyond the quota is rejected and the
    previous value is kept.
    """

    def __init__(self, quota_bytes: Optional[int] = None, enabled: bool = True):
        self.quota_bytes = quota_bytes
        self.enabled = enabled
        self._data: Dict[str, str] = {}

    def _size_with(self, key: str, value: str) -> int:
        size = len(key) + len(value)
        for existing_key, existing_value in self._data.items():
            if existing_key != key:
                size += len(existing_key) + len(existing_value)
        return size

    def get(self, key: str) -> Optional[str]:
        if not self.enabled:
            raise StorageError("Storage is disabled")
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not self.enabled:
            raise StorageError("Storage is disabled")
        if self.quota_bytes is not None and self._size_with(key, value) > self.quota_bytes:
            raise StorageError(
                f"Storage quota exceeded writing '{key}' "
                f"(quota: {self.quota_bytes} bytes)"
            )
        self._data[key] = value

    def delete(self, key: str) -> None:
        if not self.enabled:
            raise StorageError("Storage is disabled")
        self._data.pop(key, None)


class FileMedium(StorageMedium):
    """Stores each key as one JSON file inside a directory."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='.-_')}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read '{key}' from {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file, then swap, so readers never see half a document
            fd, tmp_name = tempfile.mkstemp(dir=str(self.directory), suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write '{key}' to {path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e


def _sanitize_for_storage(value: Any) -> Any:
    """
    Drop values that cannot or should not be persisted.

    None values are removed from mappings and lists, binary payloads (file
    contents a form may still hold) are removed, everything else is kept.
    Tuples are stored as lists.
    """
    if isinstance(value, dict):
        output = {}
        for key, nested in value.items():
            sanitized = _sanitize_for_storage(nested)
            if sanitized is not None:
                output[str(key)] = sanitized
        return output
    if isinstance(value, (list, tuple)):
        return [
            sanitized for sanitized in (_sanitize_for_storage(item) for item in value)
            if sanitized is not None
        ]
    if isinstance(value, (bytes, bytearray, memoryview)):
        return None
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    # Unknown objects are not JSON-compatible
    return None


class PersistentStore:
    """
    Namespaced JSON store over a StorageMedium.

    All operations are synchronous. Read-modify-write sequences that must not
    interleave should run inside `locked(key)`.
    """

    def __init__(self, medium: StorageMedium, namespace: str = "t4s.catalog.v1"):
        self.medium = medium
        self.namespace = namespace
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}.{key}" if self.namespace else key

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """Hold the per-key lock for the duration of the block."""
        with self._locks_guard:
            lock = self._locks.setdefault(key, threading.RLock())
        with lock:
            yield

    def _read_raw(self, key: str) -> Optional[str]:
        full_key = self._full_key(key)
        try:
            return self.medium.get(full_key)
        except StorageError as e:
            logger.error(f"Failed to read '{full_key}': {e}")
            return None

    def read(self, key: str) -> List[Any]:
        """
        Read the collection stored under key.

        Never raises. Missing keys, corrupt JSON and non-list payloads all read
        as an empty list; the stale raw value is never returned.

        Args:
            key: Collection name (without namespace)

        Returns:
            List of decoded JSON items
        """
        raw = self._read_raw(key)
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.error(f"Failed to parse cached collection '{self._full_key(key)}': {e}")
            return []

        if not isinstance(parsed, list):
            logger.error(
                f"Cached collection '{self._full_key(key)}' is not a list "
                f"(found {type(parsed).__name__}), ignoring it"
            )
            return []

        return parsed

    def write(self, key: str, collection: List[Any]) -> None:
        """
        Persist a collection under key, replacing the previous one.

        Raises:
            StorageError: If the medium rejects the write
        """
        self.write_value(key, list(collection))

    def read_value(self, key: str) -> Any:
        """Read any JSON value under key; None when missing or corrupt."""
        raw = self._read_raw(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.error(f"Failed to parse cached value '{self._full_key(key)}': {e}")
            return None

    def write_value(self, key: str, value: Any) -> None:
        full_key = self._full_key(key)
        payload = json.dumps(_sanitize_for_storage(value))
        try:
            self.medium.set(full_key, payload)
        except StorageError as e:
            logger.error(f"Failed to write '{full_key}': {e}")
            raise

    def remove(self, key: str) -> None:
        full_key = self._full_key(key)
        try:
            self.medium.delete(full_key)
        except StorageError as e:
            logger.error(f"Failed to remove '{full_key}': {e}")
            raise
