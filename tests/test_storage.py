"""
Unit tests for the persistent store and its storage media.

These tests verify that:
1. Reads never raise and never return corrupt data
2. Writes surface medium failures as StorageError
3. A rejected write leaves the previous value intact
"""

import json
import logging

import pytest

from catalogcache.storage import (
    PersistentStore,
    StorageError,
    MemoryMedium,
    FileMedium,
)
from catalogcache.storage.store import _sanitize_for_storage


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def medium():
    return MemoryMedium()


@pytest.fixture
def store(medium):
    return PersistentStore(medium, namespace="test")


# =============================================================================
# PERSISTENT STORE
# =============================================================================

class TestPersistentStore:

    def test_missing_key_reads_empty(self, store):
        assert store.read("products") == []

    def test_write_then_read(self, store):
        store.write("products", [{"id": "p1", "name": "Tote"}])
        assert store.read("products") == [{"id": "p1", "name": "Tote"}]

    def test_keys_are_namespaced(self, store, medium):
        store.write("components", [])
        assert medium.get("test.components") == "[]"

    def test_corrupt_json_reads_empty_and_logs(self, store, medium, caplog):
        medium.set("test.products", "{not json")
        with caplog.at_level(logging.ERROR, logger="catalogcache.storage.store"):
            assert store.read("products") == []
        assert "Failed to parse" in caplog.text

    def test_non_list_payload_reads_empty(self, store, medium):
        medium.set("test.products", json.dumps({"id": "p1"}))
        assert store.read("products") == []

    def test_disabled_medium_reads_empty(self, medium, store):
        store.write("products", [{"id": "p1"}])
        medium.enabled = False
        assert store.read("products") == []

    def test_disabled_medium_write_raises(self, medium, store):
        medium.enabled = False
        with pytest.raises(StorageError):
            store.write("products", [])

    def test_quota_exceeded_raises_and_keeps_previous_value(self):
        medium = MemoryMedium(quota_bytes=80)
        store = PersistentStore(medium, namespace="t")
        store.write("products", [{"id": "p1"}])

        with pytest.raises(StorageError):
            store.write("products", [{"id": "p1", "description": "x" * 200}])

        assert store.read("products") == [{"id": "p1"}]

    def test_write_drops_none_and_binary_values(self, store, medium):
        store.write("components", [{"id": "c1", "description": None, "photo": b"\x89PNG"}])
        assert json.loads(medium.get("test.components")) == [{"id": "c1"}]

    def test_read_value_write_value_remove(self, store):
        assert store.read_value("draft.product-creation") is None

        store.write_value("draft.product-creation", {"step": 2, "name": "Tote"})
        assert store.read_value("draft.product-creation") == {"step": 2, "name": "Tote"}

        store.remove("draft.product-creation")
        assert store.read_value("draft.product-creation") is None

    def test_read_value_corrupt_returns_none(self, store, medium):
        medium.set("test.draft.x", "][")
        assert store.read_value("draft.x") is None

    def test_locked_is_reentrant(self, store):
        with store.locked("products"):
            with store.locked("products"):
                store.write("products", [])
        assert store.read("products") == []


class TestSanitizeForStorage:

    def test_nested_values(self):
        value = {
            "items": [{"id": "a", "note": None}, None, {"id": "b", "blob": bytearray(b"x")}],
            "size": 3,
            "active": False,
        }
        assert _sanitize_for_storage(value) == {
            "items": [{"id": "a"}, {"id": "b"}],
            "size": 3,
            "active": False,
        }

    def test_tuples_become_lists(self):
        assert _sanitize_for_storage((1, 2)) == [1, 2]

    def test_unknown_objects_dropped(self):
        assert _sanitize_for_storage({"handle": object(), "ok": 1}) == {"ok": 1}


# =============================================================================
# FILE MEDIUM
# =============================================================================

class TestFileMedium:

    def test_round_trip(self, tmp_path):
        store = PersistentStore(FileMedium(str(tmp_path / "cache")), namespace="t4s.catalog.v1")
        store.write("products", [{"id": "p1"}])

        reopened = PersistentStore(FileMedium(str(tmp_path / "cache")), namespace="t4s.catalog.v1")
        assert reopened.read("products") == [{"id": "p1"}]

    def test_missing_file_reads_none(self, tmp_path):
        assert FileMedium(str(tmp_path)).get("nothing") is None

    def test_key_with_path_separators_stays_in_directory(self, tmp_path):
        medium = FileMedium(str(tmp_path))
        medium.set("draft/../escape", "1")
        assert medium.get("draft/../escape") == "1"
        assert [p.parent for p in tmp_path.iterdir()] == [tmp_path]

    def test_delete_missing_is_noop(self, tmp_path):
        FileMedium(str(tmp_path)).delete("nothing")

    def test_unwritable_directory_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        medium = FileMedium(str(blocker / "cache"))
        with pytest.raises(StorageError):
            medium.set("products", "[]")

    def test_corrupt_file_reads_empty(self, tmp_path):
        medium = FileMedium(str(tmp_path))
        medium.set("t.products", "garbage")
        assert PersistentStore(medium, namespace="t").read("products") == []
