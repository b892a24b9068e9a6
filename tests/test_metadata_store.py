"""Unit tests for MetadataStore operations."""

import logging
import threading
from unittest.mock import MagicMock

import pytest

from common.protocol import NodeKind
from mirror.exceptions import StoreIOError
from mirror.metadata_store import MetadataStore
from mirror.models import InodeUpdate, MetadataRecord
from mirror.path_codec import InodePath


def _dir(path, usage=0):
    return MetadataRecord(path=InodePath.parse(path), kind=NodeKind.DIRECTORY, disk_usage=usage)


def _file(path, size):
    return MetadataRecord(path=InodePath.parse(path), kind=NodeKind.FILE, size=size, disk_usage=size)


@pytest.fixture
def populated_store(store):
    """
    Store holding:

        /           15
        /a          15
        /a/b        10
        /a/b/g      10
        /a/f         5
    """
    store.insert_many([
        _file("/a/b/g", 10),
        _dir("/a/b", 10),
        _file("/a/f", 5),
        _dir("/a", 15),
        _dir("/", 15),
    ])
    return store


class TestReads:
    """Test lock-free read helpers."""

    def test_get_missing_returns_none(self, store):
        assert store.get(InodePath.parse("/nothing")) is None

    def test_get_existing(self, populated_store):
        record = populated_store.get(InodePath.parse("/a/b/g"))

        assert record.size == 10
        assert record.name == "g"

    def test_children_sorted_by_name(self, populated_store):
        children = populated_store.children(InodePath.parse("/a"))

        assert [c.name for c in children] == ["b", "f"]

    def test_ancestors_root_first(self, populated_store):
        ancestors = populated_store.ancestors(InodePath.parse("/a/b/g"))

        assert [str(a.path) for a in ancestors] == ["/", "/a", "/a/b"]
        assert populated_store.ancestors(InodePath.root()) == []

    def test_count(self, populated_store):
        assert populated_store.count() == 5


class TestWrites:
    """Test mutating operations."""

    def test_upsert_inserts_then_replaces(self, store):
        record = _file("/x", 1)
        store.upsert(record)

        replacement = _file("/x", 9)
        replacement.id = record.id
        store.upsert(replacement)

        assert store.count() == 1
        assert store.get(InodePath.parse("/x")).size == 9

    def test_delete_is_recursive(self, populated_store):
        deleted = populated_store.delete(InodePath.parse("/a/b"))

        assert deleted == 2
        assert populated_store.get(InodePath.parse("/a/b/g")) is None
        assert populated_store.get(InodePath.parse("/a/f")) is not None

    def test_delete_root_removes_everything(self, populated_store):
        assert populated_store.delete(InodePath.root()) == 5
        assert populated_store.count() == 0

    def test_rename_moves_subtree(self, populated_store):
        original_id = populated_store.get(InodePath.parse("/a/b/g")).id

        renamed = populated_store.rename(InodePath.parse("/a/b"), InodePath.parse("/a/c"))

        assert renamed == 2
        assert populated_store.get(InodePath.parse("/a/b")) is None
        moved = populated_store.get(InodePath.parse("/a/c/g"))
        assert moved.id == original_id
        assert populated_store.get(InodePath.parse("/a/c")).name == "c"

    def test_update_sets_fields(self, populated_store):
        path = InodePath.parse("/a/f")

        assert populated_store.update(path, InodeUpdate(owner="bob", modification_time=77))

        record = populated_store.get(path)
        assert record.owner == "bob"
        assert record.modification_time == 77
        assert record.size == 5

    def test_empty_update_performs_no_writes(self, caplog):
        collection = MagicMock()
        store = MetadataStore(collection)

        with caplog.at_level(logging.WARNING):
            assert store.update(InodePath.parse("/a"), InodeUpdate(size=0)) is False

        assert collection.method_calls == []
        assert "update set is empty" in caplog.text

    def test_propagate_disk_usage(self, populated_store):
        modified = populated_store.propagate_disk_usage(InodePath.parse("/a/b/g"), 4)

        assert modified == 3
        assert populated_store.get(InodePath.root()).disk_usage == 19
        assert populated_store.get(InodePath.parse("/a")).disk_usage == 19
        assert populated_store.get(InodePath.parse("/a/b")).disk_usage == 14
        assert populated_store.get(InodePath.parse("/a/b/g")).disk_usage == 10

    def test_propagate_skips_zero_delta_and_root(self):
        collection = MagicMock()
        store = MetadataStore(collection)

        assert store.propagate_disk_usage(InodePath.parse("/a"), 0) == 0
        assert store.propagate_disk_usage(InodePath.root(), 5) == 0
        assert collection.method_calls == []

    def test_unacknowledged_write_raises(self):
        collection = MagicMock()
        collection.delete_many.return_value.acknowledged = False
        store = MetadataStore(collection)

        with pytest.raises(StoreIOError):
            store.delete(InodePath.parse("/a"))

    def test_lock_is_released_after_failure(self):
        collection = MagicMock()
        collection.replace_one.side_effect = RuntimeError("boom")
        store = MetadataStore(collection)

        with pytest.raises(RuntimeError):
            store.upsert(_file("/x", 1))

        acquired = []

        def try_lock():
            if store._modification_lock.acquire(blocking=False):
                acquired.append(True)
                store._modification_lock.release()

        worker = threading.Thread(target=try_lock)
        worker.start()
        worker.join()

        assert acquired == [True]
