"""Unit tests for inode records and sparse updates."""

import pytest

from common.protocol import CreateEvent, FileStatus, NodeKind
from mirror.models import InodeUpdate, MetadataRecord
from mirror.path_codec import InodePath


def _record(path="/a/f", kind=NodeKind.FILE, size=10):
    return MetadataRecord(
        path=InodePath.parse(path),
        kind=kind,
        access_time=1000,
        modification_time=2000,
        size=size,
        disk_usage=size,
        block_size=128,
        replication_factor=3,
        owner="hdfs",
        group="supergroup",
        permission="644",
    )


class TestMetadataRecord:
    """Test MetadataRecord conversions."""

    def test_name_defaults_to_last_segment(self):
        assert _record("/a/b/file.txt").name == "file.txt"
        assert MetadataRecord(path=InodePath.root(), kind=NodeKind.DIRECTORY).name == ""

    def test_negative_disk_usage_rejected(self):
        with pytest.raises(ValueError):
            MetadataRecord(path=InodePath.parse("/a"), kind=NodeKind.FILE, disk_usage=-1)

    def test_document_round_trip(self):
        record = _record()

        restored = MetadataRecord.from_document(record.to_document())

        assert restored == record

    def test_document_layout(self):
        document = _record().to_document()

        assert document["path"] == {"depth": 2, "0": "a", "1": "f"}
        assert document["diskUsage"] == 10
        assert document["replicationFactor"] == 3
        assert document["type"] == "FILE"

    def test_from_document_ignores_store_id(self):
        document = _record().to_document()
        document["_id"] = "object-id"

        assert MetadataRecord.from_document(document).id == document["id"]

    def test_from_status(self):
        status = FileStatus(
            path="/data/x.csv",
            kind=NodeKind.FILE,
            length=42,
            block_size=64,
            replication=2,
            owner="alice",
            group="users",
            permission="600",
            modification_time=5,
            access_time=4,
        )

        record = MetadataRecord.from_status(status)

        assert record.path == InodePath.parse("/data/x.csv")
        assert record.size == 42
        assert record.disk_usage == 42
        assert record.replication_factor == 2
        assert record.name == "x.csv"

    def test_from_create_event(self):
        event = CreateEvent(path="/d", inode_type=NodeKind.DIRECTORY, ctime=7, owner="bob")

        record = MetadataRecord.from_create_event(event)

        assert record.is_directory
        assert record.modification_time == 7
        assert record.disk_usage == 0

    def test_with_path_keeps_id_and_renames(self):
        record = _record("/a/f")

        moved = record.with_path(InodePath.parse("/b/g"))

        assert moved.id == record.id
        assert moved.name == "g"
        assert record.path == InodePath.parse("/a/f")

    def test_ids_are_unique(self):
        assert _record().id != _record().id


class TestInodeUpdate:
    """Test the sentinel rule of sparse updates."""

    def test_empty_update(self):
        update = InodeUpdate()

        assert update.is_empty()
        assert update.to_update() is None

    def test_zero_and_negative_numbers_are_not_written(self):
        update = InodeUpdate(size=0, disk_usage=-5, modification_time=0)

        assert update.is_empty()

    def test_positive_numbers_are_written(self):
        update = InodeUpdate(size=12, disk_usage=12, modification_time=99)

        assert update.to_update() == {
            "$set": {"size": 12, "diskUsage": 12, "modificationTime": 99}
        }

    def test_empty_string_is_written_but_none_is_not(self):
        update = InodeUpdate(owner="", group=None)

        assert update.fields() == {"owner": ""}
