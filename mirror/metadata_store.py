"""
Metadata store over the inode collection.

Every structural mutation runs under one process-wide modification lock, so
writes are serialized regardless of which part of the tree they touch. Reads
do not take the lock.
"""

import threading
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

from pymongo import ASCENDING
from pymongo.collection import Collection

from common.logging_config import get_logger
from mirror import path_codec
from mirror.exceptions import StoreIOError
from mirror.models import FIELD_DISK_USAGE, InodeUpdate, MetadataRecord
from mirror.path_codec import FIELD_DEPTH, FIELD_PATH, InodePath

logger = get_logger(__name__)


def _millis(start: float, end: float) -> float:
    return (end - start) * 1000.0


class MetadataStore:
    """
    Wrapper on the inode collection providing file system style operations.

    Rename and delete touch many documents and are not atomic: a failure in
    the middle leaves the subtree partially renamed or partially deleted.
    """

    def __init__(self, collection: Collection):
        """
        Args:
            collection: Collection holding inode documents
        """
        self._collection = collection
        self._modification_lock = threading.RLock()

    @property
    def collection(self) -> Collection:
        return self._collection

    @contextmanager
    def _timed(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            logger.info(f"{operation} operation took {_millis(start, time.perf_counter()):.3f} ms")

    @contextmanager
    def _locked(self, operation: str) -> Iterator[None]:
        with self._modification_lock:
            with self._timed(operation):
                yield

    def get(self, path: InodePath) -> Optional[MetadataRecord]:
        """
        Get the record for a path, or None if the path is not mirrored.
        """
        document = self._collection.find_one(path_codec.exact_predicate(path))
        if document is None:
            return None
        return MetadataRecord.from_document(document)

    def children(self, path: InodePath) -> List[MetadataRecord]:
        """Immediate children of a directory, ordered by name."""
        cursor = self._collection.find(path_codec.children_predicate(path)).sort("name", ASCENDING)
        return [MetadataRecord.from_document(document) for document in cursor]

    def ancestors(self, path: InodePath) -> List[MetadataRecord]:
        """Mirrored strict ancestors of a path, root first."""
        predicate = path_codec.ancestors_predicate(path)
        if predicate is None:
            return []
        cursor = self._collection.find(predicate).sort(f"{FIELD_PATH}.{FIELD_DEPTH}", ASCENDING)
        return [MetadataRecord.from_document(document) for document in cursor]

    def count(self) -> int:
        return self._collection.count_documents({})

    def insert_many(self, records: List[MetadataRecord]) -> None:
        """
        Bulk insert records that are known not to exist yet (initial indexing).
        """
        if not records:
            return
        with self._locked("Insert"):
            result = self._collection.insert_many([record.to_document() for record in records])
            if not result.acknowledged:
                raise StoreIOError(f"Failed to insert {len(records)} nodes, result was not acknowledged")
            logger.debug(f"Inserted {len(result.inserted_ids)} nodes")

    def upsert(self, record: MetadataRecord) -> None:
        """
        Insert the record, replacing any record that already exists at its path.

        Raises:
            StoreIOError: If the write is not acknowledged
        """
        with self._locked("Upsert"):
            result = self._collection.replace_one(
                path_codec.exact_predicate(record.path),
                record.to_document(),
                upsert=True
            )
            if not result.acknowledged:
                raise StoreIOError(f"Failed to insert path {record.path}, result was not acknowledged")
            logger.info(
                f"Inserted node {record.path} with id {record.id}, "
                f"upserted_id={result.upserted_id}, modified count {result.modified_count}"
            )

    def delete(self, path: InodePath) -> int:
        """
        Delete a path and all of its descendants.

        Returns:
            Number of deleted records

        Raises:
            StoreIOError: If the delete is not acknowledged
        """
        with self._locked("Delete"):
            result = self._collection.delete_many(path_codec.subtree_predicate(path))
            if not result.acknowledged:
                raise StoreIOError(f"Failed to delete path {path}, result was not acknowledged")
            logger.info(f"Deleted {result.deleted_count} nodes for path {path}")
            return result.deleted_count

    def rename(self, src_path: InodePath, dst_path: InodePath) -> int:
        """
        Move every record under src_path to the same relative place under dst_path.

        Records are rewritten one by one.

        Returns:
            Number of renamed records

        Raises:
            StoreIOError: If any replace is not acknowledged
        """
        with self._locked("Rename"):
            documents = list(self._collection.find(path_codec.subtree_predicate(src_path)))
            for document in documents:
                record = MetadataRecord.from_document(document)
                old_path = record.path
                renamed = record.with_path(path_codec.rewrite_prefix(old_path, src_path, dst_path))
                result = self._collection.replace_one(
                    path_codec.exact_predicate(old_path),
                    renamed.to_document()
                )
                if not result.acknowledged:
                    raise StoreIOError(
                        f"Failed to update node {old_path} -> {renamed.path}, result was not acknowledged"
                    )
                logger.debug(f"Updated node {old_path} -> {renamed.path}, modified count {result.modified_count}")
            logger.info(f"Updated {len(documents)} nodes from {src_path} to {dst_path}")
            return len(documents)

    def update(self, path: InodePath, update: InodeUpdate) -> bool:
        """
        Apply a partial update to the record at path.

        An update without any writable field is skipped without contacting
        the store.

        Returns:
            True if an update was sent to the store

        Raises:
            StoreIOError: If the update is not acknowledged
        """
        if update.is_empty():
            logger.warning(f"Update was ignored, because update set is empty for path {path}")
            return False
        document = update.to_update()
        with self._locked("Update"):
            result = self._collection.update_one(path_codec.exact_predicate(path), document)
            if not result.acknowledged:
                raise StoreIOError(f"Failed to update path {path} with update {document}")
            logger.info(f"Modified path {path} with update {document}, modified count {result.modified_count}")
            return True

    def propagate_disk_usage(self, path: InodePath, delta: int) -> int:
        """
        Add delta to the disk usage of every strict ancestor of path.

        Returns:
            Number of ancestor records modified
        """
        predicate = path_codec.ancestors_predicate(path)
        if delta == 0 or predicate is None:
            return 0
        with self._locked("Propagate"):
            result = self._collection.update_many(predicate, {"$inc": {FIELD_DISK_USAGE: delta}})
            if not result.acknowledged:
                raise StoreIOError(f"Failed to propagate disk usage {delta} to ancestors of {path}")
            logger.info(f"Propagated disk usage {delta:+d} to {result.modified_count} ancestors of {path}")
            return result.modified_count
