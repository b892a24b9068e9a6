"""Initial full index of the namespace into the metadata store."""

import time
from dataclasses import dataclass
from typing import List

from common.logging_config import get_logger
from common.protocol import NodeKind
from mirror.exceptions import NotADirectoryError
from mirror.metadata_store import MetadataStore
from mirror.models import MetadataRecord
from mirror.path_codec import InodePath
from sources.base import NamespaceSource

logger = get_logger(__name__)


@dataclass
class IndexStats:
    """Counters collected during one indexing run."""
    directories: int = 0
    files: int = 0
    symlinks: int = 0
    total_bytes: int = 0
    elapsed_ms: float = 0.0

    @property
    def records(self) -> int:
        return self.directories + self.files + self.symlinks


class TreeIndexer:
    """
    Walks the namespace depth first and stores one record per entry.

    Children are written before their directory, so a directory record always
    carries the final aggregated disk usage of its subtree.
    """

    def __init__(self, namespace: NamespaceSource, store: MetadataStore):
        self.namespace = namespace
        self.store = store

    def index(self, root: str = "/") -> IndexStats:
        """
        Index the subtree rooted at `root`.

        Raises:
            NotADirectoryError: If root is not a directory
            PathNotFoundError: If root does not exist
        """
        root_path = InodePath.parse(root)
        status = self.namespace.status_of(str(root_path))
        if not status.is_directory:
            raise NotADirectoryError(f"Expected directory for path {root_path}")

        stats = IndexStats()
        start = time.perf_counter()
        logger.info(f"Start indexing from {root_path}")

        record = self._index_directory(MetadataRecord.from_status(status), stats)

        stats.total_bytes = record.disk_usage
        stats.elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            f"Indexing took {stats.elapsed_ms:.3f} ms: {stats.directories} directories, "
            f"{stats.files} files, {stats.symlinks} symlinks, {stats.total_bytes} bytes"
        )
        return stats

    def _index_directory(self, directory: MetadataRecord, stats: IndexStats) -> MetadataRecord:
        staged: List[MetadataRecord] = []
        disk_usage = 0

        for child_status in self.namespace.list_directory(str(directory.path)):
            child = MetadataRecord.from_status(child_status)
            if child.is_directory:
                child = self._index_directory(child, stats)
            else:
                if child.kind == NodeKind.SYMLINK:
                    stats.symlinks += 1
                else:
                    stats.files += 1
                staged.append(child)
            disk_usage += child.disk_usage

        directory.set_disk_usage(disk_usage)
        staged.append(directory)
        self.store.insert_many(staged)
        stats.directories += 1
        logger.debug(f"Indexed {directory.path} ({len(staged) - 1} entries, {disk_usage} bytes)")
        return directory
