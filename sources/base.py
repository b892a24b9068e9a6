"""Interfaces consumed by the indexer and the event processor."""

from typing import List, Optional, Protocol

from common.protocol import EventBatch, FileStatus


class NamespaceSource(Protocol):
    """Read access to the live namespace."""

    def list_directory(self, path: str) -> List[FileStatus]:
        """Statuses of the immediate children of a directory."""
        ...

    def status_of(self, path: str) -> FileStatus:
        """Status of a single entry; raises PathNotFoundError if it does not exist."""
        ...


class ChangeEventSource(Protocol):
    """Ordered stream of namespace change notifications."""

    def poll(self) -> Optional[EventBatch]:
        """Next available batch, or None without blocking when nothing is pending."""
        ...
