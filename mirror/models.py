"""Inode record and partial-update definitions for the mirrored namespace."""

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from common.protocol import CreateEvent, FileStatus, NodeKind
from mirror import path_codec
from mirror.path_codec import InodePath

FIELD_ID = "id"
FIELD_ACCESS_TIME = "accessTime"
FIELD_MODIFICATION_TIME = "modificationTime"
FIELD_SIZE = "size"
FIELD_DISK_USAGE = "diskUsage"
FIELD_BLOCK_SIZE = "blockSize"
FIELD_REPLICATION_FACTOR = "replicationFactor"
FIELD_OWNER = "owner"
FIELD_GROUP = "group"
FIELD_PERMISSION = "permission"
FIELD_NAME = "name"
FIELD_TYPE = "type"
FIELD_PATH = path_codec.FIELD_PATH


def generate_inode_id() -> str:
    """Generate a globally unique inode id."""
    return str(uuid.uuid4())


@dataclass
class MetadataRecord:
    """
    Stored representation of one namespace entry.

    disk_usage equals size for files and symlinks, and the sum over the whole
    subtree for directories.
    """
    path: InodePath
    kind: NodeKind
    access_time: int = 0
    modification_time: int = 0
    size: int = 0
    disk_usage: int = 0
    block_size: int = 0
    replication_factor: int = 0
    owner: str = ""
    group: str = ""
    permission: str = ""
    name: str = ""
    id: str = field(default_factory=generate_inode_id)

    def __post_init__(self):
        if self.disk_usage < 0:
            raise ValueError(f"Negative disk usage {self.disk_usage} for {self.path}")
        if not self.name:
            self.name = self.path.name

    @classmethod
    def from_status(cls, status: FileStatus) -> "MetadataRecord":
        """Build a record from a namespace status entry; disk usage starts at size."""
        path = InodePath.parse(status.path)
        return cls(
            path=path,
            kind=status.kind,
            access_time=status.access_time,
            modification_time=status.modification_time,
            size=status.length,
            disk_usage=status.length,
            block_size=status.block_size,
            replication_factor=status.replication,
            owner=status.owner,
            group=status.group,
            permission=status.permission,
            name=path.name,
        )

    @classmethod
    def from_create_event(cls, event: CreateEvent) -> "MetadataRecord":
        """Build a record from a CREATE payload when the namespace status is unavailable."""
        path = InodePath.parse(event.path)
        return cls(
            path=path,
            kind=event.inode_type,
            access_time=event.ctime,
            modification_time=event.ctime,
            block_size=event.block_size,
            replication_factor=event.replication,
            owner=event.owner,
            group=event.group,
            permission=event.permission,
            name=path.name,
        )

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.DIRECTORY

    def set_disk_usage(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"Negative bytes {value} in disk usage")
        self.disk_usage = value

    def with_path(self, path: InodePath) -> "MetadataRecord":
        """Copy of this record relocated to `path` (same id)."""
        return replace(self, path=path, name=path.name)

    def to_document(self) -> Dict[str, Any]:
        """Convert into the persisted document layout."""
        return {
            FIELD_ID: self.id,
            FIELD_ACCESS_TIME: self.access_time,
            FIELD_MODIFICATION_TIME: self.modification_time,
            FIELD_SIZE: self.size,
            FIELD_DISK_USAGE: self.disk_usage,
            FIELD_BLOCK_SIZE: self.block_size,
            FIELD_REPLICATION_FACTOR: self.replication_factor,
            FIELD_OWNER: self.owner,
            FIELD_GROUP: self.group,
            FIELD_PERMISSION: self.permission,
            FIELD_NAME: self.name,
            FIELD_TYPE: self.kind.value,
            FIELD_PATH: path_codec.encode(self.path),
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "MetadataRecord":
        """Rebuild a record from a stored document; the store's _id is ignored."""
        return cls(
            id=document[FIELD_ID],
            path=path_codec.decode(document[FIELD_PATH]),
            kind=NodeKind(document[FIELD_TYPE]),
            access_time=document.get(FIELD_ACCESS_TIME, 0),
            modification_time=document.get(FIELD_MODIFICATION_TIME, 0),
            size=document.get(FIELD_SIZE, 0),
            disk_usage=document.get(FIELD_DISK_USAGE, 0),
            block_size=document.get(FIELD_BLOCK_SIZE, 0),
            replication_factor=document.get(FIELD_REPLICATION_FACTOR, 0),
            owner=document.get(FIELD_OWNER, ""),
            group=document.get(FIELD_GROUP, ""),
            permission=document.get(FIELD_PERMISSION, ""),
            name=document.get(FIELD_NAME, ""),
        )


@dataclass
class InodeUpdate:
    """
    Sparse set of field assignments for an existing record.

    A numeric field is written only when > 0 and a string field only when it
    is not None, so zero can never be written through an update.
    """
    access_time: int = 0
    modification_time: int = 0
    replication_factor: int = 0
    size: int = 0
    disk_usage: int = 0
    owner: Optional[str] = None
    group: Optional[str] = None
    permission: Optional[str] = None

    def fields(self) -> Dict[str, Any]:
        """Document fields this update would assign."""
        assignments: Dict[str, Any] = {}
        if self.access_time > 0:
            assignments[FIELD_ACCESS_TIME] = self.access_time
        if self.modification_time > 0:
            assignments[FIELD_MODIFICATION_TIME] = self.modification_time
        if self.replication_factor > 0:
            assignments[FIELD_REPLICATION_FACTOR] = self.replication_factor
        if self.size > 0:
            assignments[FIELD_SIZE] = self.size
        if self.disk_usage > 0:
            assignments[FIELD_DISK_USAGE] = self.disk_usage
        if self.owner is not None:
            assignments[FIELD_OWNER] = self.owner
        if self.group is not None:
            assignments[FIELD_GROUP] = self.group
        if self.permission is not None:
            assignments[FIELD_PERMISSION] = self.permission
        return assignments

    def is_empty(self) -> bool:
        return not self.fields()

    def to_update(self) -> Optional[Dict[str, Any]]:
        """Store update document, or None when there is nothing to write."""
        assignments = self.fields()
        if not assignments:
            return None
        return {"$set": assignments}
