"""Shared message definitions for the namespace source (status entries, change events)."""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class NodeKind(str, Enum):
    """Kind of a namespace entry."""
    DIRECTORY = "DIRECTORY"
    FILE = "FILE"
    SYMLINK = "SYMLINK"


class _JsonMessage(BaseModel):
    """Common JSON helpers for protocol messages."""

    def to_json(self) -> bytes:
        """Serialize to JSON bytes."""
        return self.model_dump_json().encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes):
        """Deserialize from JSON bytes."""
        return cls.model_validate_json(data)


class FileStatus(_JsonMessage):
    """Status of a single namespace entry as reported by the namespace source."""
    path: str
    kind: NodeKind
    length: int = 0
    block_size: int = 0
    replication: int = 0
    owner: str = ""
    group: str = ""
    permission: str = ""
    modification_time: int = 0
    access_time: int = 0
    symlink_target: Optional[str] = None

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.DIRECTORY


class AppendEvent(_JsonMessage):
    """Sent when an existing file is opened for append."""
    type: Literal["APPEND"] = "APPEND"
    path: str


class CloseEvent(_JsonMessage):
    """Sent when a file is closed after append or create."""
    type: Literal["CLOSE"] = "CLOSE"
    path: str
    file_size: int
    timestamp: int


class CreateEvent(_JsonMessage):
    """Sent when a new file, directory or symlink is created (including overwrite)."""
    type: Literal["CREATE"] = "CREATE"
    path: str
    inode_type: NodeKind
    ctime: int = 0
    owner: str = ""
    group: str = ""
    permission: str = ""
    replication: int = 0
    block_size: int = 0
    overwrite: bool = False
    symlink_target: Optional[str] = None


class MetadataUpdateEvent(_JsonMessage):
    """
    Sent when times, replication, ownership or permissions of an entry change.

    Fields not relevant to metadata_type carry their zero value or None.
    """
    type: Literal["METADATA_UPDATE"] = "METADATA_UPDATE"
    path: str
    metadata_type: str = "TIMES"
    atime: int = 0
    mtime: int = 0
    replication: int = 0
    owner: Optional[str] = None
    group: Optional[str] = None
    permission: Optional[str] = None


class RenameEvent(_JsonMessage):
    """Sent when a file, directory or symlink is renamed."""
    type: Literal["RENAME"] = "RENAME"
    src_path: str
    dst_path: str
    timestamp: int = 0


class UnlinkEvent(_JsonMessage):
    """Sent when a file, directory or symlink is deleted."""
    type: Literal["UNLINK"] = "UNLINK"
    path: str
    timestamp: int = 0


ChangeEvent = Annotated[
    Union[AppendEvent, CloseEvent, CreateEvent, MetadataUpdateEvent, RenameEvent, UnlinkEvent],
    Field(discriminator="type")
]

change_event_adapter = TypeAdapter(ChangeEvent)


class EventBatch(_JsonMessage):
    """Ordered group of events sharing one transaction id."""
    transaction_id: int
    events: List[ChangeEvent] = Field(default_factory=list)


def parse_event(data: dict):
    """
    Validate a raw event mapping into the matching ChangeEvent model.

    Args:
        data: Mapping with a 'type' discriminator

    Returns:
        One of the ChangeEvent models
    """
    return change_event_adapter.validate_python(data)
