"""Pydantic schemas for the read-only namespace endpoints."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from mirror.models import MetadataRecord


class InodeResponse(BaseModel):
    """Response model for a single mirrored inode."""
    id: str
    path: str
    name: str
    type: str
    size: int
    disk_usage: int
    access_time: int
    modification_time: int
    block_size: int
    replication_factor: int
    owner: str
    group: str
    permission: str

    @classmethod
    def from_record(cls, record: MetadataRecord) -> "InodeResponse":
        return cls(
            id=record.id,
            path=str(record.path),
            name=record.name,
            type=record.kind.value,
            size=record.size,
            disk_usage=record.disk_usage,
            access_time=record.access_time,
            modification_time=record.modification_time,
            block_size=record.block_size,
            replication_factor=record.replication_factor,
            owner=record.owner,
            group=record.group,
            permission=record.permission,
        )


class ListInodesResponse(BaseModel):
    """Response model for a directory listing."""
    path: str
    children: List[InodeResponse]


class AncestorsResponse(BaseModel):
    """Response model for the ancestors of a path, root first."""
    path: str
    ancestors: List[InodeResponse]


class IndexStatsResponse(BaseModel):
    directories: int
    files: int
    symlinks: int
    total_bytes: int
    elapsed_ms: float


class StatusResponse(BaseModel):
    """Response model for mirror status."""
    running: bool
    root: str
    records: int
    batches: int
    events: int
    events_by_kind: Dict[str, int]
    last_transaction_id: Optional[int] = None
    audited_events: Optional[int] = None
    index: Optional[IndexStatsResponse] = None
