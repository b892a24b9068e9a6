"""Pydantic schemas for API responses."""

from mirror.schemas.inodes import (
    InodeResponse,
    ListInodesResponse,
    AncestorsResponse,
    IndexStatsResponse,
    StatusResponse
)
from mirror.schemas.events import AuditedEventResponse, ListEventsResponse
from mirror.schemas.common import ErrorResponse

__all__ = [
    "InodeResponse",
    "ListInodesResponse",
    "AncestorsResponse",
    "IndexStatsResponse",
    "StatusResponse",
    "AuditedEventResponse",
    "ListEventsResponse",
    "ErrorResponse"
]
