"""Pydantic schemas for the audited event endpoint."""

from typing import Any, Dict, List

from pydantic import BaseModel


class AuditedEventResponse(BaseModel):
    """One event as copied into the event pool."""
    transaction_id: int
    event_type: str
    event: Dict[str, Any]
    received_at: str


class ListEventsResponse(BaseModel):
    """Response model for audited events after a transaction id."""
    since: int
    total: int
    events: List[AuditedEventResponse]
