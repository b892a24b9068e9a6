"""Read-only access to the event audit log."""

from fastapi import APIRouter, Query

from mirror import event_log
from mirror.exceptions import MirrorUnavailableError
from mirror.schemas.common import ErrorResponse
from mirror.schemas.events import AuditedEventResponse, ListEventsResponse
from mirror.service_locator import get_manager

router = APIRouter(
    prefix="/events",
    tags=["Events"],
    responses={503: {"model": ErrorResponse}}
)


@router.get("", response_model=ListEventsResponse)
def list_events(
    since: int = Query(-1, description="Return events with a greater transaction id"),
    limit: int = Query(100, ge=1, le=1000)
):
    """
    List audited events in transaction order.

    Raises:
        - 503: Mirror not started or event audit disabled
    """
    manager = get_manager()
    if manager is None or not manager.started:
        raise MirrorUnavailableError("Mirror is not started")
    if manager.event_pool is None:
        raise MirrorUnavailableError("Event audit is disabled")

    documents = event_log.get_events_since(manager.event_pool, since, limit=limit)
    return ListEventsResponse(
        since=since,
        total=event_log.count_events(manager.event_pool),
        events=[
            AuditedEventResponse(
                transaction_id=document[event_log.FIELD_TRANSACTION_ID],
                event_type=document[event_log.FIELD_EVENT_TYPE],
                event=document[event_log.FIELD_EVENT],
                received_at=document[event_log.FIELD_RECEIVED_AT]
            )
            for document in documents
        ]
    )
