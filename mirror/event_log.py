"""
Audit log of raw change events.

Every event is copied into the event pool collection before it is applied to
the mirror. The log is write-only from the processor's point of view; nothing
replays it.
"""

from datetime import datetime, timezone
from typing import Dict, List

from pymongo import ASCENDING
from pymongo.collection import Collection

from common.logging_config import get_logger
from mirror.exceptions import StoreIOError

logger = get_logger(__name__)

FIELD_TRANSACTION_ID = "transactionId"
FIELD_EVENT_TYPE = "eventType"
FIELD_EVENT = "event"
FIELD_RECEIVED_AT = "receivedAt"


def record_event(collection: Collection, transaction_id: int, event) -> None:
    """
    Insert an event into the event pool.

    Args:
        collection: Event pool collection
        transaction_id: Transaction id of the batch carrying the event
        event: ChangeEvent model

    Raises:
        StoreIOError: If the insert is not acknowledged
    """
    document = {
        FIELD_TRANSACTION_ID: transaction_id,
        FIELD_EVENT_TYPE: event.type,
        FIELD_EVENT: event.model_dump(mode="json", exclude={"type"}),
        FIELD_RECEIVED_AT: datetime.now(timezone.utc).isoformat(),
    }
    result = collection.insert_one(document)
    if not result.acknowledged:
        raise StoreIOError(f"Failed to save event {event.type} for transaction {transaction_id}")

    logger.debug(f"Saved event {event.type} (transaction={transaction_id})")


def get_events_since(collection: Collection, transaction_id: int, limit: int = 1000) -> List[Dict]:
    """
    Get audited events with a transaction id greater than the given one.

    Args:
        collection: Event pool collection
        transaction_id: Exclusive lower bound
        limit: Maximum number of events to return

    Returns:
        Event documents in transaction order, without the store's _id
    """
    cursor = collection.find(
        {FIELD_TRANSACTION_ID: {"$gt": transaction_id}},
        {"_id": 0}
    ).sort([(FIELD_TRANSACTION_ID, ASCENDING), ("_id", ASCENDING)]).limit(limit)
    return list(cursor)


def count_events(collection: Collection) -> int:
    return collection.count_documents({})
