"""Change event sources: an in-process queue and an HTTP polling client."""

import queue
from collections import deque
from typing import Deque, Optional

from common.logging_config import get_logger
from common.protocol import EventBatch
from mirror.exceptions import NamespaceUnavailableError
from sources.http_client import RetryingHttpClient

logger = get_logger(__name__)


class QueueEventStream:
    """
    Thread-safe in-process event stream.

    Producers push batches from any thread; poll never blocks.
    """

    def __init__(self):
        self._queue: "queue.Queue[EventBatch]" = queue.Queue()

    def push(self, batch: EventBatch) -> None:
        self._queue.put(batch)

    def poll(self) -> Optional[EventBatch]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()


class HttpEventStream(RetryingHttpClient):
    """
    Polls a remote event feed for batches newer than the last one seen.

    The feed answers `GET <url>?since=<txid>` with `{"batches": [...]}` in
    transaction order. Fetched batches are buffered and handed out one per poll.
    """

    def __init__(self, url: str, since: int = -1, **kwargs):
        super().__init__(url, **kwargs)
        self.last_transaction_id = since
        self._buffer: Deque[EventBatch] = deque()
        logger.info(f"Initialized HttpEventStream [url={self.base_url}, since={since}]")

    def _fetch(self) -> None:
        response = self._request_with_retry(
            'GET', '', params={'since': self.last_transaction_id}
        )
        if response.status_code != 200:
            raise NamespaceUnavailableError(
                f"Event feed returned status {response.status_code}: {response.text}"
            )

        batches = [EventBatch.model_validate(item) for item in response.json().get('batches', [])]
        for batch in batches:
            if batch.transaction_id <= self.last_transaction_id:
                logger.debug(f"Skipping already seen transaction {batch.transaction_id}")
                continue
            self._buffer.append(batch)
            self.last_transaction_id = batch.transaction_id

        if batches:
            logger.debug(f"Fetched {len(batches)} batches, cursor at {self.last_transaction_id}")

    def poll(self) -> Optional[EventBatch]:
        if not self._buffer:
            self._fetch()
        if not self._buffer:
            return None
        return self._buffer.popleft()
