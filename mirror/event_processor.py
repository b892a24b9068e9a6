"""
Background application of namespace change events to the mirror.

A single thread polls the change event source and applies every event of a
batch in order. Each handler updates the affected record and then pushes the
disk usage change up to all ancestors. The processor is stateless between
events: it always reads the current record from the store.

Any exception raised while applying an event stops the thread; the mirror is
then stale until the next full reindex.
"""

import random
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

from common.constants import COPYING_SUFFIX, POLLING_INTERVAL_MS
from common.logging_config import get_logger
from common.protocol import (
    AppendEvent,
    CloseEvent,
    CreateEvent,
    EventBatch,
    MetadataUpdateEvent,
    RenameEvent,
    UnlinkEvent,
)
from mirror import event_log
from mirror.exceptions import MissingRecordError, PathNotFoundError, UnsupportedEventError
from mirror.metadata_store import MetadataStore
from mirror.models import InodeUpdate, MetadataRecord
from mirror.path_codec import InodePath

logger = get_logger(__name__)


@dataclass
class ProcessorStats:
    """Counters exposed through the status endpoint."""
    batches: int = 0
    events: int = 0
    by_kind: Dict[str, int] = field(default_factory=dict)
    last_transaction_id: Optional[int] = None

    def record(self, kind: str) -> None:
        self.events += 1
        self.by_kind[kind] = self.by_kind.get(kind, 0) + 1


class EventProcessor:
    """Consumes change event batches on a dedicated thread."""

    def __init__(
        self,
        event_source,
        store: MetadataStore,
        namespace=None,
        event_pool=None,
        polling_interval_ms: int = POLLING_INTERVAL_MS
    ):
        """
        Args:
            event_source: ChangeEventSource to poll
            store: Metadata store to update
            namespace: NamespaceSource used to resolve CREATE events; when None
                the record is built from the event payload
            event_pool: Audit collection; when None events are not audited
            polling_interval_ms: Base sleep when no batch is available
        """
        self.event_source = event_source
        self.store = store
        self.namespace = namespace
        self.event_pool = event_pool
        self.polling_interval_ms = polling_interval_ms
        self.stats = ProcessorStats()
        self.failure: Optional[BaseException] = None

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._thread_lock = threading.Lock()

    def start(self) -> None:
        """Start the processing thread; no-op if it is already running."""
        with self._thread_lock:
            if self._thread is not None and self._thread.is_alive():
                return

            self._stop_event.clear()
            self.failure = None
            self._thread = threading.Thread(
                target=self._run,
                daemon=True,
                name="EventProcessor"
            )
            self._thread.start()

            logger.info("Event processor thread started")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the thread to stop and wait for it to finish its current batch."""
        self._stop_event.set()

        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            logger.info("Event processor thread stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _next_interval(self) -> float:
        """Sleep in seconds: base plus uniform jitter in [0, base]."""
        base = self.polling_interval_ms
        return (base + random.randint(0, base)) / 1000.0

    def _run(self) -> None:
        logger.info("Start event processing")
        while not self._stop_event.is_set():
            try:
                batch = self.event_source.poll()
                if batch is None:
                    self._stop_event.wait(self._next_interval())
                    continue
                self.process_batch(batch)
            except Exception as e:
                logger.error(f"Event processing failed, stopping processor: {e}", exc_info=True)
                self.failure = e
                self._stop_event.set()
        logger.info("Stop event processing")

    def process_batch(self, batch: EventBatch) -> None:
        logger.debug(f"Processing transaction {batch.transaction_id} with {len(batch.events)} events")
        for event in batch.events:
            self.process_event(event, batch.transaction_id)
        self.stats.batches += 1
        self.stats.last_transaction_id = batch.transaction_id

    def process_event(self, event, transaction_id: int = 0) -> None:
        """
        Audit and apply one event.

        Raises:
            UnsupportedEventError: If the event kind has no handler
        """
        if isinstance(event, AppendEvent):
            handler = self.do_append
        elif isinstance(event, CloseEvent):
            handler = self.do_close
        elif isinstance(event, CreateEvent):
            handler = self.do_create
        elif isinstance(event, MetadataUpdateEvent):
            handler = self.do_metadata_update
        elif isinstance(event, RenameEvent):
            handler = self.do_rename
        elif isinstance(event, UnlinkEvent):
            handler = self.do_unlink
        else:
            raise UnsupportedEventError(f"Unsupported event {event!r}")

        if self.event_pool is not None:
            event_log.record_event(self.event_pool, transaction_id, event)

        handler(event)
        self.stats.record(event.type)

    def _existing(self, path: InodePath, kind: str) -> MetadataRecord:
        record = self.store.get(path)
        if record is None:
            raise MissingRecordError(f"Path {path} does not exist in the mirror ({kind})")
        return record

    def do_append(self, event: AppendEvent) -> None:
        # size is reported by the following CLOSE
        logger.debug(f"Append on {event.path}")

    def do_close(self, event: CloseEvent) -> None:
        path = InodePath.parse(event.path)
        record = self._existing(path, event.type)

        update = InodeUpdate(
            modification_time=event.timestamp,
            size=event.file_size,
            disk_usage=event.file_size
        )
        delta = event.file_size - record.disk_usage if event.file_size > 0 else 0

        self.store.update(path, update)
        self.store.propagate_disk_usage(path, delta)

    def do_create(self, event: CreateEvent) -> None:
        path = InodePath.parse(event.path)

        if self.namespace is not None:
            try:
                record = MetadataRecord.from_status(self.namespace.status_of(str(path)))
            except PathNotFoundError:
                if not event.path.endswith(COPYING_SUFFIX):
                    logger.warning(f"Path {path} no longer exists in the namespace, ignoring create")
                return
        else:
            record = MetadataRecord.from_create_event(event)

        prior = self.store.get(path)
        if prior is not None and event.overwrite:
            self.store.delete(path)
            self.store.propagate_disk_usage(path, -prior.disk_usage)
            prior = None

        prior_usage = 0
        if prior is not None:
            record.id = prior.id
            if record.is_directory and prior.is_directory:
                record.set_disk_usage(prior.disk_usage)
            prior_usage = prior.disk_usage

        self.store.upsert(record)
        self.store.propagate_disk_usage(path, record.disk_usage - prior_usage)

    def do_metadata_update(self, event: MetadataUpdateEvent) -> None:
        path = InodePath.parse(event.path)
        self._existing(path, event.type)

        update = InodeUpdate(
            access_time=event.atime,
            modification_time=event.mtime,
            replication_factor=event.replication,
            owner=event.owner,
            group=event.group,
            permission=event.permission
        )
        self.store.update(path, update)

    def do_rename(self, event: RenameEvent) -> None:
        src_path = InodePath.parse(event.src_path)
        dst_path = InodePath.parse(event.dst_path)

        if src_path == dst_path:
            logger.debug(f"Rename of {src_path} onto itself, nothing to do")
            return

        source = self.store.get(src_path)
        if source is None:
            logger.warning(f"Rename source {src_path} is not mirrored, moving without disk usage")
            usage = 0
        else:
            usage = source.disk_usage

        # an overlapping destination shares records with the source
        overlapping = src_path.has_prefix(dst_path) or dst_path.has_prefix(src_path)
        replaced = None if overlapping else self.store.get(dst_path)
        if replaced is not None:
            self.store.delete(dst_path)
            self.store.propagate_disk_usage(dst_path, -replaced.disk_usage)

        self.store.propagate_disk_usage(src_path, -usage)
        self.store.rename(src_path, dst_path)
        self.store.propagate_disk_usage(dst_path, usage)

    def do_unlink(self, event: UnlinkEvent) -> None:
        path = InodePath.parse(event.path)
        record = self.store.get(path)
        usage = record.disk_usage if record is not None else 0

        self.store.delete(path)
        self.store.propagate_disk_usage(path, -usage)
