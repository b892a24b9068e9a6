"""Lifecycle of the mirror: reset, full index, then incremental event processing."""

from typing import Optional

from pymongo.database import Database

from common.constants import POLLING_INTERVAL_MS
from common.logging_config import get_logger
from mirror import config
from mirror.database import (
    drop_database,
    event_pool_collection,
    file_system_collection,
    get_database,
    get_mongo_client,
    init_database,
)
from mirror.event_processor import EventProcessor, ProcessorStats
from mirror.metadata_store import MetadataStore
from mirror.tree_indexer import IndexStats, TreeIndexer
from sources.base import ChangeEventSource, NamespaceSource

logger = get_logger(__name__)


class MirrorManager:
    """
    Owns the store, the indexer and the event processor.

    start() always rebuilds the mirror from scratch: previous state in the
    database is dropped before indexing.
    """

    def __init__(
        self,
        namespace: NamespaceSource,
        event_source: ChangeEventSource,
        database: Database,
        root: str = "/",
        audit: bool = True,
        polling_interval_ms: int = POLLING_INTERVAL_MS
    ):
        self.namespace = namespace
        self.event_source = event_source
        self.database = database
        self.root = root
        self.audit = audit
        self.polling_interval_ms = polling_interval_ms

        self.store = MetadataStore(file_system_collection(database))
        self.event_pool = event_pool_collection(database) if audit else None
        self.index_stats: Optional[IndexStats] = None
        self.processor: Optional[EventProcessor] = None
        self.started = False

    def start(self) -> None:
        """
        Reset the database, index the namespace and start processing events.

        Raises:
            MirrorException: Any failure during startup, after logging it
        """
        logger.info(f"Starting mirror of {self.root} into database {self.database.name}")
        try:
            drop_database(self.database)
            init_database(self.database)

            self.index_stats = TreeIndexer(self.namespace, self.store).index(self.root)

            self.processor = EventProcessor(
                self.event_source,
                self.store,
                namespace=self.namespace,
                event_pool=self.event_pool,
                polling_interval_ms=self.polling_interval_ms
            )
            self.processor.start()
        except Exception as e:
            logger.error(f"Failed to start mirror: {e}", exc_info=True)
            raise

        self.started = True
        logger.info(f"Mirror started with {self.index_stats.records} records")

    def stop(self) -> None:
        if self.processor is not None:
            self.processor.stop()
        logger.info("Mirror stopped")

    def status(self) -> bool:
        """True while the event processor thread is alive."""
        return self.processor is not None and self.processor.is_running()

    @property
    def processor_stats(self) -> ProcessorStats:
        if self.processor is None:
            return ProcessorStats()
        return self.processor.stats


def build_namespace() -> NamespaceSource:
    """Create the namespace source selected by DBFS_NAMESPACE."""
    if config.NAMESPACE == "local":
        from sources.local_namespace import LocalNamespace
        return LocalNamespace(config.LOCAL_ROOT)
    if config.NAMESPACE == "webhdfs":
        from sources.webhdfs_client import WebHdfsClient
        return WebHdfsClient(config.WEBHDFS_URL, user=config.WEBHDFS_USER)
    raise ValueError(f"Unknown namespace kind: {config.NAMESPACE}")


def build_event_source() -> ChangeEventSource:
    """Remote event feed when DBFS_EVENT_STREAM_URL is set, otherwise an in-process queue."""
    from sources.event_streams import HttpEventStream, QueueEventStream

    if config.EVENT_STREAM_URL:
        return HttpEventStream(config.EVENT_STREAM_URL)
    return QueueEventStream()


def build_manager() -> MirrorManager:
    """Create a manager wired from environment configuration."""
    database = get_database(get_mongo_client(config.MONGO_CONNECTION), config.MONGO_DATABASE)
    return MirrorManager(
        namespace=build_namespace(),
        event_source=build_event_source(),
        database=database,
        root=config.ROOT_PATH,
        audit=config.EVENT_AUDIT_ENABLED,
        polling_interval_ms=config.POLLING_INTERVAL
    )
