"""Document store connection and collection management for MongoDB."""

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from common.constants import COLLECTION_EVENT_POOL, COLLECTION_FILE_SYSTEM, PATH_INDEX_DEPTH
from common.logging_config import get_logger
from mirror.config import MONGO_CONNECTION, MONGO_DATABASE
from mirror.event_log import FIELD_TRANSACTION_ID
from mirror.models import FIELD_ID, FIELD_PATH
from mirror.path_codec import FIELD_DEPTH, segment_field

logger = get_logger(__name__)


def get_mongo_client(connection: str = None) -> MongoClient:
    """
    Create a client for the configured MongoDB deployment.

    Args:
        connection: Connection string, defaults to DBFS_MONGO_CONNECTION
    """
    connection = connection or MONGO_CONNECTION
    logger.info(f"Initialize mongo client for connection {connection}")
    return MongoClient(connection)


def get_database(client: MongoClient, name: str = None) -> Database:
    return client[name or MONGO_DATABASE]


def file_system_collection(database: Database) -> Collection:
    """Collection holding one document per mirrored inode."""
    return database[COLLECTION_FILE_SYSTEM]


def event_pool_collection(database: Database) -> Collection:
    """Collection holding the audit copy of every processed event."""
    return database[COLLECTION_EVENT_POOL]


def drop_database(database: Database) -> None:
    """
    Remove all mirrored state (inodes and audited events).
    """
    logger.info(f"Delete Mongo database {database.name}")
    for name in database.list_collection_names():
        database.drop_collection(name)


def init_database(database: Database) -> None:
    """
    Create indexes if they don't exist.
    """
    fs = file_system_collection(database)
    fs.create_index([(FIELD_ID, ASCENDING)], unique=True, name="idx_inode_id")
    fs.create_index(
        [(f"{FIELD_PATH}.{FIELD_DEPTH}", ASCENDING)],
        name="idx_path_depth"
    )
    fs.create_index(
        [(f"{FIELD_PATH}.{segment_field(i)}", ASCENDING) for i in range(PATH_INDEX_DEPTH)],
        name="idx_path_segments"
    )

    events = event_pool_collection(database)
    events.create_index([(FIELD_TRANSACTION_ID, ASCENDING)], name="idx_events_transaction")

    logger.info(f"Database {database.name} initialized")
