"""Project-wide constants (path encoding limits, polling defaults, collection names)."""

MAX_PATH_DEPTH: int = 32  # widest path the flat encoding can hold

PATH_SEPARATOR: str = "/"

# Paths HDFS uses while `hdfs dfs -put` is still copying data in
COPYING_SUFFIX: str = "._COPYING_"

POLLING_INTERVAL_MS: int = 250

MONGO_DATABASE: str = "dbfs_db"
COLLECTION_FILE_SYSTEM: str = "file_system"
COLLECTION_EVENT_POOL: str = "event_pool"

# Leading path segments covered by the compound path index
PATH_INDEX_DEPTH: int = 8

WEBHDFS_PREFIX: str = "/webhdfs/v1"
DEFAULT_HTTP_TIMEOUT_SECONDS: float = 30.0
