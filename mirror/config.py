"""Configuration settings for the metadata mirror."""

import os

from common.constants import MONGO_DATABASE as DEFAULT_MONGO_DATABASE, POLLING_INTERVAL_MS


MONGO_CONNECTION = os.environ.get("DBFS_MONGO_CONNECTION", "mongodb://localhost:27017")

MONGO_DATABASE = os.environ.get("DBFS_MONGO_DATABASE", DEFAULT_MONGO_DATABASE)

# "webhdfs" talks to a NameNode over REST, "local" mirrors a directory on this host
NAMESPACE = os.environ.get("DBFS_NAMESPACE", "webhdfs")

WEBHDFS_URL = os.environ.get("DBFS_WEBHDFS_URL", "http://localhost:9870")

WEBHDFS_USER = os.environ.get("DBFS_WEBHDFS_USER") or None

LOCAL_ROOT = os.environ.get("DBFS_LOCAL_ROOT", ".")

ROOT_PATH = os.environ.get("DBFS_ROOT_PATH", "/")

EVENT_STREAM_URL = os.environ.get("DBFS_EVENT_STREAM_URL") or None

EVENT_AUDIT_ENABLED = os.environ.get("DBFS_EVENT_AUDIT", "true").lower() in ("1", "true", "yes")

POLLING_INTERVAL = int(os.environ.get("DBFS_POLLING_INTERVAL_MS", str(POLLING_INTERVAL_MS)))

MIRROR_HOST = os.environ.get("DBFS_HOST", "0.0.0.0")

MIRROR_PORT = int(os.environ.get("DBFS_PORT", "8080"))
