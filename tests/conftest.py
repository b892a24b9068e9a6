"""Shared pytest fixtures for all tests."""

import os

import mongomock
import pytest

from mirror.database import file_system_collection, event_pool_collection, init_database
from mirror.metadata_store import MetadataStore
from sources.local_namespace import LocalNamespace


@pytest.fixture
def database():
    """
    In-memory MongoDB database with the mirror indexes created.

    Returns:
        mongomock Database instance
    """
    client = mongomock.MongoClient()
    db = client['dbfs_test']
    init_database(db)
    return db


@pytest.fixture
def store(database):
    """Metadata store over the in-memory inode collection."""
    return MetadataStore(file_system_collection(database))


@pytest.fixture
def event_pool(database):
    """In-memory event audit collection."""
    return event_pool_collection(database)


@pytest.fixture
def make_tree(tmp_path):
    """
    Factory creating a local directory tree from a mapping.

    Keys are relative paths. A bytes value creates a file with that content,
    None creates a directory, and a str starting with '->' creates a symlink.

    Returns:
        Function(mapping) -> LocalNamespace rooted at the created tree
    """
    root = tmp_path / 'namespace'
    root.mkdir()

    def _make(entries):
        for relative, content in entries.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            if content is None:
                target.mkdir(exist_ok=True)
            elif isinstance(content, str) and content.startswith('->'):
                os.symlink(content[2:], target)
            else:
                target.write_bytes(content)
        return LocalNamespace(str(root))

    return _make


@pytest.fixture
def sample_namespace(make_tree):
    """
    Namespace used by most indexing tests:

        /a/f        5 bytes
        /a/b/g      7 bytes
        /a/b/h      3 bytes
        /c/         empty directory
        /top        11 bytes
    """
    return make_tree({
        'a/f': b'12345',
        'a/b/g': b'1234567',
        'a/b/h': b'123',
        'c': None,
        'top': b'hello world',
    })
