"""
Pytest configuration and shared fixtures for MDB_STORE tests.

This module provides:
- Mock Motor client, database and collection fixtures
- Store fixtures wired to the mock client
- Environment and global state reset between tests
"""

from typing import Any, Callable, Dict, Iterator, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from motor.motor_asyncio import AsyncIOMotorCollection

from mdb_store.config import StoreOptions, reset_default_options
from mdb_store.database.store import Store
from mdb_store.observability import clear_correlation_id, get_metrics_collector

TEST_DB = "test_db"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without a MongoDB server")


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_cursor(documents: Optional[List[Dict[str, Any]]] = None) -> MagicMock:
    """Create a mock cursor whose to_list() returns ``documents``."""
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=list(documents or []))
    return cursor


def make_collection(name: str) -> MagicMock:
    """Create a mock Motor collection with async CRUD methods."""
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.name = name
    # find()/aggregate() are synchronous in Motor and return cursors
    collection.find = MagicMock(return_value=make_cursor())
    collection.aggregate = MagicMock(return_value=make_cursor())
    collection.find_one = AsyncMock(return_value=None)
    collection.count_documents = AsyncMock(return_value=0)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="test_id"))
    collection.insert_many = AsyncMock(return_value=MagicMock(inserted_ids=["id1", "id2"]))
    collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.update_many = AsyncMock(return_value=MagicMock(modified_count=2))
    collection.replace_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
    collection.bulk_write = AsyncMock(return_value=MagicMock(modified_count=2))
    return collection


def make_database(name: str) -> MagicMock:
    """Create a mock Motor database; ``db[name]`` returns the same collection mock per name."""
    db = MagicMock()
    db.name = name
    db.command = AsyncMock(return_value={"ok": 1})
    db.list_collection_names = AsyncMock(return_value=["users", "orders"])

    collections: Dict[str, MagicMock] = {}

    def get_collection(collection_name: str) -> MagicMock:
        if collection_name not in collections:
            collections[collection_name] = make_collection(collection_name)
        return collections[collection_name]

    db.__getitem__.side_effect = get_collection
    return db


@pytest.fixture
def cursor_factory() -> Callable[..., MagicMock]:
    """Provide make_cursor to tests that stub find()/aggregate() results."""
    return make_cursor


@pytest.fixture
def mock_mongo_client() -> MagicMock:
    """Create a mock Motor client; ``client[name]`` returns the same database mock per name."""
    client = MagicMock()
    client.list_database_names = AsyncMock(return_value=["admin", TEST_DB])
    client.nodes = frozenset({("db2", 27018), ("db1", 27017)})
    client.close = MagicMock()

    databases: Dict[str, MagicMock] = {}

    def get_database(db_name: str) -> MagicMock:
        if db_name not in databases:
            databases[db_name] = make_database(db_name)
        return databases[db_name]

    client.__getitem__.side_effect = get_database
    return client


@pytest.fixture
def mock_mongo_database(mock_mongo_client: MagicMock) -> MagicMock:
    """The mock database backing stores created with ``db=test_db``."""
    return mock_mongo_client[TEST_DB]


@pytest.fixture
def users_collection(mock_mongo_database: MagicMock) -> MagicMock:
    """The mock ``users`` collection."""
    return mock_mongo_database["users"]


# ============================================================================
# STORE FIXTURES
# ============================================================================


@pytest.fixture
def store_options() -> StoreOptions:
    """Provide default options for a Store."""
    return StoreOptions(db=TEST_DB)


@pytest.fixture
def make_store(mock_mongo_client: MagicMock) -> Iterator[Callable[..., Store]]:
    """Factory building Stores (with the given option fields) on the mock client."""

    def _make(**fields: Any) -> Store:
        fields.setdefault("db", TEST_DB)
        return Store(StoreOptions(**fields))

    with patch("mdb_store.database.connection.AsyncIOMotorClient", return_value=mock_mongo_client):
        yield _make


@pytest.fixture
def store(make_store: Callable[..., Store]) -> Store:
    """Create a Store with default options on the mock client."""
    return make_store()


@pytest.fixture
def id_store(make_store: Callable[..., Store]) -> Store:
    """Create a Store with identifier mapping (``id``/``ts``) enabled."""
    return make_store(auto_id=True, auto_id_map_id="id", auto_id_map_timestamp="ts")


# ============================================================================
# ENVIRONMENT VARIABLES AND GLOBAL STATE
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Reset environment variables and process-wide state before each test."""
    env_vars_to_clear = [
        "MDB_STORE_AUTO_ID",
        "MDB_STORE_AUTO_ID_MAP_ID",
        "MDB_STORE_AUTO_ID_MAP_TIMESTAMP",
        "MDB_STORE_COLLECTIONS",
        "MDB_STORE_DB",
        "MDB_STORE_DEFAULT_LIMIT",
        "MDB_STORE_HOSTS",
        "MDB_STORE_PASSWORD",
        "MDB_STORE_REPLICA_SET",
        "MDB_STORE_RETURN_OBJECTS",
        "MDB_STORE_USERNAME",
        "MDB_STORE_MAX_POOL_SIZE",
        "MDB_STORE_MIN_POOL_SIZE",
        "MDB_STORE_SERVER_SELECTION_TIMEOUT_MS",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    reset_default_options()
    get_metrics_collector().reset()
    clear_correlation_id()
    yield
    reset_default_options()
