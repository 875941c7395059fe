"""
Asynchronous MongoDB Store

A convenience layer over Motor that maps short CRUD calls onto driver
primitives.

This module is part of MDB_STORE.

Core Features:
- Collection binding: ``store.users`` (or ``store["users"]``) returns a
  Store bound to the ``users`` collection, after checking it against the
  configured allow-list.
- Identifier mapping: with ``auto_id`` enabled, a public id field is swapped
  with ``_id`` on the way in and out, ObjectIds are returned as hex strings
  and the id timestamp is exposed as a field (see ``mdb_store.utils.mongo``).
- Results come back as lists of dicts, or attribute bags when
  ``return_objects`` is enabled; writes return ids and affected counts.
- Every operation is logged on the ``mdb_store.operations`` channel and
  recorded as a ``store.<operation>`` metric.
- Subclasses can reshape documents before writes through the ``before_*``
  hooks.

Usage:
    store = Store(StoreOptions(db="app", auto_id=True, auto_id_map_id="id"))

    user_id = await store.users.insert_one({"name": "Alice"})
    user = await store.users.find_by_id(user_id)
    await store.users.update_by_id(user_id, {"name": "Alice B."})
    await store.users.delete_by_id(user_id)
"""

import copy
import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReplaceOne, UpdateOne
from pymongo.errors import (
    AutoReconnect,
    ConnectionFailure,
    InvalidOperation,
    OperationFailure,
    ServerSelectionTimeoutError,
)

from ..config import StoreOptions, get_default_options
from ..constants import ADMIN_DATABASE, DEFAULT_BULK_WRITE_OPTIONS, ID_FIELD
from ..exceptions import (
    CollectionNotAllowedError,
    CollectionNotSetError,
    DatabaseNotSetError,
    MissingDocumentIdError,
    StoreOperationError,
)
from ..observability import get_operation_logger, operation_timer
from ..utils.mongo import (
    get_field,
    map_input,
    map_input_many,
    map_output,
    map_output_many,
    object_id_to_str,
    to_document,
    to_object_id,
    to_object_ids,
)
from .allowlist import CollectionAllowList
from .connection import ConnectionManager

logger = logging.getLogger(__name__)

_DRIVER_ERRORS = (
    OperationFailure,
    AutoReconnect,
    ConnectionFailure,
    ServerSelectionTimeoutError,
    InvalidOperation,
)


class Store:
    """
    MongoDB store bound to a database and, once selected, a collection.

    A Store without a collection serves server/database operations
    (``ping``, ``get_databases``, ``execute_command`` ...). Selecting a
    collection returns a bound Store sharing options, allow-list and
    connection with its parent.

    Args:
        options: Store options (defaults to the process-wide options)
        database: Database name (defaults to ``options.db``)
        connection: Existing ConnectionManager to share
    """

    def __init__(
        self,
        options: StoreOptions | None = None,
        database: str = "",
        connection: ConnectionManager | None = None,
    ):
        self._options = options if options is not None else get_default_options()
        self._connection = connection or ConnectionManager(self._options)
        self._allow_list = CollectionAllowList.from_options(self._options)
        self._database = database
        self._collection_name: str | None = None
        self._bound: dict[str, "Store"] = {}

    # ------------------------------------------------------------------
    # Collection binding
    # ------------------------------------------------------------------

    def __getattr__(self, name: str) -> "Store":
        """Select a collection by attribute access (``store.users``)."""
        if name.startswith("_"):
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'. "
                "Access to private attributes is blocked."
            )
        return self.use(name)

    def __getitem__(self, name: str) -> "Store":
        """Select a collection by bracket notation (``store["users"]``)."""
        return self.use(name)

    def use(self, collection: str) -> "Store":
        """
        Return a Store bound to ``collection``.

        Raises:
            CollectionNotAllowedError: If the allow-list rejects the collection
            DatabaseNotSetError: If no database name is known
        """
        database = self.get_database_name()
        if not self.allow_list.is_allowed(database, collection):
            raise CollectionNotAllowedError(database, collection)

        if collection in self._bound:
            return self._bound[collection]

        bound = copy.copy(self)
        bound._collection_name = collection
        bound._bound = {}
        self._bound[collection] = bound
        return bound

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def allow_list(self) -> CollectionAllowList:
        """The allow-list for the current ``options.collections``, recompiled when they change."""
        if not self._allow_list.matches(self._options.collections):
            self._allow_list = CollectionAllowList.from_options(self._options)
        return self._allow_list

    @property
    def collection_name(self) -> str | None:
        return self._collection_name

    # ------------------------------------------------------------------
    # Driver objects
    # ------------------------------------------------------------------

    def client(self) -> AsyncIOMotorClient:
        """Get the Motor client (created on first use)."""
        return self._connection.client

    def database(self) -> AsyncIOMotorDatabase:
        """Get the Motor database this store is bound to."""
        return self.client()[self.get_database_name()]

    def collection(self) -> AsyncIOMotorCollection:
        """
        Get the Motor collection this store is bound to.

        Raises:
            CollectionNotSetError: If no collection has been selected
            CollectionNotAllowedError: If the allow-list no longer permits it
        """
        if not self._collection_name:
            raise CollectionNotSetError()
        database = self.get_database_name()
        if not self.allow_list.is_allowed(database, self._collection_name):
            raise CollectionNotAllowedError(database, self._collection_name)
        return self.database()[self._collection_name]

    def get_database_name(self) -> str:
        """
        Get the database name, falling back to ``options.db``.

        Raises:
            DatabaseNotSetError: If neither is set
        """
        if not self._database:
            if not self._options.db:
                raise DatabaseNotSetError(type(self).__name__)
            self._database = self._options.db
        return self._database

    def set_database_name(self, database: str) -> None:
        """Switch database; previously bound collection stores are dropped."""
        self._database = database
        self._bound.clear()

    def close(self) -> None:
        """Close the shared connection."""
        self._connection.close()

    async def __aenter__(self) -> "Store":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def object_id(self, id: Any) -> Any:
        """Convert a 24-char hex string to an ObjectId, else return it unchanged."""
        return to_object_id(id)

    def convert_ids_to_object_ids(self, ids: Iterable[Any]) -> list[Any]:
        return to_object_ids(ids)

    # ------------------------------------------------------------------
    # Hooks (override in subclasses)
    # ------------------------------------------------------------------

    def before_insert_many(self, documents: list[Any]) -> list[Any]:
        return documents

    def before_insert_one(self, document: Any) -> Any:
        return document

    def before_replace(self, document: Any) -> Any:
        return document

    def before_replace_bulk(self, documents: list[Any]) -> list[Any]:
        return documents

    def before_update(self, update: Any) -> Any:
        return update

    def before_update_bulk(self, documents: list[Any]) -> list[Any]:
        return documents

    # ------------------------------------------------------------------
    # Logging, metrics and error translation
    # ------------------------------------------------------------------

    def _log(self, operation: str, **context: Any) -> None:
        try:
            database = self.get_database_name()
        except DatabaseNotSetError:
            database = None
        get_operation_logger(database, self._collection_name).debug(operation, extra=context)

    @contextmanager
    def _operation(self, operation: str, **context: Any) -> Iterator[None]:
        """
        Log, time and guard one store operation.

        Driver failures are re-raised as StoreOperationError.
        """
        self._log(operation, **context)
        tags = {"database": self._database or self._options.db, "collection": self._collection_name}
        with operation_timer(f"store.{operation}", **tags):
            try:
                yield
            except _DRIVER_ERRORS as e:
                logger.exception(f"Database operation failed in {operation}")
                raise StoreOperationError(
                    f"Store operation '{operation}' failed: {e}",
                    operation=operation,
                    collection=self._collection_name,
                    context={"database": tags["database"], "error_type": type(e).__name__},
                ) from e

    def _default_find_options(self, options: dict[str, Any]) -> dict[str, Any]:
        limit = self._options.default_limit
        if limit > 0 and "limit" not in options:
            options["limit"] = limit
        return options

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def aggregate(self, pipeline: list[Mapping[str, Any]], **options: Any) -> list[Any]:
        """Run an aggregation pipeline and return all (mapped) results."""
        with self._operation("aggregate", pipeline=pipeline, options=options):
            cursor = self.collection().aggregate(pipeline, **options)
            docs = await cursor.to_list(length=None)
        return map_output_many(docs, self._options)

    async def count(self, filter: Any = None, **options: Any) -> int:
        """Count documents matching ``filter``."""
        filter = map_input(filter or {}, self._options)
        with self._operation("count", filter=filter, options=options):
            return await self.collection().count_documents(filter, **options)

    async def find(self, filter: Any = None, **options: Any) -> list[Any]:
        """
        Find documents matching ``filter``.

        ``options`` are passed to the driver (``limit``, ``skip``, ``sort``,
        ``projection`` ...). The configured default limit applies when no
        ``limit`` is given.
        """
        options = self._default_find_options(options)
        filter = map_input(filter or {}, self._options)
        with self._operation("find", filter=filter, options=options):
            cursor = self.collection().find(filter, **options)
            docs = await cursor.to_list(length=None)
        return map_output_many(docs, self._options)

    async def find_one(self, filter: Any = None, **options: Any) -> Any:
        """Find a single document, or None."""
        filter = map_input(filter or {}, self._options)
        with self._operation("find_one", filter=filter, options=options):
            doc = await self.collection().find_one(filter, **options)
        return map_output(doc, self._options)

    async def find_by_id(self, id: Any, **options: Any) -> Any:
        self._log("find_by_id", id=id, options=options)
        return await self.find_one({ID_FIELD: self.object_id(id)}, **options)

    async def find_by_ids(self, ids: Iterable[Any], **options: Any) -> list[Any]:
        """Find documents by ids; a single id uses find_by_id."""
        ids = list(ids)
        self._log("find_by_ids", ids=ids, options=options)

        if len(ids) == 1:
            doc = await self.find_by_id(ids[0], **options)
            return [doc] if doc is not None else []

        return await self.find(
            {ID_FIELD: {"$in": self.convert_ids_to_object_ids(ids)}}, **options
        )

    async def has(self, filter: Any, **options: Any) -> bool:
        """Return True when at least one document matches ``filter``."""
        self._log("has", filter=filter, options=options)
        return await self.count(filter, **options) > 0

    async def has_id(self, id: Any) -> bool:
        self._log("has_id", id=id)
        return await self.has({ID_FIELD: self.object_id(id)})

    async def value(self, property: str, filter: Any) -> Any:
        """Return a single field of the first document matching ``filter``."""
        self._log("value", property=property, filter=filter)
        return get_field(await self.find_one(filter), property)

    async def value_by_id(self, id: Any, property: str) -> Any:
        self._log("value_by_id", id=id, property=property)
        return await self.value(property, {ID_FIELD: self.object_id(id)})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_one(self, document: Any, **options: Any) -> str | None:
        """Insert a document and return its id as a string."""
        document = map_input(self.before_insert_one(document), self._options)
        with self._operation("insert_one", document=document, options=options):
            result = await self.collection().insert_one(document, **options)
        return object_id_to_str(result.inserted_id)

    async def insert_many(self, documents: Iterable[Any], **options: Any) -> list[str | None]:
        """Insert documents and return their ids as strings."""
        documents = map_input_many(self.before_insert_many(list(documents)), self._options)
        with self._operation("insert_many", documents=documents, options=options):
            if not documents:
                return []
            result = await self.collection().insert_many(documents, **options)
        return [object_id_to_str(inserted_id) for inserted_id in result.inserted_ids]

    async def update_one(self, filter: Any, update: Any, **options: Any) -> int:
        """``$set`` the fields of ``update`` on the first match; returns modified count."""
        filter = map_input(filter, self._options)
        update = to_document(self.before_update(update))
        with self._operation("update_one", filter=filter, update=update, options=options):
            result = await self.collection().update_one(filter, {"$set": update}, **options)
        return result.modified_count

    async def update_many(self, filter: Any, update: Any, **options: Any) -> int:
        """``$set`` the fields of ``update`` on every match; returns modified count."""
        filter = map_input(filter, self._options)
        update = to_document(self.before_update(update))
        with self._operation("update_many", filter=filter, update=update, options=options):
            result = await self.collection().update_many(filter, {"$set": update}, **options)
        return result.modified_count

    async def update_by_id(self, id: Any, update: Any) -> int:
        self._log("update_by_id", id=id)
        return await self.update_one({ID_FIELD: self.object_id(id)}, update)

    async def replace_one(self, filter: Any, document: Any, **options: Any) -> int:
        """Replace the first match with ``document``; returns modified count."""
        filter = map_input(filter, self._options)
        document = map_input(self.before_replace(document), self._options)
        with self._operation("replace_one", filter=filter, document=document, options=options):
            result = await self.collection().replace_one(filter, document, **options)
        return result.modified_count

    async def replace_by_id(self, id: Any, document: Any) -> int:
        self._log("replace_by_id", id=id)
        return await self.replace_one({ID_FIELD: self.object_id(id)}, document)

    async def update_bulk(
        self,
        documents: Iterable[Any],
        write_options: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> int:
        """
        ``$set`` each document onto the document with the same id, in one bulk write.

        Returns:
            Total modified count
        """
        documents = self.before_update_bulk(list(documents))
        return await self._bulk_write("update_bulk", documents, write_options, options)

    async def replace_bulk(
        self,
        documents: Iterable[Any],
        write_options: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> int:
        """
        Replace each document with the same id, in one bulk write.

        Returns:
            Total modified count
        """
        documents = self.before_replace_bulk(list(documents))
        return await self._bulk_write("replace_bulk", documents, write_options, options)

    async def _bulk_write(
        self,
        operation: str,
        documents: list[Any],
        write_options: Mapping[str, Any] | None,
        options: dict[str, Any],
    ) -> int:
        write_options = dict(DEFAULT_BULK_WRITE_OPTIONS if write_options is None else write_options)
        requests = []

        for doc in map_input_many(documents, self._options):
            if not isinstance(doc, Mapping) or doc.get(ID_FIELD) is None:
                raise MissingDocumentIdError(operation)

            id_filter = {ID_FIELD: to_object_id(doc[ID_FIELD])}
            body = {k: v for k, v in doc.items() if k != ID_FIELD}

            if operation == "update_bulk":
                requests.append(UpdateOne(id_filter, {"$set": body}, **options))
            else:
                requests.append(ReplaceOne(id_filter, body, **options))

        with self._operation(
            operation,
            operations=requests,
            options=options,
            write_options=write_options,
            documents=documents,
        ):
            if not requests:
                return 0
            result = await self.collection().bulk_write(requests, **write_options)
        return result.modified_count

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    async def delete_one(self, filter: Any, **options: Any) -> int:
        """Delete the first match; returns deleted count."""
        filter = map_input(filter, self._options)
        with self._operation("delete_one", filter=filter, options=options):
            result = await self.collection().delete_one(filter, **options)
        return result.deleted_count

    async def delete_many(self, filter: Any, **options: Any) -> int:
        """
        Delete every match; returns deleted count.

        A filter that is empty after mapping deletes nothing (use delete_all()).
        """
        self._log("delete_many", filter=filter, options=options)
        filter = map_input(filter, self._options)
        if not filter:
            return 0

        with self._operation("delete_many", filter=filter, options=options):
            result = await self.collection().delete_many(filter, **options)
        return result.deleted_count

    async def delete_all(self, **options: Any) -> int:
        """Delete every document in the collection."""
        with self._operation("delete_all", options=options):
            result = await self.collection().delete_many({}, **options)
        return result.deleted_count

    async def delete_by_id(self, id: Any, **options: Any) -> int:
        self._log("delete_by_id", id=id, options=options)
        return await self.delete_one({ID_FIELD: self.object_id(id)}, **options)

    async def delete_by_ids(self, ids: Iterable[Any], **options: Any) -> int:
        ids = list(ids)
        self._log("delete_by_ids", ids=ids, options=options)
        return await self.delete_many(
            {ID_FIELD: {"$in": self.convert_ids_to_object_ids(ids)}}, **options
        )

    # ------------------------------------------------------------------
    # Server and database commands
    # ------------------------------------------------------------------

    async def execute_command(
        self, command: Mapping[str, Any], database_name: str | None = None
    ) -> dict[str, Any]:
        """Run a database command (on this store's database by default)."""
        database_name = database_name or self.get_database_name()
        with self._operation("execute_command", command=command, database_name=database_name):
            return await self.client()[database_name].command(command)

    async def get_collections(self) -> list[str]:
        """List the collection names the current user may access."""
        with self._operation("get_collections"):
            return await self.database().list_collection_names(authorizedCollections=True)

    async def get_databases(self) -> list[str]:
        with self._operation("get_databases"):
            return await self.client().list_database_names()

    async def get_server_build_info(self) -> dict[str, Any]:
        return await self.execute_command({"buildinfo": 1})

    async def get_server_replica_set_status(self) -> dict[str, Any]:
        return await self.execute_command({"replSetGetStatus": 1}, ADMIN_DATABASE)

    async def get_server_status(self) -> dict[str, Any]:
        return await self.execute_command({"serverStatus": 1})

    async def get_server_version(self) -> str:
        build_info = await self.get_server_build_info()
        return build_info.get("version", "")

    def get_servers(self) -> list[str]:
        """Known server addresses as ``host:port``."""
        return [f"{host}:{port}" for host, port in sorted(self.client().nodes)]

    async def ping(self) -> bool:
        """Return True when the server answers a ping; connection failures return False."""
        try:
            result = await self.client()[ADMIN_DATABASE].command("ping")
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            self._log("ping", connection_timeout=True, exception_message=str(e))
            return False
        return int(result.get("ok", 0)) == 1

    def __repr__(self) -> str:
        database = self._database or self._options.db
        return f"{type(self).__name__}(database={database!r}, collection={self._collection_name!r})"
