"""
Connection management for MDB_STORE.

The driver client is created lazily from StoreOptions on first use. Creating
it performs no I/O: Motor connects in the background and the first operation
(or ``verify()``) surfaces connection problems.
"""

import logging
import threading
import time

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConfigurationError as DriverConfigurationError
from pymongo.errors import ConnectionFailure, OperationFailure, ServerSelectionTimeoutError

from ..config import StoreOptions
from ..constants import ADMIN_DATABASE
from ..exceptions import InitializationError
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class ConnectionManager:
    """
    Owns the Motor client for one set of store options.

    Stores bound to different collections share a single manager, and with it
    the driver's connection pool.
    """

    def __init__(self, options: StoreOptions) -> None:
        self.options = options
        self._mongo_client: AsyncIOMotorClient | None = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        """Check if the client has been created."""
        return self._mongo_client is not None

    @property
    def client(self) -> AsyncIOMotorClient:
        """
        Get the Motor client, creating it on first access.

        Raises:
            InitializationError: If the driver rejects the options
        """
        if self._mongo_client is not None:
            return self._mongo_client

        with self._lock:
            if self._mongo_client is None:
                self._mongo_client = self._create_client()
        return self._mongo_client

    def _create_client(self) -> AsyncIOMotorClient:
        start_time = time.time()
        mongo_uri = self.options.mongo_uri

        contextual_logger.info(
            "Creating MongoDB client",
            extra={
                "hosts": self.options.hosts,
                "replica_set": self.options.replica_set,
                "max_pool_size": self.options.max_pool_size,
                "min_pool_size": self.options.min_pool_size,
            },
        )

        try:
            client = AsyncIOMotorClient(mongo_uri, **self.options.client_kwargs())
        except (DriverConfigurationError, ConnectionFailure, ValueError, TypeError) as e:
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.initialize", duration_ms, success=False)
            contextual_logger.critical(
                "MongoDB client creation failed",
                extra={"error_type": type(e).__name__, "error": str(e)},
                exc_info=True,
            )
            raise InitializationError(
                f"Failed to create MongoDB client: {e}",
                mongo_uri=mongo_uri,
                db_name=self.options.db,
                context={"error_type": type(e).__name__},
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        record_operation("connection.initialize", duration_ms, success=True)
        return client

    async def verify(self) -> None:
        """
        Ping the server to make sure the connection works.

        Raises:
            InitializationError: If the server cannot be reached
        """
        start_time = time.time()
        try:
            await self.client[ADMIN_DATABASE].command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError, OperationFailure) as e:
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.verify", duration_ms, success=False)
            contextual_logger.critical(
                "MongoDB connection failed",
                extra={
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            raise InitializationError(
                f"Failed to connect to MongoDB: {e}",
                mongo_uri=self.options.mongo_uri,
                db_name=self.options.db,
                context={"error_type": type(e).__name__},
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        record_operation("connection.verify", duration_ms, success=True)
        contextual_logger.info(
            "MongoDB connection verified",
            extra={"duration_ms": round(duration_ms, 2)},
        )

    def close(self) -> None:
        """
        Close the client and release the pool.

        This method is idempotent - it's safe to call multiple times.
        """
        with self._lock:
            client, self._mongo_client = self._mongo_client, None

        if client is not None:
            client.close()
            contextual_logger.info("MongoDB connection closed.")
