"""
Constants for MDB_STORE.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_HOSTS: Final[tuple[str, ...]] = ("127.0.0.1",)
"""Default MongoDB hosts (a host may carry a port, e.g. "127.0.0.1:27017")."""

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 10
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

MIN_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 1000
"""Lowest accepted server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

CLIENT_APP_NAME: Final[str] = "MDB_STORE"
"""Application name reported to the server by the driver."""

ADMIN_DATABASE: Final[str] = "admin"
"""Database used for server-level commands."""

# ============================================================================
# QUERY CONSTANTS
# ============================================================================

DEFAULT_LIMIT: Final[int] = 0
"""Default find() limit applied when the caller passes none (0 disables)."""

DEFAULT_BULK_WRITE_OPTIONS: Final[dict] = {"ordered": True}
"""Write options used by bulk updates/replaces when the caller passes none."""

# ============================================================================
# IDENTIFIER MAPPING CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "_id"
"""Primary key field used by MongoDB."""

DEFAULT_TIMESTAMP_FIELD: Final[str] = "_ts"
"""Field receiving the ObjectId timestamp when no mapped name is configured."""

OBJECT_ID_HEX_LENGTH: Final[int] = 24
"""Length of an ObjectId hex string."""

# ============================================================================
# ALLOW-LIST CONSTANTS
# ============================================================================

ALLOW_ALL_RULE: Final[str] = "*"
"""Allow-list rule permitting every database and collection."""

WILDCARD_COLLECTION: Final[str] = "*"
"""Collection part of a "db.*" rule permitting every collection in a database."""

# ============================================================================
# LOGGING CONSTANTS
# ============================================================================

LOG_CHANNEL: Final[str] = "mdb_store.operations"
"""Logger name that receives one debug record per store operation."""

ENV_PREFIX: Final[str] = "MDB_STORE_"
"""Prefix of environment variables read by StoreOptions.from_env()."""
