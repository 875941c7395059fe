"""
MDB_STORE - MongoDB Store

Short, convenient async access to MongoDB collections, with
automatic identifier mapping and collection allow-listing.
"""

# Configuration
from .config import StoreOptions, configure, get_default_options, reset_default_options
# Database layer
from .database import CollectionAllowList, ConnectionManager, Store
# Errors
from .exceptions import (CollectionNotAllowedError, CollectionNotSetError,
                         ConfigurationError, DatabaseNotSetError,
                         InitializationError, MissingDocumentIdError,
                         StoreError, StoreOperationError)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Store",
    "StoreOptions",
    "configure",
    "get_default_options",
    "reset_default_options",
    # Database
    "CollectionAllowList",
    "ConnectionManager",
    # Errors
    "StoreError",
    "ConfigurationError",
    "InitializationError",
    "CollectionNotAllowedError",
    "CollectionNotSetError",
    "DatabaseNotSetError",
    "MissingDocumentIdError",
    "StoreOperationError",
]
