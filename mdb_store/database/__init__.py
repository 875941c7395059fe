"""
Database access layer.

Provides the Store convenience API, collection allow-listing
and connection management.
"""

from .allowlist import CollectionAllowList
from .connection import ConnectionManager
from .store import Store

__all__ = [
    # Store
    "Store",
    # Collection security
    "CollectionAllowList",
    # Connection
    "ConnectionManager",
]
