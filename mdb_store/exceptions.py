"""
Custom exceptions for MDB_STORE.

These exceptions provide more specific error types while maintaining
backward compatibility with RuntimeError.
"""

from typing import Any, Dict, Optional


class StoreError(RuntimeError):
    """
    Base exception for MDB_STORE errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (database,
                 collection, operation, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(StoreError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class InitializationError(StoreError):
    """
    Raised when the MongoDB connection cannot be established or verified.

    Attributes:
        message: Error message
        mongo_uri: MongoDB connection URI (if available)
        db_name: Database name (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        mongo_uri: Optional[str] = None,
        db_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if mongo_uri:
            context["mongo_uri"] = mongo_uri
        if db_name:
            context["db_name"] = db_name
        super().__init__(message, context=context)
        self.mongo_uri = mongo_uri
        self.db_name = db_name


class CollectionNotAllowedError(StoreError):
    """Raised when a collection outside the configured allow-list is selected."""

    def __init__(self, database: str, collection: str) -> None:
        super().__init__(f'Collection "{database}.{collection}" is not allowed')
        self.database = database
        self.collection = collection


class CollectionNotSetError(StoreError):
    """Raised when a collection operation runs on a store with no bound collection."""

    def __init__(self, message: str = "Collection name has not been set") -> None:
        super().__init__(message)


class DatabaseNotSetError(StoreError):
    """Raised when neither the store nor the options name a database."""

    def __init__(self, store_class: str) -> None:
        super().__init__(
            f"No database set in {store_class} constructor and missing default db in options"
        )
        self.store_class = store_class


class MissingDocumentIdError(StoreError):
    """Raised when a bulk write receives a document without an _id."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Method {operation}() requires all documents to have an ID",
            context={"operation": operation},
        )
        self.operation = operation


class StoreOperationError(StoreError):
    """
    Raised when the driver fails while executing a store operation.

    The driver exception is always chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if operation:
            context["operation"] = operation
        if collection:
            context["collection"] = collection
        super().__init__(message, context=context)
        self.operation = operation
        self.collection = collection
