"""
Unit tests for custom exceptions.

Tests exception hierarchy and error messages.
"""

import pytest

from mdb_store.exceptions import (CollectionNotAllowedError,
                                  CollectionNotSetError, ConfigurationError,
                                  DatabaseNotSetError, InitializationError,
                                  MissingDocumentIdError, StoreError,
                                  StoreOperationError)


@pytest.mark.unit
class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    def test_store_error_is_runtime_error(self):
        """Test that StoreError is a RuntimeError."""
        assert isinstance(StoreError("test error"), RuntimeError)

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("bad config"),
            InitializationError("init failed"),
            CollectionNotAllowedError("app", "users"),
            CollectionNotSetError(),
            DatabaseNotSetError("Store"),
            MissingDocumentIdError("update_bulk"),
            StoreOperationError("failed"),
        ],
    )
    def test_subclasses_are_store_errors(self, error):
        """Test that every store exception inherits from StoreError."""
        assert isinstance(error, StoreError)
        assert isinstance(error, RuntimeError)


@pytest.mark.unit
class TestExceptionMessages:
    """Test exception message formatting."""

    def test_store_error_message(self):
        """Test StoreError message."""
        error = StoreError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.context == {}

    def test_store_error_with_context(self):
        """Test StoreError message with context."""
        error = StoreError("Something went wrong", context={"collection": "users"})

        assert str(error) == "Something went wrong (context: collection=users)"

    def test_configuration_error_context(self):
        """Test ConfigurationError with config key and value."""
        error = ConfigurationError("Invalid", config_key="default_limit", config_value=-1)

        assert error.config_key == "default_limit"
        assert error.config_value == -1
        assert error.context == {"config_key": "default_limit", "config_value": -1}

    def test_initialization_error_context(self):
        """Test InitializationError with MongoDB context."""
        error = InitializationError(
            "Connection failed", mongo_uri="mongodb://localhost:27017", db_name="test_db"
        )

        assert error.mongo_uri == "mongodb://localhost:27017"
        assert error.db_name == "test_db"
        assert "mongo_uri" in error.context
        assert "db_name" in error.context

    def test_collection_not_allowed_message(self):
        """Test CollectionNotAllowedError message."""
        error = CollectionNotAllowedError("app", "secrets")

        assert str(error) == 'Collection "app.secrets" is not allowed'
        assert error.database == "app"
        assert error.collection == "secrets"

    def test_collection_not_set_message(self):
        """Test CollectionNotSetError message."""
        assert str(CollectionNotSetError()) == "Collection name has not been set"

    def test_database_not_set_message(self):
        """Test DatabaseNotSetError message."""
        error = DatabaseNotSetError("UserStore")

        assert str(error) == (
            "No database set in UserStore constructor and missing default db in options"
        )

    def test_missing_document_id_message(self):
        """Test MissingDocumentIdError message."""
        error = MissingDocumentIdError("replace_bulk")

        assert error.message == "Method replace_bulk() requires all documents to have an ID"
        assert error.operation == "replace_bulk"

    def test_store_operation_error_context(self):
        """Test StoreOperationError context."""
        error = StoreOperationError("failed", operation="find", collection="users")

        assert error.operation == "find"
        assert error.collection == "users"
        assert error.context == {"operation": "find", "collection": "users"}
