"""
Configuration management for MDB_STORE.

Store options are a typed Pydantic model: every field is validated when the
options are built or changed, and an invalid value raises ConfigurationError
(chained from the Pydantic error), so a Store never sees a malformed option.
Options can be built directly, from environment variables, or installed as
process-wide defaults used by every Store created without explicit options.

Example:
    # Using environment variables (MDB_STORE_DB, MDB_STORE_HOSTS, ...)
    options = StoreOptions.from_env()

    # Or using direct parameters
    options = StoreOptions(db="app", hosts=["db1:27017", "db2:27017"], auto_id=True)

    # Or installing defaults for every Store
    configure(db="app", auto_id=True, auto_id_map_id="id")
"""

import os
import threading
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .constants import (
    ALLOW_ALL_RULE,
    CLIENT_APP_NAME,
    DEFAULT_HOSTS,
    DEFAULT_LIMIT,
    DEFAULT_MAX_IDLE_TIME_MS,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    ENV_PREFIX,
    MIN_SERVER_SELECTION_TIMEOUT_MS,
)
from .exceptions import ConfigurationError

_ALNUM_PATTERN = r"^[A-Za-z0-9]+$"

_BOOL_FIELDS = ("auto_id", "return_objects")
_INT_FIELDS = (
    "default_limit",
    "max_pool_size",
    "min_pool_size",
    "server_selection_timeout_ms",
)
_LIST_FIELDS = ("hosts", "collections")
_STR_FIELDS = (
    "db",
    "username",
    "password",
    "replica_set",
    "auto_id_map_id",
    "auto_id_map_timestamp",
)


class StoreOptions(BaseModel):
    """
    MongoDB store options.

    Identifier mapping:
        auto_id: Enable the identifier/timestamp mapping on reads and writes
        auto_id_map_id: Public field name exchanged with ``_id`` (alphanumeric)
        auto_id_map_timestamp: Field receiving the ObjectId timestamp on reads
            (alphanumeric, defaults to ``_ts`` when unset)
        return_objects: Return documents as attribute bags instead of dicts

    Access:
        collections: Allow-list rules ("db.collection" or "db.*"); empty allows all
        db: Default database name
        default_limit: Limit applied to find() when none is given (0 disables)

    Connection:
        hosts: Hosts, optionally with ports ("127.0.0.1:27017")
        username, password, replica_set: Driver credentials and replica set
        max_pool_size, min_pool_size, server_selection_timeout_ms: Pool tuning
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    auto_id: bool = Field(False, strict=True)
    auto_id_map_id: str | None = Field(None, pattern=_ALNUM_PATTERN)
    auto_id_map_timestamp: str | None = Field(None, pattern=_ALNUM_PATTERN)
    collections: list[str] = Field(default_factory=list)
    db: str | None = None
    default_limit: int = Field(DEFAULT_LIMIT, ge=0, strict=True)
    hosts: list[str] = Field(default_factory=lambda: list(DEFAULT_HOSTS), min_length=1)
    password: str | None = None
    replica_set: str | None = None
    return_objects: bool = Field(False, strict=True)
    username: str | None = None
    max_pool_size: int = Field(DEFAULT_MAX_POOL_SIZE, ge=1)
    min_pool_size: int = Field(DEFAULT_MIN_POOL_SIZE, ge=1)
    server_selection_timeout_ms: int = Field(
        DEFAULT_SERVER_SELECTION_TIMEOUT_MS, ge=MIN_SERVER_SELECTION_TIMEOUT_MS
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise _configuration_error(e, data) from e

    def __setattr__(self, name: str, value: Any) -> None:
        try:
            super().__setattr__(name, value)
        except ValidationError as e:
            raise _configuration_error(e, {name: value}) from e

    @field_validator("collections")
    @classmethod
    def _check_collection_rules(cls, rules: list[str]) -> list[str]:
        for rule in rules:
            if rule == ALLOW_ALL_RULE:
                continue
            database, sep, collection = rule.partition(".")
            if not sep or not database or not collection:
                raise ValueError(
                    f"Collection rule '{rule}' must look like 'db.collection' or 'db.*'"
                )
        return rules

    @field_validator("hosts")
    @classmethod
    def _check_hosts(cls, hosts: list[str]) -> list[str]:
        if any(not host.strip() for host in hosts):
            raise ValueError("Hosts must not be empty strings")
        return hosts

    @model_validator(mode="after")
    def _check_pool_sizes(self) -> "StoreOptions":
        if self.min_pool_size > self.max_pool_size:
            raise ValueError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})"
            )
        return self

    @classmethod
    def create(cls, **fields: Any) -> "StoreOptions":
        """
        Build options from keyword fields.

        Raises:
            ConfigurationError: If any field is invalid
        """
        return cls(**fields)

    @classmethod
    def from_env(cls, **overrides: Any) -> "StoreOptions":
        """
        Build options from ``MDB_STORE_*`` environment variables.

        Lists (hosts, collections) are comma-separated; booleans accept "true".
        Keyword arguments override the environment.

        Raises:
            ConfigurationError: If a variable cannot be parsed or is invalid
        """
        fields: dict[str, Any] = {}

        for name in _STR_FIELDS:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value:
                fields[name] = value

        for name in _BOOL_FIELDS:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value:
                fields[name] = value.lower() == "true"

        for name in _INT_FIELDS:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value:
                try:
                    fields[name] = int(value)
                except ValueError as e:
                    raise ConfigurationError(
                        f"{ENV_PREFIX}{name.upper()} must be an integer",
                        config_key=name,
                        config_value=value,
                    ) from e

        for name in _LIST_FIELDS:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value:
                fields[name] = [item.strip() for item in value.split(",") if item.strip()]

        fields.update(overrides)
        return cls.create(**fields)

    def has(self, name: str) -> bool:
        """Return True when the option is set (not None)."""
        return getattr(self, name) is not None

    @property
    def mongo_uri(self) -> str:
        """Connection URI built from the configured hosts."""
        return "mongodb://" + ",".join(self.hosts)

    def client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments passed to the driver client alongside mongo_uri."""
        kwargs: dict[str, Any] = {
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "appname": CLIENT_APP_NAME,
            "maxPoolSize": self.max_pool_size,
            "minPoolSize": self.min_pool_size,
            "maxIdleTimeMS": DEFAULT_MAX_IDLE_TIME_MS,
            "retryWrites": True,
            "retryReads": True,
        }
        if self.username is not None:
            kwargs["username"] = self.username
        if self.password is not None:
            kwargs["password"] = self.password
        if self.replica_set:
            kwargs["replicaSet"] = self.replica_set
        return kwargs


def _configuration_error(error: ValidationError, fields: dict[str, Any]) -> ConfigurationError:
    first = error.errors()[0]
    key = str(first["loc"][0]) if first.get("loc") else None
    return ConfigurationError(
        f"Invalid store option: {first['msg']}",
        config_key=key,
        config_value=fields.get(key) if key else None,
        context={"error_count": error.error_count()},
    )


# ============================================================================
# PROCESS-WIDE DEFAULT OPTIONS
# ============================================================================

_default_options: StoreOptions | None = None
_default_lock = threading.Lock()


def configure(options: StoreOptions | None = None, **fields: Any) -> StoreOptions:
    """
    Install the default options used by stores created without options.

    Args:
        options: A ready StoreOptions instance
        **fields: Option fields (used when ``options`` is None)

    Returns:
        The installed options
    """
    global _default_options
    new_options = options if options is not None else StoreOptions.create(**fields)
    with _default_lock:
        _default_options = new_options
    return new_options


def get_default_options() -> StoreOptions:
    """Get the default options, loading them from the environment on first use."""
    global _default_options
    with _default_lock:
        if _default_options is None:
            _default_options = StoreOptions.from_env()
        return _default_options


def reset_default_options() -> None:
    """Forget the installed default options."""
    global _default_options
    with _default_lock:
        _default_options = None
