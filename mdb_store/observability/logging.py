"""
Logging utilities for MDB_STORE.

Provides structured logging with correlation IDs and store context
(database, collection) merged into every record's ``extra``.
"""

import contextvars
import logging
import uuid
from datetime import datetime
from typing import Any

from ..constants import LOG_CHANNEL

# Context variable for correlation ID
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set a correlation ID in the current context.

    Args:
        correlation_id: Optional correlation ID (generates new one if None)

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    """Clear the correlation ID from context."""
    _correlation_id.set(None)


def get_logging_context() -> dict[str, Any]:
    """Get the current logging context (timestamp and correlation ID)."""
    context: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
    }

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds correlation ID and adapter context to log records.

    The adapter's own ``extra`` (e.g. ``{"db": ..., "collection": ...}``) is
    merged first; per-call ``extra`` wins over both.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = get_logging_context()
        if self.extra:
            context.update(self.extra)

        extra = kwargs.get("extra", {})
        if extra:
            context.update(extra)

        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str, **context: Any) -> ContextualLoggerAdapter:
    """
    Get a contextual logger that automatically adds correlation ID and context.

    Args:
        name: Logger name (typically __name__)
        **context: Fixed context added to every record

    Returns:
        ContextualLoggerAdapter instance
    """
    return ContextualLoggerAdapter(logging.getLogger(name), context)


def get_operation_logger(database: str | None, collection: str | None) -> ContextualLoggerAdapter:
    """Get the operations-channel logger bound to a database and collection."""
    return get_logger(LOG_CHANNEL, db=database, collection=collection)


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log an operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name
        level: Log level
        success: Whether operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional context
    """
    log_context: dict[str, Any] = {
        "operation": operation,
        "success": success,
    }

    if duration_ms is not None:
        log_context["duration_ms"] = round(duration_ms, 2)

    if context:
        log_context.update(context)

    message = f"Operation: {operation}"
    if not success:
        message = f"Operation failed: {operation}"
    if duration_ms is not None:
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=log_context)
