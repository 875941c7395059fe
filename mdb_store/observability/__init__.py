"""
Observability components.

Provides structured logging, metrics collection and health check capabilities.
"""

from .health import (
    HealthChecker,
    HealthCheckResult,
    HealthStatus,
    check_mongodb_health,
    check_store_health,
)
from .logging import (
    ContextualLoggerAdapter,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    get_logging_context,
    get_operation_logger,
    log_operation,
    set_correlation_id,
)
from .metrics import (
    MetricsCollector,
    OperationMetrics,
    get_metrics_collector,
    operation_timer,
    record_operation,
    timed_operation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "operation_timer",
    "record_operation",
    "timed_operation",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "get_operation_logger",
    "log_operation",
    # Health
    "HealthStatus",
    "HealthCheckResult",
    "HealthChecker",
    "check_mongodb_health",
    "check_store_health",
]
