"""
Metrics collection for MDB_STORE.

Every store operation is timed and recorded here, tagged with the database
and collection it ran against.
"""

import functools
import inspect
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class OperationMetrics:
    """Metrics for a single operation."""

    operation_name: str
    count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: float = float("inf")
    max_duration_ms: float = 0.0
    error_count: int = 0
    last_execution: datetime | None = None

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average duration in milliseconds."""
        return self.total_duration_ms / self.count if self.count > 0 else 0.0

    @property
    def error_rate(self) -> float:
        """Calculate error rate as percentage."""
        return (self.error_count / self.count * 100) if self.count > 0 else 0.0

    def record(self, duration_ms: float, success: bool = True) -> None:
        """Record a single operation execution."""
        self.count += 1
        self.total_duration_ms += duration_ms
        self.min_duration_ms = min(self.min_duration_ms, duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if not success:
            self.error_count += 1
        self.last_execution = datetime.now()

    def merge(self, other: "OperationMetrics") -> None:
        """Fold another metric of the same operation into this one."""
        self.count += other.count
        self.total_duration_ms += other.total_duration_ms
        self.min_duration_ms = min(self.min_duration_ms, other.min_duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, other.max_duration_ms)
        self.error_count += other.error_count
        if other.last_execution and (
            not self.last_execution or other.last_execution > self.last_execution
        ):
            self.last_execution = other.last_execution

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "operation": self.operation_name,
            "count": self.count,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
            "min_duration_ms": (
                round(self.min_duration_ms, 2) if self.min_duration_ms != float("inf") else 0.0
            ),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "error_count": self.error_count,
            "error_rate_percent": round(self.error_rate, 2),
            "last_execution": (self.last_execution.isoformat() if self.last_execution else None),
        }


class MetricsCollector:
    """
    Thread-safe metrics collector with bounded (LRU) storage.

    Metrics are keyed by operation name plus sorted tags, e.g.
    ``store.find[collection=users_database=app]``.
    """

    def __init__(self, max_metrics: int = 10000):
        """
        Initialize the metrics collector.

        Args:
            max_metrics: Maximum number of metrics to store before evicting oldest (LRU).
        """
        self._metrics: OrderedDict[str, OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics

    @staticmethod
    def _key(operation_name: str, tags: dict[str, Any]) -> str:
        if not tags:
            return operation_name
        tag_str = "_".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{operation_name}[{tag_str}]"

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True, **tags: Any
    ) -> None:
        """
        Record an operation execution.

        Args:
            operation_name: Name of the operation (e.g., "store.find")
            duration_ms: Duration in milliseconds
            success: Whether the operation succeeded
            **tags: Additional tags (database, collection, ...)
        """
        key = self._key(operation_name, tags)

        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                if len(self._metrics) >= self._max_metrics:
                    self._metrics.popitem(last=False)
                metric = self._metrics[key] = OperationMetrics(operation_name=operation_name)
            else:
                self._metrics.move_to_end(key)

            metric.record(duration_ms, success)

    def get_metrics(self, operation_name: str | None = None) -> dict[str, Any]:
        """
        Get metrics, optionally only those whose key starts with ``operation_name``.
        """
        with self._lock:
            metrics = {
                k: v.to_dict()
                for k, v in self._metrics.items()
                if operation_name is None or k.startswith(operation_name)
            }
            total_operations = len(self._metrics)

        return {
            "timestamp": datetime.now().isoformat(),
            "metrics": metrics,
            "total_operations": total_operations,
        }

    def get_summary(self) -> dict[str, Any]:
        """Get metrics aggregated by operation name (tags dropped)."""
        with self._lock:
            aggregated: dict[str, OperationMetrics] = {}
            for metric in self._metrics.values():
                name = metric.operation_name
                if name not in aggregated:
                    aggregated[name] = OperationMetrics(operation_name=name)
                aggregated[name].merge(metric)
            total_operations = len(self._metrics)

        return {
            "timestamp": datetime.now().isoformat(),
            "total_operations": total_operations,
            "summary": {name: m.to_dict() for name, m in aggregated.items()},
        }

    def get_operation_count(self, operation_name: str) -> int:
        """Get the count of executions for an operation across all tags."""
        with self._lock:
            return sum(
                m.count for m in self._metrics.values() if m.operation_name == operation_name
            )

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self._metrics.clear()


# Global metrics collector instance
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def record_operation(
    operation_name: str, duration_ms: float, success: bool = True, **tags: Any
) -> None:
    """Record an operation in the global metrics collector."""
    get_metrics_collector().record_operation(operation_name, duration_ms, success, **tags)


@contextmanager
def operation_timer(operation_name: str, **tags: Any) -> Iterator[None]:
    """
    Time the enclosed block and record it; an exception marks it failed.

    Usage:
        with operation_timer("store.find", database="app", collection="users"):
            ...
    """
    start_time = time.time()
    success = True
    try:
        yield
    except BaseException:
        success = False
        raise
    finally:
        duration_ms = (time.time() - start_time) * 1000
        record_operation(operation_name, duration_ms, success, **tags)


def timed_operation(operation_name: str, **tags: Any):
    """
    Decorator to automatically time and record an operation.

    Usage:
        @timed_operation("connection.verify")
        async def verify(self):
            ...
    """

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with operation_timer(operation_name, **tags):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with operation_timer(operation_name, **tags):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator
