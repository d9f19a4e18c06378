"""Performance monitoring decorator for rating operations."""

import threading
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from beartype import beartype

from ..core.config import Settings, get_settings
from ..core.logging_utils import get_logger

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)


@beartype
def performance_monitor(
    operation_name: str,
    max_duration_ms: int | None = None,
    log_slow_operations: bool = True,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to time a rating operation and log slow calls.

    Args:
        operation_name: Name of the operation for monitoring
        max_duration_ms: Warning threshold; defaults to ``slow_operation_ms``
            of the decorated method's ``settings``, else of the process
            settings
        log_slow_operations: Whether to log slow operations
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            threshold = (
                max_duration_ms
                if max_duration_ms is not None
                else _slow_threshold_ms(args)
            )
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                performance_tracker.track_operation(operation_name, duration_ms, False)
                logger.error(
                    "%s failed after %.2fms: %s", operation_name, duration_ms, e
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            performance_tracker.track_operation(operation_name, duration_ms, True)
            if log_slow_operations and duration_ms > threshold:
                logger.warning(
                    "%s took %.2fms (threshold: %dms)",
                    operation_name,
                    duration_ms,
                    threshold,
                )
            return result

        return wrapper

    return decorator


def _slow_threshold_ms(args: tuple[Any, ...]) -> int:
    owner_settings = getattr(args[0], "settings", None) if args else None
    if isinstance(owner_settings, Settings):
        return owner_settings.slow_operation_ms
    return get_settings().slow_operation_ms


@beartype
class PerformanceTracker:
    """Per-operation timing statistics, safe to update from many threads."""

    def __init__(self) -> None:
        self._operation_stats: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def track_operation(
        self, operation_name: str, duration_ms: float, success: bool
    ) -> None:
        """Track an operation's performance."""
        with self._lock:
            stats = self._operation_stats.setdefault(
                operation_name,
                {
                    "count": 0,
                    "total_duration_ms": 0.0,
                    "success_count": 0,
                    "failure_count": 0,
                    "avg_duration_ms": 0.0,
                    "max_duration_ms": 0.0,
                    "min_duration_ms": float("inf"),
                },
            )
            stats["count"] += 1
            stats["total_duration_ms"] += duration_ms
            if success:
                stats["success_count"] += 1
            else:
                stats["failure_count"] += 1
            stats["avg_duration_ms"] = stats["total_duration_ms"] / stats["count"]
            stats["max_duration_ms"] = max(stats["max_duration_ms"], duration_ms)
            stats["min_duration_ms"] = min(stats["min_duration_ms"], duration_ms)

    def get_operation_stats(self, operation_name: str) -> dict[str, Any] | None:
        with self._lock:
            stats = self._operation_stats.get(operation_name)
            return dict(stats) if stats is not None else None

    def reset_stats(self) -> None:
        """Reset all performance statistics."""
        with self._lock:
            self._operation_stats.clear()


# Global performance tracker instance
performance_tracker = PerformanceTracker()
