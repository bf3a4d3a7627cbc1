"""Observability utilities for the Nootverse client.

Provides persistent disk logging with rotation, per-operation timing
metrics, and async-aware operation tracing with correlation ids.
"""
import functools
import inspect
import logging
import time
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

# Root of the package logger hierarchy
ROOT_LOGGER_NAME = "nootverse_client"

# Logging format with ISO 8601 timestamps
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

F = TypeVar('F', bound=Callable[..., Any])

_logging_configured = False


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    level: Union[int, str] = logging.INFO,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    console: bool = True,
) -> Path:
    """Configure rotating file logging for the client logger hierarchy.

    Args:
        log_dir: Directory for log files. Defaults to ~/.nootverse/logs/
        level: Logging level, numeric or name (default: INFO)
        max_bytes: Maximum size per log file before rotation (default: 5 MB)
        backup_count: Number of rotated files to keep (default: 3)
        console: Also log to stderr (default: True)

    Returns:
        Path to the log directory
    """
    global _logging_configured

    log_path = Path(log_dir) if log_dir else Path.home() / ".nootverse" / "logs"
    log_path.mkdir(parents=True, exist_ok=True)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    log_file = log_path / "nootverse.log"
    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if console and not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
        for h in root_logger.handlers
    ):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    _logging_configured = True
    root_logger.info(f"Logging configured: {log_file} (max {max_bytes} bytes, {backup_count} backups)")

    return log_path


def is_logging_configured() -> bool:
    """Check if file logging has been configured."""
    return _logging_configured


@dataclass
class OperationMetrics:
    """Metrics for a single operation type."""
    count: int = 0
    success_count: int = 0
    error_count: int = 0
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None


class MetricsCollector:
    """Per-operation timing and failure counters for remote calls.

    Operation names are the actor method names (getAllOwnedNotes,
    updateUniverse, ...), so the summary shows which remote calls fail.
    """

    def __init__(self) -> None:
        self._metrics: Dict[str, OperationMetrics] = defaultdict(OperationMetrics)
        self._lock = Lock()
        self._start_time = datetime.now(timezone.utc)

    def record_operation(
        self,
        operation: str,
        duration_ms: float,
        success: bool,
        error: Optional[str] = None
    ) -> None:
        with self._lock:
            m = self._metrics[operation]
            m.count += 1
            m.total_duration_ms += duration_ms
            m.max_duration_ms = max(m.max_duration_ms, duration_ms)
            if success:
                m.success_count += 1
            else:
                m.error_count += 1
                m.last_error = error
                m.last_error_time = datetime.now(timezone.utc)

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Get a snapshot of all metrics keyed by operation name."""
        with self._lock:
            return {
                op: {
                    'count': m.count,
                    'success_count': m.success_count,
                    'error_count': m.error_count,
                    'avg_duration_ms': round(m.total_duration_ms / m.count, 2) if m.count else 0,
                    'max_duration_ms': round(m.max_duration_ms, 2),
                    'last_error': m.last_error,
                    'last_error_time': m.last_error_time.isoformat() if m.last_error_time else None,
                }
                for op, m in self._metrics.items()
            }

    def get_summary(self) -> Dict[str, Any]:
        """Get aggregate statistics across all operations."""
        with self._lock:
            total_ops = sum(m.count for m in self._metrics.values())
            total_errors = sum(m.error_count for m in self._metrics.values())
            return {
                'uptime_seconds': (datetime.now(timezone.utc) - self._start_time).total_seconds(),
                'total_operations': total_ops,
                'total_errors': total_errors,
                'overall_success_rate': (total_ops - total_errors) / total_ops if total_ops else 1.0,
                'operations_tracked': sorted(self._metrics.keys()),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._metrics.clear()
            self._start_time = datetime.now(timezone.utc)


# Global metrics collector instance
metrics = MetricsCollector()


@contextmanager
def timed_operation(operation: str, **context) -> Iterator[Dict[str, Any]]:
    """Context manager for timing and logging operations.

    Works around ``await`` expressions as well: the timer spans whatever
    the ``with`` body suspends on.

    Example:
        with timed_operation('searchUniverses', query=q) as op:
            results = await channel.call('searchUniverses', q)
            op['result_count'] = len(results)
    """
    correlation_id = str(uuid.uuid4())[:8]
    start_time = time.perf_counter()
    result_info: Dict[str, Any] = {'correlation_id': correlation_id}

    context_str = ', '.join(f'{k}={v}' for k, v in context.items())
    logger.debug(f"[{correlation_id}] START {operation} ({context_str})")

    error_msg = None
    success = True

    try:
        yield result_info
    except Exception as e:
        success = False
        error_msg = str(e)
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        metrics.record_operation(operation, duration_ms, success, error_msg)

        result_str = ', '.join(f'{k}={v}' for k, v in result_info.items() if k != 'correlation_id')
        status = 'OK' if success else f'ERROR: {error_msg}'
        logger.debug(
            f"[{correlation_id}] END {operation} "
            f"({duration_ms:.2f}ms) [{status}] {result_str}"
        )


def _describe_result(op: Dict[str, Any], result: Any) -> None:
    if hasattr(result, '__len__') and not isinstance(result, str):
        op['result_count'] = len(result)
    elif result is not None:
        op['has_result'] = True


def traced(operation_name: Optional[str] = None) -> Callable[[F], F]:
    """Decorator for automatic operation tracing.

    Handles both plain functions and coroutine functions.

    Example:
        @traced('load')
        async def load(self) -> bool:
            ...
    """
    def decorator(func: F) -> F:
        op_name = operation_name or func.__name__
        signature = inspect.signature(func)

        def _context(args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
            try:
                bound = signature.bind(*args, **kwargs)
            except TypeError:
                # Let the call itself report the bad arguments
                return {}
            return {
                name: bound.arguments[name]
                for name in ('position', 'record_id')
                if name in bound.arguments
            }

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with timed_operation(op_name, **_context(args, kwargs)) as op:
                    result = await func(*args, **kwargs)
                    _describe_result(op, result)
                    return result

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with timed_operation(op_name, **_context(args, kwargs)) as op:
                result = func(*args, **kwargs)
                _describe_result(op, result)
                return result

        return wrapper  # type: ignore
    return decorator
