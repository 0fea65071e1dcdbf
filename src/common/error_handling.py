"""
Centralized error handling for the job database.

Failures in data-fetch and event-logging paths are contained at the call
site: they are logged to the operational log and replaced by a fallback,
never shown to students as raw backend errors.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar, List
from dataclasses import dataclass, field
from datetime import datetime, timezone

T = TypeVar("T")


class JobDatabaseError(Exception):
    """Base class for application errors."""


class DataUnavailableError(JobDatabaseError):
    """A read from the backend failed; the dependent view shows "no data"."""

    def __init__(self, source: str, message: str = ""):
        self.source = source
        super().__init__(message or f"Data source unavailable: {source}")


class AuthenticationError(JobDatabaseError):
    """Wrong student number or password."""


class AuthorizationError(JobDatabaseError):
    """Authenticated actor lacks the privileges for an admin-only view."""


class UnknownFilterError(JobDatabaseError, ValueError):
    """A filter toggle named a filter that does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown filter: {name!r}")


@dataclass
class SourceError:
    """
    Structured information about a failed data source.

    Used by the dashboard report to mark sections as unavailable.
    """

    source: str  # e.g., "view_logs", "users"
    operation: str  # e.g., "fetch"
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    exception_type: Optional[str] = None


class ErrorCollector:
    """Collects contained failures while a report is being built."""

    def __init__(self):
        self.errors: List[SourceError] = []

    def add_error(
        self,
        source: str,
        operation: str,
        message: str,
        exception: Optional[Exception] = None,
    ) -> None:
        self.errors.append(
            SourceError(
                source=source,
                operation=operation,
                message=message,
                exception_type=type(exception).__name__ if exception else None,
            )
        )

    def failed_sources(self) -> List[str]:
        return [e.source for e in self.errors]

    def has_errors(self) -> bool:
        return bool(self.errors)


def contained_operation(
    operation_name: str,
    fallback_value: Any = None,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Decorator for best-effort operations whose failure must not propagate.

    The wrapped function's exceptions are logged on the function module's
    logger and the fallback value is returned instead.

    Usage:
        @contained_operation("bookmark fetch", fallback_value=set())
        def list_for(self, actor):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.log(level, f"[{operation_name}] Failed: {e}", exc_info=include_traceback)
                return fallback_value

        return wrapper

    return decorator


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them.

    Usage:
        with log_on_exception(logger, "companies fetch", level=logging.ERROR):
            backend.query("companies")
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(level, f"[{operation}] Failed: {exc_val}", exc_info=include_traceback)
            # Do not suppress the exception
            return False

    return ExceptionLogger()


def safe_execute(
    func: Callable[..., T],
    *args,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    fallback: T = None,
    **kwargs,
) -> T:
    """
    Call func and return its result, or log the failure and return fallback.

    Used by the interaction-log dispatchers, whose writes must never
    propagate into the request that triggered them.
    """
    logger = logger or logging.getLogger(__name__)
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.warning(f"[{operation_name}] Failed: {e}")
        return fallback
