"""
Centralized logging configuration for the job database.

Provides logging tagged with the acting student and the page,
so operational logs of fire-and-forget writes can be traced back to a session.
Supports debug_mode flag for verbose logging.
"""

import logging
import os
import sys
from typing import Optional


# Global debug mode flag - can be set via environment
_GLOBAL_DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"


def is_debug_mode() -> bool:
    """Check if debug mode is enabled globally."""
    return _GLOBAL_DEBUG_MODE


class ContextLogger:
    """
    Logger that adds the actor's short id and the page to all log messages.
    """

    def __init__(
        self,
        name: str,
        actor: Optional[str] = None,
        page: Optional[str] = None,
        debug_mode: Optional[bool] = None
    ):
        """
        Initialize context logger.

        Args:
            name: Logger name (usually __name__)
            actor: Optional short actor id (student number) for correlation
            page: Optional page name (e.g., "jobs", "admin")
            debug_mode: If True, enables DEBUG level for this logger.
                       If None, uses global debug mode setting.
        """
        self.logger = logging.getLogger(name)
        self.actor = actor
        self.page = page

        self._debug_mode = debug_mode if debug_mode is not None else is_debug_mode()

        if self._debug_mode:
            self.logger.setLevel(logging.DEBUG)

    def _format_message(self, message: str) -> str:
        """Add contextual prefix to message."""
        prefix_parts = []
        if self.actor:
            prefix_parts.append(f"[actor:{self.actor}]")
        if self.page:
            prefix_parts.append(f"[{self.page}]")

        if prefix_parts:
            return f"{' '.join(prefix_parts)} {message}"
        return message

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._format_message(message), **kwargs)

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_message(message), **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_message(message), **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(self._format_message(message), **kwargs)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure global logging settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format ("simple" or "json")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Remove existing handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if format == "json":
        # JSON lines for log aggregators
        formatter = logging.Formatter(
            '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(
    name: str,
    actor: Optional[str] = None,
    page: Optional[str] = None,
    debug_mode: Optional[bool] = None
) -> ContextLogger:
    """
    Get a context logger instance.

    Args:
        name: Logger name (usually __name__)
        actor: Optional short actor id
        page: Optional page name
        debug_mode: If True, enables DEBUG level. If None, uses global setting.

    Returns:
        ContextLogger instance
    """
    return ContextLogger(name, actor, page, debug_mode)
