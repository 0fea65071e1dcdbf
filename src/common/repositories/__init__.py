"""
Backend Repository Pattern for MongoDB Operations

Provides an injected abstraction over the data store so components can be
tested against an in-memory double.

Public API:
- get_backend(): Factory to get the configured backend instance
- BackendInterface: Abstract interface (query/insert/update/delete/subscribe)
- WriteResult: Result dataclass for write operations
"""

from .base import BackendInterface, Subscription, WriteResult
from .config import (
    get_backend,
    reset_backend,
    RepositoryConfig,
)

__all__ = [
    "get_backend",
    "reset_backend",
    "BackendInterface",
    "Subscription",
    "WriteResult",
    "RepositoryConfig",
]
