"""
Backend Configuration and Factory

Provides a factory function returning the backend implementation
configured by environment variables. The backend is constructed once per
process and injected into components.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from .base import BackendInterface

logger = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """
    Configuration for backend initialization.

    Loaded from environment variables with sensible defaults.
    """
    mongodb_uri: str
    database: str = "job_database"

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - MONGODB_URI (required): MongoDB connection string
        - MONGODB_DATABASE: Database name (default: job_database)
        """
        mongodb_uri = os.getenv("MONGODB_URI")
        if not mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required")

        return cls(
            mongodb_uri=mongodb_uri,
            database=os.getenv("MONGODB_DATABASE", "job_database"),
        )


# Singleton backend instance
_backend_instance: Optional[BackendInterface] = None


def get_backend() -> BackendInterface:
    """
    Get the backend instance.

    Uses singleton pattern for connection pooling.
    """
    global _backend_instance

    if _backend_instance is None:
        config = RepositoryConfig.from_env()

        from .mongo_repository import MongoBackend
        _backend_instance = MongoBackend(
            mongodb_uri=config.mongodb_uri,
            database=config.database,
        )
        logger.info(f"Initialized MongoDB backend ({config.database})")

    return _backend_instance


def reset_backend() -> None:
    """Reset the backend singleton."""
    global _backend_instance

    if _backend_instance is not None:
        from .mongo_repository import MongoBackend
        if isinstance(_backend_instance, MongoBackend):
            MongoBackend.reset_connection()

    _backend_instance = None
    logger.info("Backend singleton reset")
