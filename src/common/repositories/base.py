"""
Backend Interface Definitions

Defines the abstract interface for the hosted data store the application
reads companies from and writes interaction events to. Components receive an
implementation by injection, so tests can substitute an in-memory double.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass
class WriteResult:
    """
    Result of a write operation.

    Attributes:
        matched_count: Number of documents that matched the filter
        modified_count: Number of documents actually modified
        inserted_id: ID of the inserted document (if any)
    """
    matched_count: int
    modified_count: int
    inserted_id: Optional[str] = None


class Subscription(ABC):
    """Handle for a realtime change subscription."""

    @abstractmethod
    def close(self) -> None:
        """Stop delivering change notifications."""
        pass


ChangeCallback = Callable[[str], None]


class BackendInterface(ABC):
    """
    Abstract interface for backend table operations.

    Implementations:
    - MongoBackend: MongoDB collections + change streams

    All methods follow fail-fast semantics: errors propagate to the caller,
    which decides whether the failure is contained (logging, fetches) or not.
    """

    @abstractmethod
    def query(
        self,
        table: str,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[List[tuple]] = None,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """Read records matching an equality filter."""
        pass

    @abstractmethod
    def insert(self, table: str, record: Dict[str, Any]) -> WriteResult:
        """Insert one record."""
        pass

    @abstractmethod
    def update(self, table: str, record_id: Any, patch: Dict[str, Any]) -> WriteResult:
        """Update fields of the record with the given id."""
        pass

    @abstractmethod
    def delete(self, table: str, filter: Dict[str, Any]) -> WriteResult:
        """Delete records matching an equality filter."""
        pass

    @abstractmethod
    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """
        Invoke callback(table) whenever the table changes.

        The callback carries no payload; consumers re-fetch.
        """
        pass
