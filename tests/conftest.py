"""
Shared fixtures for all test suites.

Provides an in-memory BackendInterface so services, the interaction logger
and the report builder can be exercised without MongoDB.
"""

import itertools
from typing import Any, Callable, Dict, List, Optional

import pytest

from src.common.actors import Actor
from src.common.repositories.base import BackendInterface, Subscription, WriteResult


class MemorySubscription(Subscription):
    def __init__(self, backend: "MemoryBackend", table: str, callback: Callable[[str], None]):
        self.backend = backend
        self.table = table
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        self.closed = True


class MemoryBackend(BackendInterface):
    """
    Dict-of-lists backend.

    fail(table, op) makes the next and all following calls of op on table
    raise, so containment paths can be tested.
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self.subscriptions: List[MemorySubscription] = []
        self._failures: Dict[tuple, Exception] = {}
        self._ids = itertools.count(1)

    def fail(self, table: str, op: str, error: Optional[Exception] = None) -> None:
        self._failures[(table, op)] = error or ConnectionError(f"{table} {op} unavailable")

    def _check(self, table: str, op: str) -> None:
        error = self._failures.get((table, op))
        if error is not None:
            raise error

    @staticmethod
    def _matches(record: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
        return all(record.get(k) == v for k, v in (filter or {}).items())

    def query(self, table, filter=None, sort=None, limit=0):
        self._check(table, "query")
        rows = [dict(r) for r in self.tables.get(table, []) if self._matches(r, filter)]
        for field, direction in reversed(sort or []):
            rows.sort(key=lambda r: r.get(field) or "", reverse=direction < 0)
        return rows[:limit] if limit > 0 else rows

    def insert(self, table, record):
        self._check(table, "insert")
        stored = dict(record)
        stored.setdefault("_id", f"id-{next(self._ids)}")
        self.tables.setdefault(table, []).append(stored)
        self._emit(table)
        return WriteResult(matched_count=0, modified_count=0, inserted_id=stored["_id"])

    def update(self, table, record_id, patch):
        self._check(table, "update")
        for row in self.tables.get(table, []):
            if row.get("_id") == record_id:
                row.update(patch)
                self._emit(table)
                return WriteResult(matched_count=1, modified_count=1)
        return WriteResult(matched_count=0, modified_count=0)

    def delete(self, table, filter):
        self._check(table, "delete")
        rows = self.tables.get(table, [])
        kept = [r for r in rows if not self._matches(r, filter)]
        removed = len(rows) - len(kept)
        self.tables[table] = kept
        if removed:
            self._emit(table)
        return WriteResult(matched_count=removed, modified_count=removed)

    def subscribe(self, table, callback):
        self._check(table, "subscribe")
        subscription = MemorySubscription(self, table, callback)
        self.subscriptions.append(subscription)
        return subscription

    def _emit(self, table: str) -> None:
        for subscription in self.subscriptions:
            if subscription.table == table and not subscription.closed:
                subscription.callback(table)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])


@pytest.fixture
def memory_backend():
    """Empty in-memory backend."""
    return MemoryBackend()


@pytest.fixture
def backend_factory():
    """Build an in-memory backend pre-filled with tables."""
    return MemoryBackend


@pytest.fixture
def student():
    return Actor(id="user-1", email="e19217@example.com")


@pytest.fixture
def admin():
    return Actor(id="admin-1", email="advisor@example.com", role="admin")


@pytest.fixture
def company_tables():
    """Three companies: complete, partially unknown, and without stats/metrics."""
    return {
        "companies": [
            {
                "id": 1,
                "name": "アルファ電機",
                "employees_count": 1200,
                "salary": 250000,
                "bonus": "年2回",
                "working_hours": 8,
                "holidays_per_year": 125,
                "overtime_hours": 10,
                "weekly_holiday": "完全週休2日制",
            },
            {
                "id": 2,
                "name": "ベータ工業",
                "employees_count": 300,
                "salary": 30000,
                "bonus": None,
                "working_hours": 8,
                "holidays_per_year": None,
                "overtime_hours": 25,
                "weekly_holiday": "",
            },
            {
                "id": 3,
                "name": "ガンマ製作所",
                "employees_count": None,
                "salary": None,
                "bonus": "年1回",
                "working_hours": None,
                "holidays_per_year": 110,
                "overtime_hours": None,
                "weekly_holiday": "週休2日制",
            },
        ],
        "company_stats": [
            {"company_id": 1, "bachelor_graduates_count": 12, "female_ratio": 0.3},
            {"company_id": 2, "bachelor_graduates_count": None, "female_ratio": 0},
        ],
        "employment_statistics": [
            {"company_id": 1, "recruited_count": 20},
            {"company_id": 2, "recruited_count": 0},
        ],
    }
