"""
Interaction Logger.

Turns table-state mutations and page lifecycle events into append-only
records on the backend:

- view_logs: one row per page view, backfilled with duration and scroll depth
- column_selections: full selection list after each toggle
- sort_operations: sort column and resulting direction
- filter_operations: filter name and new value

Writes are fire-and-forget. Callers enqueue and return immediately; a failed
write is logged to the operational log and abandoned (no retry).

Usage:
    logger = InteractionLogger(backend)
    session = logger.log_view_start(actor)
    ...
    logger.log_view_end(actor, session.started_at, max_scroll_depth=82)
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from src.common.actors import Actor
from src.common.config import Config
from src.common.error_handling import safe_execute
from src.common.logger import get_logger
from src.common.repositories.base import BackendInterface

logger = logging.getLogger(__name__)

Task = Callable[[], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _run_contained(task: Task, description: str) -> None:
    safe_execute(task, operation_name=description, logger=logger)


class EventDispatcher(ABC):
    """Executes logging tasks without blocking the caller."""

    @abstractmethod
    def submit(self, task: Task, description: str) -> None:
        pass

    def shutdown(self, wait: bool = True) -> None:
        pass


class InlineDispatcher(EventDispatcher):
    """Runs tasks immediately on the calling thread. Failures are still contained."""

    def submit(self, task: Task, description: str) -> None:
        _run_contained(task, description)


class BackgroundDispatcher(EventDispatcher):
    """
    Single worker thread draining a FIFO queue.

    One worker keeps writes in submission order, so a view-start insert is
    applied before the matching view-end update.
    """

    def __init__(self):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="interaction-log")

    def submit(self, task: Task, description: str) -> None:
        try:
            self._executor.submit(_run_contained, task, description)
        except RuntimeError as e:
            # Executor already shut down (process teardown); the event is lost
            logger.warning(f"[{description}] Dropped: {e}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def clamp_scroll_depth(depth: float) -> int:
    """Round and clamp a scroll-depth percentage to [0, 100]."""
    return max(0, min(100, int(round(depth))))


@dataclass(frozen=True)
class ViewSession:
    """A started page view, kept until the paired view-end."""
    page: str
    started_at: datetime


class InteractionLogger:
    """
    Single service owning all interaction-event writes.

    The backend and dispatcher are injected; the default dispatcher is a
    BackgroundDispatcher.
    """

    def __init__(
        self,
        backend: BackendInterface,
        page: str = Config.JOBS_PAGE_NAME,
        dispatcher: Optional[EventDispatcher] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._backend = backend
        self.page = page
        self._dispatcher = dispatcher if dispatcher is not None else BackgroundDispatcher()
        self._clock = clock

    def _base_record(self, actor: Actor) -> dict:
        return {
            "user_id": actor.id,
            "student_id": actor.short_id,
            "timestamp": self._clock().isoformat(),
        }

    def _enqueue_insert(self, actor: Actor, table: str, payload: dict) -> None:
        record = {**self._base_record(actor), **payload}
        ctx = get_logger(__name__, actor=actor.short_id, page=self.page)

        def task() -> None:
            self._backend.insert(table, record)
            ctx.debug(f"Logged {table} event")

        self._dispatcher.submit(task, f"{table} insert")

    # ------------------------------------------------------------------
    # Page views
    # ------------------------------------------------------------------

    def log_view_start(self, actor: Actor, article_id: Optional[str] = None) -> ViewSession:
        """Insert a zero-duration view row and return the session to close later."""
        started_at = self._clock()
        self._enqueue_insert(
            actor,
            Config.VIEW_LOGS_TABLE,
            {
                "page": self.page,
                "view_time": 0,
                "scroll_depth": 0,
                "article_id": article_id,
            },
        )
        return ViewSession(page=self.page, started_at=started_at)

    def log_view_end(self, actor: Actor, started_at: datetime, max_scroll_depth: float) -> None:
        """
        Backfill the latest view row for this actor and page.

        Skipped silently when no view row exists. Never raises.
        """
        elapsed = max(0, int(round((self._clock() - started_at).total_seconds())))
        depth = clamp_scroll_depth(max_scroll_depth)
        ctx = get_logger(__name__, actor=actor.short_id, page=self.page)

        def task() -> None:
            latest = self._backend.query(
                Config.VIEW_LOGS_TABLE,
                {"user_id": actor.id, "page": self.page},
                sort=[("timestamp", -1)],
                limit=1,
            )
            if not latest:
                ctx.debug("No view-start row to close; skipping")
                return
            self._backend.update(
                Config.VIEW_LOGS_TABLE,
                latest[0]["_id"],
                {"view_time": elapsed, "scroll_depth": depth},
            )
            ctx.debug(f"Closed view: {elapsed}s, {depth}% scrolled")

        try:
            self._dispatcher.submit(task, f"{Config.VIEW_LOGS_TABLE} update")
        except Exception as e:
            # Page teardown must not fail because of logging
            ctx.warning(f"View-end not recorded: {e}")

    # ------------------------------------------------------------------
    # Table interactions
    # ------------------------------------------------------------------

    def log_column_selection(self, actor: Actor, columns: List[str]) -> None:
        self._enqueue_insert(
            actor,
            Config.COLUMN_SELECTIONS_TABLE,
            {"selected_columns": list(columns)},
        )

    def log_sort_request(self, actor: Actor, key: str, direction: str) -> None:
        self._enqueue_insert(
            actor,
            Config.SORT_OPERATIONS_TABLE,
            {"sort_column": key, "sort_direction": direction},
        )

    def log_filter_toggle(self, actor: Actor, name: str, enabled: bool) -> None:
        self._enqueue_insert(
            actor,
            Config.FILTER_OPERATIONS_TABLE,
            {"filter_type": name, "filter_value": bool(enabled)},
        )

    def shutdown(self, wait: bool = True) -> None:
        self._dispatcher.shutdown(wait=wait)
