"""
Realtime refresh for the admin dashboard.

Change notifications from the event tables are coalesced: the first
notification schedules one refresh after a short window, and notifications
arriving while that refresh is pending are absorbed by it. The refresh
recomputes the whole report.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from src.analytics.aggregation import DashboardReport, ReportBuilder
from src.common.config import Config
from src.common.repositories.base import BackendInterface, Subscription

logger = logging.getLogger(__name__)

WATCHED_TABLES = [
    Config.VIEW_LOGS_TABLE,
    Config.COLUMN_SELECTIONS_TABLE,
    Config.SORT_OPERATIONS_TABLE,
    Config.FILTER_OPERATIONS_TABLE,
]


class RefreshCoalescer:
    """
    Debounces bursts of notifications into a single callback.

    Usage:
        coalescer = RefreshCoalescer(rebuild, window_seconds=1.0)
        coalescer.notify()   # schedules rebuild in 1s
        coalescer.notify()   # absorbed
    """

    def __init__(
        self,
        callback: Callable[[], None],
        window_seconds: float = Config.REFRESH_DEBOUNCE_SECONDS,
        timer_factory: Callable[[float, Callable[[], None]], threading.Timer] = threading.Timer,
    ):
        self._callback = callback
        self._window = window_seconds
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending: Optional[threading.Timer] = None
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def notify(self, source: Optional[str] = None) -> bool:
        """
        Request a refresh.

        Returns:
            True if a new refresh was scheduled, False if coalesced or closed
        """
        with self._lock:
            if self._closed or self._pending is not None:
                return False
            timer = self._timer_factory(self._window, self._fire)
            timer.daemon = True
            self._pending = timer
        logger.debug(f"Refresh scheduled ({source or 'manual'})")
        timer.start()
        return True

    def _fire(self) -> None:
        with self._lock:
            self._pending = None
            if self._closed:
                return
        try:
            self._callback()
        except Exception as e:
            logger.error(f"Dashboard refresh failed: {e}")

    def close(self) -> None:
        with self._lock:
            self._closed = True
            timer, self._pending = self._pending, None
        if timer is not None:
            timer.cancel()


class DashboardService:
    """
    Keeps the latest dashboard report, rebuilt on every coalesced change.
    """

    def __init__(
        self,
        backend: BackendInterface,
        report_builder: Optional[ReportBuilder] = None,
        window_seconds: float = Config.REFRESH_DEBOUNCE_SECONDS,
    ):
        self._backend = backend
        self._builder = report_builder if report_builder is not None else ReportBuilder(backend)
        self._coalescer = RefreshCoalescer(self.refresh, window_seconds)
        self._subscriptions: List[Subscription] = []
        self._report: Optional[DashboardReport] = None
        self._lock = threading.Lock()

    @property
    def last_refreshed(self) -> Optional[datetime]:
        report = self._report
        return report.generated_at if report else None

    def start(self) -> None:
        """Subscribe to the event tables. Failed subscriptions are logged and skipped."""
        for table in WATCHED_TABLES:
            try:
                self._subscriptions.append(self._backend.subscribe(table, self._coalescer.notify))
            except Exception as e:
                logger.warning(f"[{table}] realtime subscription unavailable: {e}")
        logger.info(f"Dashboard subscribed to {len(self._subscriptions)}/{len(WATCHED_TABLES)} tables")

    def refresh(self) -> DashboardReport:
        report = self._builder.build()
        with self._lock:
            self._report = report
        return report

    def get_report(self) -> DashboardReport:
        """Latest report, building one on first use."""
        with self._lock:
            report = self._report
        return report if report is not None else self.refresh()

    def close(self) -> None:
        self._coalescer.close()
        for subscription in self._subscriptions:
            try:
                subscription.close()
            except Exception as e:
                logger.warning(f"Subscription close failed: {e}")
        self._subscriptions = []
