"""
Aggregation Reporter for the admin dashboard.

Consumes the raw interaction event tables and the user dimension and
produces frequency counts:
- column selections per column, and per student
- sort operations per "<column> (昇順|降順)", and per student
- filter toggles per filter, and per student
- page views per student (count, total/average seconds, last active)
- events per time-of-day window

Every report is recomputed in full from the current tables; counts are
built in a single pass and "most frequent" ties keep the first key seen.

Usage:
    report = ReportBuilder(backend).build()
    report.columns.column_counts   # {"給与": 12, "年間休日": 9, ...}
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from src.common.actors import derive_short_id
from src.common.config import Config
from src.common.error_handling import ErrorCollector
from src.common.repositories.base import BackendInterface

logger = logging.getLogger(__name__)

UNKNOWN_KEY = "unknown"
TOP_STUDENTS_LIMIT = 10

# Four fixed 6-hour windows: (start hour, label)
TIME_BUCKETS: List[Tuple[int, str]] = [
    (0, "深夜 (0-6時)"),
    (6, "午前 (6-12時)"),
    (12, "午後 (12-18時)"),
    (18, "夜 (18-24時)"),
]

DIRECTION_LABELS = {"asc": "昇順", "desc": "降順"}


# ----------------------------------------------------------------------
# Primitives
# ----------------------------------------------------------------------


def frequency_count(items: Iterable[Any], key: Callable[[Any], Any] = lambda item: item) -> Dict[Any, int]:
    """Count occurrences per key in one pass. Keys keep first-seen order."""
    counts: Dict[Any, int] = {}
    for item in items:
        label = key(item)
        counts[label] = counts.get(label, 0) + 1
    return counts


def most_frequent(counts: Dict[Any, int]) -> Optional[Tuple[Any, int]]:
    """Key with the highest count; ties resolve to the first key encountered."""
    best: Optional[Tuple[Any, int]] = None
    for label, count in counts.items():
        if best is None or count > best[1]:
            best = (label, count)
    return best


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp (datetime or ISO string). Naive values are UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_of_day_bucket(value: Any, tz: str = Config.REPORT_TIMEZONE) -> Optional[str]:
    """Label of the 6-hour window containing the timestamp, in the report timezone."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    hour = parsed.astimezone(ZoneInfo(tz)).hour
    return TIME_BUCKETS[hour // 6][1]


def parse_selected_columns(value: Any) -> List[str]:
    """
    Read a stored column-selection payload.

    Lists pass through, JSON strings are decoded; anything malformed is
    logged and treated as an empty selection.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [str(column) for column in value]
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            logger.warning(f"Malformed selected_columns payload, treating as empty: {e}")
            return []
        if isinstance(decoded, list):
            return [str(column) for column in decoded]
    logger.warning(f"Unexpected selected_columns payload type: {type(value).__name__}")
    return []


def view_seconds(value: Any) -> int:
    """
    Whole seconds from a stored view_time. Numeric strings such as "12.5"
    are accepted; anything else is logged and counted as 0.
    """
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Malformed view_time {value!r}, counting as 0")
        return 0


def build_user_index(users: Iterable[Dict[str, Any]]) -> Dict[str, str]:
    """Map user id -> short id (student number)."""
    index = {}
    for user in users:
        user_id = user.get("_id", user.get("id"))
        if user_id is None:
            continue
        index[str(user_id)] = derive_short_id(user.get("email"))
    return index


def resolve_student(event: Dict[str, Any], user_index: Dict[str, str]) -> str:
    """Short id for an event: user dimension first, then the logged value."""
    short_id = user_index.get(str(event.get("user_id")))
    return short_id or event.get("student_id") or UNKNOWN_KEY


def _nested_count(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Dict[str, int]]:
    nested: Dict[str, Dict[str, int]] = {}
    for outer, inner in pairs:
        bucket = nested.setdefault(outer, {})
        bucket[inner] = bucket.get(inner, 0) + 1
    return nested


# ----------------------------------------------------------------------
# Breakdowns
# ----------------------------------------------------------------------


@dataclass
class ColumnSelectionStats:
    column_counts: Dict[str, int]
    student_preferences: Dict[str, Dict[str, int]]

    @property
    def most_selected(self) -> Optional[Tuple[str, int]]:
        return most_frequent(self.column_counts)


@dataclass
class SortStats:
    sort_counts: Dict[str, int]
    student_preferences: Dict[str, Dict[str, int]]

    @property
    def most_used(self) -> Optional[Tuple[str, int]]:
        return most_frequent(self.sort_counts)


@dataclass
class FilterStats:
    filter_counts: Dict[str, int]
    student_preferences: Dict[str, Dict[str, int]]

    @property
    def most_used(self) -> Optional[Tuple[str, int]]:
        return most_frequent(self.filter_counts)


@dataclass
class StudentActivity:
    student_id: str
    view_count: int = 0
    total_time: int = 0
    last_active: Optional[datetime] = None

    @property
    def average_time(self) -> float:
        return self.total_time / self.view_count if self.view_count else 0.0


@dataclass
class ViewStats:
    total_views: int
    unique_students: int
    average_view_time: float
    activity: Dict[str, StudentActivity]
    time_buckets: Dict[str, int]

    @property
    def top_students(self) -> List[StudentActivity]:
        """Most active students by view count (stable for equal counts)."""
        ranked = sorted(self.activity.values(), key=lambda a: a.view_count, reverse=True)
        return ranked[:TOP_STUDENTS_LIMIT]

    @property
    def most_active(self) -> Optional[Tuple[str, int]]:
        return most_frequent({sid: a.view_count for sid, a in self.activity.items()})

    def chart_series(self) -> Dict[str, List[Any]]:
        """Per-student totals with labels in sorted student-id order."""
        labels = sorted(self.activity)
        return {
            "labels": labels,
            "total_time": [self.activity[sid].total_time for sid in labels],
            "view_count": [self.activity[sid].view_count for sid in labels],
        }


def summarize_column_selections(events: List[Dict[str, Any]], user_index: Dict[str, str]) -> ColumnSelectionStats:
    pairs = []
    counts: Dict[str, int] = {}
    for event in events:
        student = resolve_student(event, user_index)
        for column in parse_selected_columns(event.get("selected_columns")):
            counts[column] = counts.get(column, 0) + 1
            pairs.append((student, column))
    return ColumnSelectionStats(column_counts=counts, student_preferences=_nested_count(pairs))


def sort_label(column: Any, direction: Optional[str]) -> str:
    return f"{column} ({DIRECTION_LABELS.get(direction or 'asc', DIRECTION_LABELS['desc'])})"


def summarize_sort_operations(events: List[Dict[str, Any]], user_index: Dict[str, str]) -> SortStats:
    counts = frequency_count(events, lambda e: sort_label(e.get("sort_column"), e.get("sort_direction")))
    preferences = _nested_count(
        (resolve_student(e, user_index), str(e.get("sort_column"))) for e in events
    )
    return SortStats(sort_counts=counts, student_preferences=preferences)


def summarize_filter_operations(events: List[Dict[str, Any]], user_index: Dict[str, str]) -> FilterStats:
    counts = frequency_count(events, lambda e: e.get("filter_type") or UNKNOWN_KEY)
    preferences = _nested_count(
        (resolve_student(e, user_index), e.get("filter_type") or UNKNOWN_KEY) for e in events
    )
    return FilterStats(filter_counts=counts, student_preferences=preferences)


def summarize_time_buckets(events: Iterable[Dict[str, Any]], tz: str = Config.REPORT_TIMEZONE) -> Dict[str, int]:
    """Events per time-of-day window; all four windows are always present."""
    counts = {label: 0 for _, label in TIME_BUCKETS}
    for event in events:
        label = time_of_day_bucket(event.get("timestamp"), tz)
        if label is not None:
            counts[label] += 1
    return counts


def summarize_views(
    events: List[Dict[str, Any]],
    user_index: Dict[str, str],
    tz: str = Config.REPORT_TIMEZONE,
) -> ViewStats:
    activity: Dict[str, StudentActivity] = {}
    total_time = 0
    for event in events:
        student = resolve_student(event, user_index)
        entry = activity.setdefault(student, StudentActivity(student_id=student))
        seconds = view_seconds(event.get("view_time"))
        entry.view_count += 1
        entry.total_time += seconds
        total_time += seconds

        stamp = parse_timestamp(event.get("created_at") or event.get("timestamp"))
        if stamp is not None and (entry.last_active is None or stamp > entry.last_active):
            entry.last_active = stamp

    return ViewStats(
        total_views=len(events),
        unique_students=len(activity),
        average_view_time=total_time / len(events) if events else 0.0,
        activity=activity,
        time_buckets=summarize_time_buckets(events, tz),
    )


# ----------------------------------------------------------------------
# Report
# ----------------------------------------------------------------------


@dataclass
class DashboardReport:
    """Full admin report. A section is None when its source was unavailable."""
    generated_at: datetime
    views: Optional[ViewStats] = None
    columns: Optional[ColumnSelectionStats] = None
    sorts: Optional[SortStats] = None
    filters: Optional[FilterStats] = None
    unavailable: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        def pair(top: Optional[Tuple[str, int]]) -> Optional[Dict[str, Any]]:
            return {"key": top[0], "count": top[1]} if top else None

        def section(stats: Any, top_field: str) -> Optional[Dict[str, Any]]:
            if stats is None:
                return None
            return {**asdict(stats), top_field: pair(getattr(stats, top_field))}

        views = None
        if self.views is not None:
            views = {
                "total_views": self.views.total_views,
                "unique_students": self.views.unique_students,
                "average_view_time": round(self.views.average_view_time, 1),
                "time_buckets": self.views.time_buckets,
                "chart": self.views.chart_series(),
                "most_active": pair(self.views.most_active),
                "top_students": [
                    {
                        "student_id": a.student_id,
                        "view_count": a.view_count,
                        "total_time": a.total_time,
                        "average_time": round(a.average_time, 1),
                        "last_active": a.last_active.isoformat() if a.last_active else None,
                    }
                    for a in self.views.top_students
                ],
            }

        return {
            "generated_at": self.generated_at.isoformat(),
            "views": views,
            "columns": section(self.columns, "most_selected"),
            "sorts": section(self.sorts, "most_used"),
            "filters": section(self.filters, "most_used"),
            "unavailable": list(self.unavailable),
        }


class ReportBuilder:
    """
    Fetches event tables and the user dimension and builds a DashboardReport.

    A failing fetch is logged and only its section is marked unavailable.
    """

    def __init__(
        self,
        backend: BackendInterface,
        page: str = Config.JOBS_PAGE_NAME,
        tz: str = Config.REPORT_TIMEZONE,
    ):
        self._backend = backend
        self.page = page
        self.tz = tz

    def _fetch(
        self,
        table: str,
        errors: ErrorCollector,
        filter: Optional[Dict[str, Any]] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        try:
            return self._backend.query(table, filter)
        except Exception as e:
            logger.error(f"[{table}] fetch failed: {e}")
            errors.add_error(table, "fetch", str(e), exception=e)
            return None

    def build(self) -> DashboardReport:
        errors = ErrorCollector()

        users = self._fetch(Config.USERS_TABLE, errors)
        # Without the user dimension events fall back to their logged short id
        user_index = build_user_index(users or [])

        view_logs = self._fetch(Config.VIEW_LOGS_TABLE, errors, {"page": self.page})
        column_events = self._fetch(Config.COLUMN_SELECTIONS_TABLE, errors)
        sort_events = self._fetch(Config.SORT_OPERATIONS_TABLE, errors)
        filter_events = self._fetch(Config.FILTER_OPERATIONS_TABLE, errors)

        report = DashboardReport(
            generated_at=datetime.now(timezone.utc),
            views=summarize_views(view_logs, user_index, self.tz) if view_logs is not None else None,
            columns=summarize_column_selections(column_events, user_index) if column_events is not None else None,
            sorts=summarize_sort_operations(sort_events, user_index) if sort_events is not None else None,
            filters=summarize_filter_operations(filter_events, user_index) if filter_events is not None else None,
            unavailable=errors.failed_sources(),
        )
        if errors.has_errors():
            logger.warning(f"Dashboard report built with unavailable sources: {', '.join(report.unavailable)}")
        else:
            logger.info(f"Dashboard report built: {report.views.total_views if report.views else 0} views")
        return report
