"""
Per-session view state for the company table.

Holds the selected columns, the sort configuration and the filter toggles.
Every successful mutation emits exactly one interaction event carrying the
state after the mutation. The logger call only enqueues the write, so
mutations never wait on the backend.
"""

from typing import Any, Dict, List, Optional

from src.analytics.interaction_logger import InteractionLogger
from src.common.actors import Actor
from src.table.columns import COMPANY_NAME_COLUMN, DEFAULT_SELECTED_COLUMNS, DEFAULT_SORT_KEY
from src.table.filters import default_filters, validate_filter_name
from src.table.sorting import ASCENDING, SortConfig, next_sort_config


class ViewState:
    """
    Mutable table presentation state for one student's session.

    Usage:
        state = ViewState(actor, interaction_logger)
        state.request_sort("給与")        # asc -> desc, logged
        state.toggle_filter("hide_unknown_salary")
    """

    def __init__(
        self,
        actor: Actor,
        interaction_logger: InteractionLogger,
        selected_columns: Optional[List[str]] = None,
        sort: Optional[SortConfig] = None,
        filters: Optional[Dict[str, bool]] = None,
    ):
        self.actor = actor
        self._logger = interaction_logger
        self._selected_columns: List[str] = []
        for column in selected_columns if selected_columns is not None else DEFAULT_SELECTED_COLUMNS:
            if column != COMPANY_NAME_COLUMN and column not in self._selected_columns:
                self._selected_columns.append(column)
        self.sort = sort if sort is not None else SortConfig(key=DEFAULT_SORT_KEY, direction=ASCENDING)
        self._filters = default_filters()
        if filters:
            self._filters.update({k: bool(v) for k, v in filters.items() if k in self._filters})

    @property
    def selected_columns(self) -> List[str]:
        return list(self._selected_columns)

    @property
    def filters(self) -> Dict[str, bool]:
        return dict(self._filters)

    def toggle_column(self, name: str) -> List[str]:
        """
        Add the column if absent, remove it if present.

        The company name column is always rendered and cannot be toggled;
        requesting it leaves the selection unchanged and logs nothing.
        """
        if name == COMPANY_NAME_COLUMN:
            return self.selected_columns
        if name in self._selected_columns:
            self._selected_columns.remove(name)
        else:
            self._selected_columns.append(name)
        self._logger.log_column_selection(self.actor, self.selected_columns)
        return self.selected_columns

    def request_sort(self, key: str) -> SortConfig:
        """Toggle direction on the active key, otherwise sort ascending by key."""
        self.sort = next_sort_config(self.sort, key)
        self._logger.log_sort_request(self.actor, self.sort.key, self.sort.direction)
        return self.sort

    def toggle_filter(self, name: str) -> bool:
        """
        Flip a filter.

        Raises:
            UnknownFilterError: name is not a known filter; nothing is logged
        """
        validate_filter_name(name)
        self._filters[name] = not self._filters[name]
        self._logger.log_filter_toggle(self.actor, name, self._filters[name])
        return self._filters[name]

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form for the Flask session."""
        return {
            "selected_columns": self.selected_columns,
            "sort": self.sort.to_dict(),
            "filters": self.filters,
        }

    @classmethod
    def from_dict(
        cls,
        actor: Actor,
        interaction_logger: InteractionLogger,
        data: Optional[Dict[str, Any]],
    ) -> "ViewState":
        if not data:
            return cls(actor, interaction_logger)
        return cls(
            actor,
            interaction_logger,
            selected_columns=data.get("selected_columns"),
            sort=SortConfig.from_dict(data["sort"]) if data.get("sort") else None,
            filters=data.get("filters"),
        )
