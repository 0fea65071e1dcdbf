"""
Client-side table pipeline: merge -> filter -> sort, driven by ViewState.
"""

from .columns import (
    COMPANY_NAME_COLUMN,
    DEFAULT_SELECTED_COLUMNS,
    DEFAULT_SORT_KEY,
    NUMERIC_COLUMNS,
    SELECTABLE_COLUMNS,
)
from .filters import FILTER_NAMES, FILTER_RULES, FilterRule, apply_filters
from .merger import MergedRow, merge_company_records
from .sorting import ASCENDING, DESCENDING, SortConfig, sort_rows

__all__ = [
    "COMPANY_NAME_COLUMN",
    "DEFAULT_SELECTED_COLUMNS",
    "DEFAULT_SORT_KEY",
    "NUMERIC_COLUMNS",
    "SELECTABLE_COLUMNS",
    "FILTER_NAMES",
    "FILTER_RULES",
    "FilterRule",
    "apply_filters",
    "MergedRow",
    "merge_company_records",
    "ASCENDING",
    "DESCENDING",
    "SortConfig",
    "sort_rows",
]
