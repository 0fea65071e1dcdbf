"""
Filter engine for merged company rows.

Every enabled filter removes rows; filters are independent and combined
with AND. Row order is preserved and an empty result is a valid outcome.
"""

from dataclasses import dataclass
from typing import Any, Collection, Dict, FrozenSet, List, Mapping, Optional

from src.common.cell_values import SENTINEL_KINDS, CellKind
from src.common.error_handling import UnknownFilterError
from src.table.merger import MergedRow

SHOW_ONLY_BOOKMARKS = "show_only_bookmarks"


@dataclass(frozen=True)
class FilterRule:
    """
    An exclusion filter bound to one column.

    Attributes:
        name: Filter name stored in filter_operations
        column: Column whose cell is tested
        label: Toggle label shown in the UI
        excluded: Cell kinds removed when the filter is on
    """
    name: str
    column: str
    label: str
    excluded: FrozenSet[CellKind] = SENTINEL_KINDS

    def keeps(self, row: MergedRow) -> bool:
        cell = row.get(self.column)
        if cell is None:
            return True
        return cell.kind not in self.excluded


FILTER_RULES: Dict[str, FilterRule] = {
    rule.name: rule
    for rule in (
        FilterRule("hide_unknown_holidays", "年間休日", "年間休日"),
        FilterRule("hide_unknown_overtime", "残業時間", "残業時間"),
        FilterRule("hide_unknown_weekly_holiday", "週休", "週休"),
        FilterRule("hide_unknown_salary", "給与", "給与"),
    )
}

FILTER_NAMES = list(FILTER_RULES) + [SHOW_ONLY_BOOKMARKS]


def default_filters() -> Dict[str, bool]:
    """All filters off."""
    return {name: False for name in FILTER_NAMES}


def validate_filter_name(name: str) -> str:
    if name not in FILTER_NAMES:
        raise UnknownFilterError(name)
    return name


def apply_filters(
    rows: List[MergedRow],
    filters: Mapping[str, bool],
    bookmarks: Optional[Collection[Any]] = None,
    rules: Optional[Mapping[str, FilterRule]] = None,
) -> List[MergedRow]:
    """
    Apply all enabled filters.

    Args:
        rows: Merged rows in display order
        filters: Filter name -> enabled
        bookmarks: Bookmarked company ids (used by show_only_bookmarks)
        rules: Filter definitions (defaults to FILTER_RULES)

    Returns:
        Subsequence of rows passing every enabled filter
    """
    rules = FILTER_RULES if rules is None else rules
    active = [rules[name] for name, enabled in filters.items() if enabled and name in rules]
    only_bookmarks = bool(filters.get(SHOW_ONLY_BOOKMARKS))
    bookmarked = set(bookmarks or ())

    if not active and not only_bookmarks:
        return list(rows)

    result = []
    for row in rows:
        if only_bookmarks and row.id not in bookmarked:
            continue
        if all(rule.keeps(row) for rule in active):
            result.append(row)
    return result
