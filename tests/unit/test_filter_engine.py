"""
Tests for the filter engine.
"""

import pytest

from src.common.cell_values import CellKind, NO_RELATED_RECORD, UNKNOWN, known
from src.common.error_handling import UnknownFilterError
from src.table.filters import (
    FILTER_NAMES,
    FILTER_RULES,
    SHOW_ONLY_BOOKMARKS,
    FilterRule,
    apply_filters,
    default_filters,
    validate_filter_name,
)
from src.table.merger import MergedRow, merge_company_records


def row(row_id, **cells):
    return MergedRow(id=row_id, name=str(row_id), cells=dict(cells))


class TestFilterNames:
    def test_default_filters_all_off(self):
        filters = default_filters()

        assert set(filters) == set(FILTER_NAMES)
        assert not any(filters.values())

    def test_validate_rejects_unknown_name(self):
        with pytest.raises(UnknownFilterError) as exc_info:
            validate_filter_name("hide_everything")

        assert exc_info.value.name == "hide_everything"

    def test_unknown_filter_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_filter_name("nope")

    def test_validate_accepts_bookmark_filter(self):
        assert validate_filter_name(SHOW_ONLY_BOOKMARKS) == SHOW_ONLY_BOOKMARKS


class TestApplyFilters:
    """Tests for applying exclusion filters to merged rows."""

    def test_no_filters_returns_all_rows(self):
        rows = [row(1, 給与=UNKNOWN), row(2, 給与=known(1))]

        result = apply_filters(rows, default_filters())

        assert result == rows
        assert result is not rows

    def test_unknown_holidays_hidden(self, company_tables):
        rows = merge_company_records(
            company_tables["companies"],
            company_tables["company_stats"],
            company_tables["employment_statistics"],
        )
        filters = {**default_filters(), "hide_unknown_holidays": True}

        result = apply_filters(rows, filters)

        assert [r.id for r in result] == [1, 3]
        assert all(r["年間休日"].kind == CellKind.KNOWN for r in result)

    def test_both_sentinel_kinds_excluded(self):
        rows = [row(1, 給与=UNKNOWN), row(2, 給与=NO_RELATED_RECORD), row(3, 給与=known(5))]

        result = apply_filters(rows, {"hide_unknown_salary": True})

        assert [r.id for r in result] == [3]

    def test_known_value_with_sentinel_text_is_kept(self):
        rows = [row(1, ボーナス=known("不明")), row(2, 週休=known("不明"))]

        result = apply_filters(rows, {"hide_unknown_weekly_holiday": True})

        assert [r.id for r in result] == [1, 2]

    def test_filters_combine_with_and(self):
        rows = [
            row(1, 年間休日=known(120), 残業時間=UNKNOWN),
            row(2, 年間休日=UNKNOWN, 残業時間=known(10)),
            row(3, 年間休日=known(110), 残業時間=known(5)),
        ]

        result = apply_filters(rows, {"hide_unknown_holidays": True, "hide_unknown_overtime": True})

        assert [r.id for r in result] == [3]

    def test_order_preserved(self):
        rows = [row(i, 週休=known("週休2日制")) for i in (5, 2, 9)]

        result = apply_filters(rows, {"hide_unknown_weekly_holiday": True})

        assert [r.id for r in result] == [5, 2, 9]

    def test_everything_filtered_is_empty_list(self):
        rows = [row(1, 給与=UNKNOWN)]

        assert apply_filters(rows, {"hide_unknown_salary": True}) == []

    def test_show_only_bookmarks(self):
        rows = [row(1), row(2), row(3)]

        result = apply_filters(rows, {SHOW_ONLY_BOOKMARKS: True}, bookmarks={3, 1})

        assert [r.id for r in result] == [1, 3]

    def test_show_only_bookmarks_without_bookmarks_is_empty(self):
        assert apply_filters([row(1)], {SHOW_ONLY_BOOKMARKS: True}) == []

    def test_custom_rule_can_exclude_only_unknown(self):
        rules = {"strict": FilterRule("strict", "採用人数", "採用人数", frozenset({CellKind.UNKNOWN}))}
        rows = [row(1, 採用人数=UNKNOWN), row(2, 採用人数=NO_RELATED_RECORD)]

        result = apply_filters(rows, {"strict": True}, rules=rules)

        assert [r.id for r in result] == [2]

    def test_missing_column_passes(self):
        assert apply_filters([row(1)], {"hide_unknown_salary": True})[0].id == 1


def test_every_rule_targets_a_selectable_column():
    from src.table.columns import SELECTABLE_COLUMNS

    assert all(rule.column in SELECTABLE_COLUMNS for rule in FILTER_RULES.values())
