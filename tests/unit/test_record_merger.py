"""
Tests for the company record merger.
"""

from src.common.cell_values import CellKind, NO_RELATED_RECORD_LABEL, UNKNOWN_LABEL
from src.table.merger import (
    format_number,
    index_by_key,
    merge_company_record,
    merge_company_records,
)


def _merge(tables):
    return merge_company_records(
        tables["companies"], tables["company_stats"], tables["employment_statistics"]
    )


class TestFormatNumber:
    def test_thousands_separator(self):
        assert format_number(250000) == "250,000"

    def test_integral_float_drops_fraction(self):
        assert format_number(125.0) == "125"

    def test_fractional_float_kept(self):
        assert format_number(7.5) == "7.5"


class TestMergeCompanyRecords:
    """Tests for merging companies with stats and employment metrics."""

    def test_one_row_per_company_in_input_order(self, company_tables):
        rows = _merge(company_tables)

        assert [row.id for row in rows] == [1, 2, 3]
        assert [row.name for row in rows] == ["アルファ電機", "ベータ工業", "ガンマ製作所"]

    def test_known_values_are_formatted(self, company_tables):
        row = _merge(company_tables)[0]

        assert row["給与"].display == "250,000円"
        assert row["年間休日"].display == "125 日"
        assert row["残業時間"].display == "10 時間"
        assert row["労働時間"].display == "8 時間"
        assert row["従業員数"].display == "1,200"
        assert row["ボーナス"].display == "年2回"
        assert row["学士卒採用数"].value == 12
        assert row["採用人数"].value == 20

    def test_missing_base_attributes_are_unknown(self, company_tables):
        row = _merge(company_tables)[1]

        assert row["年間休日"].kind == CellKind.UNKNOWN
        assert row["年間休日"].display == UNKNOWN_LABEL
        assert row["ボーナス"].kind == CellKind.UNKNOWN
        assert row["週休"].kind == CellKind.UNKNOWN

    def test_zero_base_attribute_counts_as_unknown(self):
        row = merge_company_record({"id": 9, "name": "X", "salary": 0}, None, None)

        assert row["給与"].kind == CellKind.UNKNOWN

    def test_missing_related_records_are_no_related_record(self, company_tables):
        row = _merge(company_tables)[2]

        for column in ("学士卒採用数", "女性比率", "採用人数"):
            assert row[column].kind == CellKind.NO_RELATED_RECORD
            assert row[column].display == NO_RELATED_RECORD_LABEL

    def test_existing_related_record_with_null_field_is_unknown(self, company_tables):
        row = _merge(company_tables)[1]

        assert row["学士卒採用数"].kind == CellKind.UNKNOWN

    def test_zero_in_related_record_is_a_known_value(self, company_tables):
        row = _merge(company_tables)[1]

        assert row["採用人数"].is_known
        assert row["採用人数"].display == "0"
        assert row["女性比率"].display == "0"

    def test_company_without_any_related_records(self):
        rows = merge_company_records([{"id": 7, "name": "デルタ", "salary": 200000}], [], [])

        assert len(rows) == 1
        assert rows[0]["給与"].display == "200,000円"
        assert rows[0]["採用人数"].kind == CellKind.NO_RELATED_RECORD

    def test_free_text_in_numeric_column_has_no_unit(self):
        rows = merge_company_records([{"id": 8, "name": "ゼータ", "salary": "応相談", "holidays_per_year": "120"}], [], [])

        assert rows[0]["給与"].display == "応相談"
        assert rows[0]["給与"].is_known
        assert rows[0]["年間休日"].display == "120 日"

    def test_no_companies_yields_empty(self):
        assert merge_company_records([], [{"company_id": 1}], []) == []

    def test_falls_back_to_mongo_id(self):
        rows = merge_company_records(
            [{"_id": "abc", "name": "イプシロン"}],
            [{"company_id": "abc", "bachelor_graduates_count": 3}],
            [],
        )

        assert rows[0].id == "abc"
        assert rows[0]["学士卒採用数"].display == "3"

    def test_to_dict_flattens_display_strings(self, company_tables):
        data = _merge(company_tables)[2].to_dict()

        assert data["id"] == 3
        assert data["企業名"] == "ガンマ製作所"
        assert data["給与"] == UNKNOWN_LABEL
        assert data["採用人数"] == NO_RELATED_RECORD_LABEL


class TestIndexByKey:
    def test_first_record_wins(self):
        index = index_by_key(
            [{"company_id": 1, "n": "first"}, {"company_id": 1, "n": "second"}],
            "company_id",
        )

        assert index[1]["n"] == "first"

    def test_records_without_key_are_skipped(self):
        index = index_by_key([{"n": "orphan"}, {"company_id": 2}], "company_id")

        assert list(index) == [2]
