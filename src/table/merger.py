"""
Record merger for the company table.

Joins three flat record sets into one denormalized row per company:
- companies: base attributes (salary, holidays, overtime, ...)
- company_stats: graduate hiring and female ratio, keyed by company_id
- employment_statistics: recruited count, keyed by company_id

Missing stats/metrics records are expected and resolve to sentinels.

Usage:
    rows = merge_company_records(companies, stats, metrics)
    rows[0]["給与"].display   # "250,000円"
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from src.common.cell_values import (
    NO_RELATED_RECORD,
    UNKNOWN,
    CellValue,
    known,
)
from src.table.columns import COMPANY_NAME_COLUMN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergedRow:
    """One company's combined attributes, ready for filtering and sorting."""
    id: Any
    name: str
    cells: Dict[str, CellValue] = field(default_factory=dict)

    def __getitem__(self, column: str) -> CellValue:
        return self.cells[column]

    def get(self, column: str) -> Optional[CellValue]:
        return self.cells.get(column)

    def display(self, column: str) -> str:
        cell = self.cells.get(column)
        return cell.display if cell is not None else ""

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to display strings for JSON responses."""
        data: Dict[str, Any] = {"id": self.id}
        for column, cell in self.cells.items():
            data[column] = cell.display
        return data


def format_number(value: Any) -> str:
    """
    Format a number with thousands separators.

    Integral floats drop their fraction; other floats keep up to
    three decimal places.
    """
    number = float(value)
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.3f}".rstrip("0").rstrip(".")


def _is_absent(value: Any) -> bool:
    # Zero counts as "not provided" for base attributes
    if value is None or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def _numeric_cell(value: Any, suffix: str = "") -> CellValue:
    if _is_absent(value):
        return UNKNOWN
    try:
        display = f"{format_number(value)}{suffix}"
    except (TypeError, ValueError):
        # Free text such as "応相談" is shown as stored, without the unit
        display = str(value)
    return known(value, display)


def _text_cell(value: Any) -> CellValue:
    if _is_absent(value):
        return UNKNOWN
    return known(value)


def _related_cell(record: Optional[Dict[str, Any]], attribute: str) -> CellValue:
    """Cell sourced from a sub-record that may not exist at all."""
    if record is None:
        return NO_RELATED_RECORD
    value = record.get(attribute)
    if value is None:
        return UNKNOWN
    # Zero is a real count here
    return known(value)


def index_by_key(records: Iterable[Dict[str, Any]], key_field: str) -> Dict[Any, Dict[str, Any]]:
    """
    Index records by foreign key. The first record for a key wins.
    """
    index: Dict[Any, Dict[str, Any]] = {}
    for record in records:
        key = record.get(key_field)
        if key is None:
            logger.debug(f"Skipping record without {key_field}: {record.get('_id')}")
            continue
        index.setdefault(key, record)
    return index


def _entity_id(company: Dict[str, Any], id_field: str) -> Any:
    entity_id = company.get(id_field)
    if entity_id is None and "_id" in company:
        entity_id = str(company["_id"])
    return entity_id


def merge_company_record(
    company: Dict[str, Any],
    stats: Optional[Dict[str, Any]],
    employment: Optional[Dict[str, Any]],
    id_field: str = "id",
) -> MergedRow:
    """Build the merged row for a single company."""
    name = company.get("name") or ""
    cells: Dict[str, CellValue] = {
        COMPANY_NAME_COLUMN: known(name) if name else UNKNOWN,
        "従業員数": _numeric_cell(company.get("employees_count")),
        "学士卒採用数": _related_cell(stats, "bachelor_graduates_count"),
        "女性比率": _related_cell(stats, "female_ratio"),
        "採用人数": _related_cell(employment, "recruited_count"),
        "給与": _numeric_cell(company.get("salary"), "円"),
        "ボーナス": _text_cell(company.get("bonus")),
        "労働時間": _numeric_cell(company.get("working_hours"), " 時間"),
        "年間休日": _numeric_cell(company.get("holidays_per_year"), " 日"),
        "残業時間": _numeric_cell(company.get("overtime_hours"), " 時間"),
        "週休": _text_cell(company.get("weekly_holiday")),
    }
    return MergedRow(id=_entity_id(company, id_field), name=name, cells=cells)


def merge_company_records(
    companies: List[Dict[str, Any]],
    stats: List[Dict[str, Any]],
    metrics: List[Dict[str, Any]],
    key_field: str = "company_id",
    id_field: str = "id",
) -> List[MergedRow]:
    """
    Merge companies with their stats and employment metrics.

    Args:
        companies: Base company records
        stats: company_stats records keyed by key_field
        metrics: employment_statistics records keyed by key_field
        key_field: Foreign-key attribute shared by stats and metrics
        id_field: Identity attribute of company records

    Returns:
        One MergedRow per company, in input order
    """
    stats_index = index_by_key(stats, key_field)
    metrics_index = index_by_key(metrics, key_field)

    rows = []
    for company in companies:
        entity_id = _entity_id(company, id_field)
        rows.append(
            merge_company_record(
                company,
                stats_index.get(entity_id),
                metrics_index.get(entity_id),
                id_field=id_field,
            )
        )
    return rows
