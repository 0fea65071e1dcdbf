"""
Tagged cell values for merged company rows.

A cell is either a known value or one of two sentinels:
- UNKNOWN: the record exists but the field was not provided ("不明")
- NO_RELATED_RECORD: the stats/metrics record does not exist at all ("データなし")

Filtering and sorting switch on the kind, never on the display string,
so a company whose real bonus text happens to be "不明" is still a known value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class CellKind(str, Enum):
    """Kind tag of a cell value."""
    KNOWN = "known"
    UNKNOWN = "unknown"
    NO_RELATED_RECORD = "no_related_record"


UNKNOWN_LABEL = "不明"
NO_RELATED_RECORD_LABEL = "データなし"

SENTINEL_KINDS = frozenset({CellKind.UNKNOWN, CellKind.NO_RELATED_RECORD})


@dataclass(frozen=True)
class CellValue:
    """
    One cell of a merged row.

    Attributes:
        kind: KNOWN, UNKNOWN or NO_RELATED_RECORD
        value: Raw value for KNOWN cells (None for sentinels)
        display: Rendered text; defaults to str(value) or the sentinel label
    """
    kind: CellKind
    value: Any = None
    display: Optional[str] = None

    def __post_init__(self):
        if self.display is None:
            object.__setattr__(self, "display", self._default_display())

    def _default_display(self) -> str:
        if self.kind == CellKind.UNKNOWN:
            return UNKNOWN_LABEL
        if self.kind == CellKind.NO_RELATED_RECORD:
            return NO_RELATED_RECORD_LABEL
        return "" if self.value is None else str(self.value)

    @property
    def is_known(self) -> bool:
        return self.kind == CellKind.KNOWN

    @property
    def is_sentinel(self) -> bool:
        return self.kind in SENTINEL_KINDS

    def __str__(self) -> str:
        return self.display


def known(value: Any, display: Optional[str] = None) -> CellValue:
    return CellValue(CellKind.KNOWN, value, display)


UNKNOWN = CellValue(CellKind.UNKNOWN)
NO_RELATED_RECORD = CellValue(CellKind.NO_RELATED_RECORD)
