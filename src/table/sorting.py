"""
Sort engine for merged company rows.

Comparison rules for the active column:
1. Sentinel cells (不明 / データなし) compare as the empty string, so they
   come first in ascending order.
2. Numeric-bearing columns compare by the number left after stripping
   currency symbols, unit suffixes and separators; if either side does not
   parse, the string rule applies.
3. Everything else uses natural, case/diacritic/kana-insensitive comparison.
4. Descending order negates the comparison.

The sort is stable: ties keep their relative input order.
"""

import re
import unicodedata
from dataclasses import dataclass
from functools import cmp_to_key
from typing import AbstractSet, Any, Dict, List, Optional, Tuple

from src.table.columns import NUMERIC_COLUMNS
from src.table.merger import MergedRow

ASCENDING = "asc"
DESCENDING = "desc"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_DIGIT_RUN = re.compile(r"(\d+)")

# Katakana block that maps one-to-one onto hiragana
_KATAKANA_START = 0x30A1
_KATAKANA_END = 0x30F6
_KANA_OFFSET = 0x60


@dataclass(frozen=True)
class SortConfig:
    """Active sort column and direction. Direction is ignored without a key."""
    key: Optional[str] = None
    direction: str = ASCENDING

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "direction": self.direction}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SortConfig":
        if not data:
            return cls()
        direction = data.get("direction", ASCENDING)
        if direction not in (ASCENDING, DESCENDING):
            direction = ASCENDING
        return cls(key=data.get("key"), direction=direction)


def next_sort_config(current: SortConfig, key: str) -> SortConfig:
    """Same key while ascending flips to descending; anything else resets to ascending."""
    if current.key == key and current.direction == ASCENDING:
        return SortConfig(key=key, direction=DESCENDING)
    return SortConfig(key=key, direction=ASCENDING)


def parse_number(text: str) -> Optional[float]:
    """
    Extract the number from a formatted value like "250,000円" or "120 日".

    Returns None when nothing numeric remains.
    """
    stripped = _NON_NUMERIC.sub("", text)
    if not stripped:
        return None
    try:
        return float(stripped)
    except ValueError:
        return None


def _fold_kana(text: str) -> str:
    return "".join(
        chr(ord(ch) - _KANA_OFFSET) if _KATAKANA_START <= ord(ch) <= _KATAKANA_END else ch
        for ch in text
    )


def collation_key(text: str) -> Tuple[Tuple[int, Any], ...]:
    """
    Natural-sort key comparing at base strength.

    Full-width and half-width forms, case, diacritics (including dakuten)
    and hiragana/katakana differences are ignored; digit runs compare by value.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    base = _fold_kana(base.casefold())

    parts = []
    for index, chunk in enumerate(_DIGIT_RUN.split(base)):
        if not chunk:
            continue
        # Odd split positions are the captured digit runs
        if index % 2:
            parts.append((0, int(chunk)))
        else:
            parts.append((1, chunk))
    return tuple(parts)


def compare_text(a: str, b: str) -> int:
    key_a, key_b = collation_key(a), collation_key(b)
    return (key_a > key_b) - (key_a < key_b)


def _sort_text(row: MergedRow, key: str) -> str:
    cell = row.get(key)
    if cell is None or cell.is_sentinel:
        return ""
    return cell.display


def compare_values(a: str, b: str, numeric: bool) -> int:
    """Compare two display strings in ascending order."""
    if numeric:
        a_num, b_num = parse_number(a), parse_number(b)
        if a_num is not None and b_num is not None:
            return (a_num > b_num) - (a_num < b_num)
    return compare_text(a, b)


def sort_rows(
    rows: List[MergedRow],
    config: SortConfig,
    numeric_columns: AbstractSet[str] = NUMERIC_COLUMNS,
) -> List[MergedRow]:
    """
    Return rows ordered by the sort configuration.

    An unset key returns a copy in input order.
    """
    if not config.key:
        return list(rows)

    key = config.key
    numeric = key in numeric_columns
    sign = -1 if config.direction == DESCENDING else 1

    def compare(a: MergedRow, b: MergedRow) -> int:
        a_text, b_text = _sort_text(a, key), _sort_text(b, key)
        # Empty (sentinel) values sit at the boundary regardless of column type
        if not a_text or not b_text:
            return sign * (bool(a_text) - bool(b_text))
        return sign * compare_values(a_text, b_text, numeric)

    return sorted(rows, key=cmp_to_key(compare))
