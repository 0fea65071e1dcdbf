"""
Column definitions for the company table.

Column labels are the Japanese headers shown to students; they are also the
keys stored in column_selections and sort_operations events.
"""

COMPANY_NAME_COLUMN = "企業名"

# Selectable columns, in the order the selector renders them
SELECTABLE_COLUMNS = [
    "従業員数",
    "学士卒採用数",
    "女性比率",
    "採用人数",
    "給与",
    "ボーナス",
    "労働時間",
    "年間休日",
    "残業時間",
    "週休",
]

# Columns whose display text carries a number with formatting or a unit suffix
NUMERIC_COLUMNS = frozenset({"給与", "年間休日", "残業時間", "従業員数"})

DEFAULT_SELECTED_COLUMNS = ["年間休日", "給与"]
DEFAULT_SORT_KEY = "給与"
