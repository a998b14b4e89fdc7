"""Column letter and cell address helpers.

Positions inside the reader are tracked as 0-based column indices, the way the
XML attributes are counted once the 1-based ``ss:Index`` is adjusted.
openpyxl's helpers are 1-based, so every conversion goes through here.
"""

from openpyxl.utils.cell import (
    column_index_from_string,
    coordinate_from_string,
    get_column_letter,
)

# Columns A through ZZZ, the range openpyxl can name
MAX_COLUMNS = 18278


def column_letter(index: int) -> str:
    """Return the column letters for a 0-based column index (0 -> "A")."""
    return get_column_letter(index + 1)


def column_index(letters: str) -> int:
    """Return the 0-based column index for column letters ("A" -> 0)."""
    return column_index_from_string(letters) - 1


def cell_address(column: int, row: int) -> str:
    """Build an A1 address from a 0-based column and a 1-based row."""
    return f"{column_letter(column)}{row}"


def split_address(address: str) -> tuple[int, int]:
    """Split an A1 address into a 0-based column and a 1-based row."""
    letters, row = coordinate_from_string(address)
    return column_index(letters), row
