"""
Workbook Entity - Immutable in-memory view of an uploaded spreadsheet.

Cell values are tagged at the boundary (EmptyCell, TextCell, NumberCell)
so that nothing downstream has to guess what a raw library value means.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import math


@dataclass(frozen=True)
class EmptyCell:
    """A blank, null or NaN cell."""

    def text(self) -> str:
        return ""


@dataclass(frozen=True)
class TextCell:
    """A cell holding non-blank text."""
    value: str

    def text(self) -> str:
        return self.value.strip()


@dataclass(frozen=True)
class NumberCell:
    """A cell holding a number, stored as Decimal."""
    value: Decimal

    def text(self) -> str:
        if self.value == self.value.to_integral_value():
            return str(self.value.quantize(Decimal("1")))
        return str(self.value.normalize())


Cell = Union[EmptyCell, TextCell, NumberCell]

EMPTY = EmptyCell()


def to_cell(raw: Any) -> Cell:
    """
    Convert a raw spreadsheet value into a tagged cell.

    Handles:
        None, NaN, "", "   "  → EmptyCell
        "DIRECT LABOR"        → TextCell
        12, 12.5, True        → NumberCell (Decimal via str, no float drift)
        datetime/date         → TextCell (ISO format)
    """
    if isinstance(raw, (EmptyCell, TextCell, NumberCell)):
        return raw
    if raw is None:
        return EMPTY

    if isinstance(raw, bool):
        return NumberCell(Decimal(int(raw)))
    if isinstance(raw, int):
        return NumberCell(Decimal(raw))
    if isinstance(raw, float):
        if math.isnan(raw):
            return EMPTY
        if math.isinf(raw):
            return TextCell(str(raw))
        return NumberCell(Decimal(str(raw)))
    if isinstance(raw, Decimal):
        if raw.is_nan():
            return EMPTY
        if raw.is_infinite():
            return TextCell(str(raw))
        return NumberCell(raw)

    if isinstance(raw, (datetime, date)):
        return TextCell(raw.isoformat())

    if isinstance(raw, str):
        return TextCell(raw) if raw.strip() else EMPTY

    # numpy scalars and other number-likes
    try:
        number = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        text = str(raw)
        return TextCell(text) if text.strip() and text != "NaT" else EMPTY
    if number.is_nan():
        return EMPTY
    return NumberCell(number)


def raw_value(cell: Cell) -> Union[str, Decimal, None]:
    """Plain value of a cell for serialization."""
    if isinstance(cell, TextCell):
        return cell.value
    if isinstance(cell, NumberCell):
        return cell.value
    return None


@dataclass(frozen=True)
class Sheet:
    """
    A named 2-D grid of cells.

    Rows may be ragged; reads outside the grid return EMPTY.
    """
    name: str
    rows: Tuple[Tuple[Cell, ...], ...] = ()

    @classmethod
    def from_values(cls, name: str, rows: Iterable[Iterable[Any]]) -> "Sheet":
        return cls(name=name, rows=tuple(tuple(to_cell(v) for v in row) for row in rows))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def cell(self, row: int, col: int) -> Cell:
        if row < 0 or col < 0 or row >= len(self.rows):
            return EMPTY
        cells = self.rows[row]
        if col >= len(cells):
            return EMPTY
        return cells[col]

    def text(self, row: int, col: int) -> str:
        return self.cell(row, col).text()

    def is_row_blank(self, row: int) -> bool:
        if row < 0 or row >= len(self.rows):
            return True
        return all(isinstance(c, EmptyCell) for c in self.rows[row])

    @property
    def last_populated_row(self) -> int:
        """Index of the last row with any value, or -1 for a blank sheet."""
        for index in range(len(self.rows) - 1, -1, -1):
            if not self.is_row_blank(index):
                return index
        return -1

    @property
    def is_empty(self) -> bool:
        return self.last_populated_row < 0

    def raw_rows(self, start: int = 0) -> List[List[Union[str, Decimal, None]]]:
        return [[raw_value(c) for c in row] for row in self.rows[start:]]


@dataclass(frozen=True)
class Workbook:
    """
    Ordered set of named sheets.

    The engine only reads from a Workbook; it is never mutated.
    """
    sheet_names: Tuple[str, ...] = ()
    sheets: Dict[str, Sheet] = field(default_factory=dict)

    @classmethod
    def from_rows(cls, sheets: Mapping[str, Iterable[Iterable[Any]]]) -> "Workbook":
        """Build a workbook from sheet name -> list of row values (insertion order kept)."""
        built = {name: Sheet.from_values(name, rows) for name, rows in sheets.items()}
        return cls(sheet_names=tuple(built.keys()), sheets=built)

    def find_sheet(self, name: str) -> Optional[Sheet]:
        """Find a sheet by name, ignoring case and surrounding whitespace."""
        wanted = name.strip().upper()
        for sheet_name in self.sheet_names:
            if sheet_name.strip().upper() == wanted:
                return self.sheets.get(sheet_name)
        return None

    def __iter__(self):
        for name in self.sheet_names:
            yield self.sheets[name]
