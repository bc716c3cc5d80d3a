"""
ETL Module for the budget importer.
Handles loading workbooks from disk and parsing numeric cell values.
All monetary values are Decimal; add-on splits use the Largest Remainder
Method so a split always sums exactly to the amount split.
"""
import pandas as pd
import logging
import math
import re
from pathlib import Path
from typing import Optional, Tuple, Union, List
from decimal import Decimal, InvalidOperation, ROUND_DOWN

from ..domain.entities.workbook import Cell, EmptyCell, NumberCell, TextCell, Workbook

logger = logging.getLogger(__name__)

DEFAULT_QUANTUM = Decimal("0.000001")


def parse_numeric_value(value: Union[str, float, int, Decimal, None]) -> Optional[Decimal]:
    """
    Parse spreadsheet numbers and currency strings to Decimal.
    Uses Decimal(str(value)) to avoid float precision loss.

    Handles:
        " 715,643.50 " → Decimal('715643.50')
        "$1,234.56"    → Decimal('1234.56')
        "-$500.00"     → Decimal('-500.00')
        "($1,000.00)"  → Decimal('-1000.00') (accounting negative)
        "12.5%"        → Decimal('12.5')
        " -   " or "-" → Decimal('0')
        None, NaN, ""  → Decimal('0')
        "N/A", "1.2.3" → None (unparseable)

    Returns:
        Decimal value, or None when the text is not a number
    """
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return Decimal("0")

    if isinstance(value, bool):
        return Decimal(int(value))

    if isinstance(value, (int, float, Decimal)):
        try:
            d = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        return d if d.is_finite() else None

    s = str(value).strip()
    if s == '' or s == '-':
        return Decimal("0")

    # Detect negative (prefix '-', suffix '-', or parentheses for accounting notation)
    negative = False
    if s.startswith('-') or s.endswith('-') or (s.startswith('(') and s.endswith(')')):
        negative = True

    # Currency symbols, separators, percent signs and accounting marks only
    if re.search(r'[^\d.,$%()\s-]', s):
        return None
    s = re.sub(r'[^\d.]', '', s)

    if s == '' or s == '.':
        return None

    if s.count('.') > 1:
        return None

    try:
        d = Decimal(s)
    except (InvalidOperation, ValueError):
        return None
    return -d if negative else d


def cell_to_decimal(cell: Cell) -> Tuple[Decimal, bool]:
    """
    Read a cell as a number.

    Returns:
        (value, ok) where ok is False when the cell held text that is not
        a number; value is then zero.
    """
    if isinstance(cell, EmptyCell):
        return Decimal("0"), True
    if isinstance(cell, NumberCell):
        return cell.value, True
    parsed = parse_numeric_value(cell.value if isinstance(cell, TextCell) else None)
    if parsed is None:
        return Decimal("0"), False
    return parsed, True


def allocate_largest_remainder(total_units: int, weights: list[float]) -> list[int]:
    """
    Hamilton apportionment of whole units.

    Every bucket gets the floor of its exact share; leftover units go to
    the largest fractional parts. The result always sums to total_units,
    including for negative totals (credits).

    Example:
        allocate_largest_remainder(600, [5.0, 1.0])  # T&I over direct/indirect labor
        → [500, 100]
    """
    if not weights:
        return []

    if len(weights) == 1:
        return [total_units]

    weight_sum = sum(weights)
    if weight_sum == 0:
        base = total_units // len(weights)
        result = [base] * len(weights)
        result[0] += total_units - sum(result)
        return result

    normalized = [w / weight_sum for w in weights]

    exact = [total_units * w for w in normalized]
    floored = [math.floor(e) for e in exact]

    remainders = [e - f for e, f in zip(exact, floored)]

    leftover = total_units - sum(floored)

    order = sorted(range(len(remainders)), key=lambda i: remainders[i], reverse=True)
    for i in range(int(leftover)):
        floored[order[i % len(order)]] += 1

    return floored


def split_amount(
    amount: Decimal,
    weights: List[float],
    quantum: Decimal = DEFAULT_QUANTUM,
) -> List[Decimal]:
    """
    Split a Decimal amount by weights so the parts sum exactly to amount.

    The amount is distributed in whole quanta with the Largest Remainder
    Method; any sub-quantum residue goes to the largest-weight bucket.
    Zero weights always receive zero.

    Example:
        split_amount(Decimal('3000'), [50000.0, 10000.0])
        → [Decimal('2500.000000'), Decimal('500.000000')]
    """
    if not weights:
        return []

    positive = [i for i, w in enumerate(weights) if w > 0]
    result = [Decimal("0")] * len(weights)
    if not positive:
        return result

    units = int((amount / quantum).to_integral_value(rounding=ROUND_DOWN))
    shares = allocate_largest_remainder(units, [weights[i] for i in positive])
    for index, share in zip(positive, shares):
        result[index] = quantum * share

    residue = amount - sum(result, Decimal("0"))
    if residue:
        largest = max(positive, key=lambda i: weights[i])
        result[largest] += residue
    return result


def load_workbook(path: Union[str, Path]) -> Workbook:
    """
    Load every sheet of an Excel file into a Workbook.

    Sheets are read headerless so row indices match the spreadsheet
    (row 0 is Excel row 1).
    """
    path = Path(path)
    logger.info(f"Loading workbook {path}")
    frames = pd.read_excel(path, sheet_name=None, header=None, dtype=object)
    sheets = {}
    for name, df in frames.items():
        df = df.astype(object).where(pd.notna(df), None)
        sheets[str(name)] = df.values.tolist()
        logger.debug(f"Sheet '{name}': {len(df)} rows x {len(df.columns)} columns")
    return Workbook.from_rows(sheets)


def sheet_to_dataframe(workbook: Workbook, sheet_name: str) -> pd.DataFrame:
    """Raw cell values of one sheet as a headerless DataFrame."""
    sheet = workbook.find_sheet(sheet_name)
    if sheet is None:
        return pd.DataFrame()
    return pd.DataFrame(sheet.raw_rows())
