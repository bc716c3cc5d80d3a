# Budget Import - Modules
from .etl import (
    parse_numeric_value,
    cell_to_decimal,
    allocate_largest_remainder,
    split_amount,
    load_workbook,
)

__all__ = [
    "parse_numeric_value",
    "cell_to_decimal",
    "allocate_largest_remainder",
    "split_amount",
    "load_workbook",
]
