"""
Tabular Sheet Extractor - Line items from header-driven detail sheets
(DIRECTS, MATERIALS, SUBS, ...).

Each data row below the header becomes one line item in the bucket of
the sheet's cost category. Blank rows, total rows and rows without a
positive total are skipped.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Mapping, Optional
import logging
import re

from ...config import BudgetImportConfig, get_config
from ...modules.etl import cell_to_decimal
from ..entities.budget_line_item import BudgetLineItem
from ..entities.categories import CostCategory
from ..entities.transformation_log import TransformationLog
from ..entities.workbook import EmptyCell, Sheet

logger = logging.getLogger(__name__)


@dataclass
class TabularExtraction:
    sheet_name: str
    items: List[BudgetLineItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped_rows: int = 0


class TabularSheetExtractor:
    """Reads detail sheets through a resolved column mapping."""

    def __init__(self, config: Optional[BudgetImportConfig] = None):
        self.config = config or get_config()
        self.wbs_pattern = re.compile(self.config.wbs_pattern)
        self.total_keywords = [k.lower() for k in self.config.total_row_keywords]

    def is_total_row(self, sheet: Sheet, row: int, mapping: Mapping[str, int]) -> bool:
        """A row whose first or label columns start with a total keyword."""
        columns = {0}
        for role in ("wbs", "description"):
            if role in mapping:
                columns.add(mapping[role])
        for col in columns:
            text = sheet.text(row, col).lower()
            if any(text == k or text.startswith(k + " ") for k in self.total_keywords):
                return True
        return False

    def extract(
        self,
        sheet: Sheet,
        mapping: Mapping[str, int],
        category: CostCategory,
        header_row: int,
        keep_raw_wbs: bool = False,
        log: Optional[TransformationLog] = None,
    ) -> TabularExtraction:
        """
        Extract line items from a detail sheet.

        Args:
            sheet: Detail sheet
            mapping: role -> column index
            category: Base category the sheet's totals belong to
            header_row: 0-based header row; data starts below it
            keep_raw_wbs: Use the wbs column text as-is even when it does
                not look like a WBS code (set for custom mappings)
            log: Run log
        """
        log = log if log is not None else TransformationLog()
        result = TabularExtraction(sheet_name=sheet.name)

        if "total" not in mapping:
            message = f"Sheet '{sheet.name}' has no total column; no line items read"
            result.warnings.append(message)
            log.record("skip_sheet", message, {"sheet": sheet.name})
            return result

        for row in range(header_row + 1, sheet.row_count):
            if sheet.is_row_blank(row) or self.is_total_row(sheet, row, mapping):
                result.skipped_rows += 1
                continue

            total_cell = sheet.cell(row, mapping["total"])
            if isinstance(total_cell, EmptyCell):
                result.skipped_rows += 1
                continue
            total, ok = cell_to_decimal(total_cell)
            if not ok:
                message = (
                    f"Sheet '{sheet.name}' row {row + 1}: total '{total_cell.text()}' "
                    f"is not numeric; row skipped"
                )
                result.warnings.append(message)
                log.record("parse_warning", message, {"sheet": sheet.name, "row": row})
                result.skipped_rows += 1
                continue
            if total <= 0:
                result.skipped_rows += 1
                continue

            result.items.append(self._build_item(sheet, row, mapping, category, total, keep_raw_wbs))

        log.record(
            "sheet_complete",
            f"Extracted {len(result.items)} line item(s) from '{sheet.name}'",
            {"sheet": sheet.name, "items": len(result.items), "skipped_rows": result.skipped_rows},
        )
        logger.info(f"Sheet '{sheet.name}': {len(result.items)} line items")
        return result

    def _build_item(
        self,
        sheet: Sheet,
        row: int,
        mapping: Mapping[str, int],
        category: CostCategory,
        total: Decimal,
        keep_raw_wbs: bool,
    ) -> BudgetLineItem:
        def text(role: str) -> Optional[str]:
            if role not in mapping:
                return None
            return sheet.text(row, mapping[role]) or None

        def number(role: str) -> Optional[Decimal]:
            if role not in mapping or isinstance(sheet.cell(row, mapping[role]), EmptyCell):
                return None
            value, ok = cell_to_decimal(sheet.cell(row, mapping[role]))
            return value if ok else None

        wbs_text = text("wbs")
        wbs_code = None
        if wbs_text and (keep_raw_wbs or self.wbs_pattern.match(wbs_text)):
            wbs_code = wbs_text

        description = text("description") or wbs_text or f"{sheet.name} row {row + 1}"
        hours = number("hours")

        return BudgetLineItem.for_category(
            category,
            total,
            description=description,
            discipline=text("discipline"),
            wbs_code=wbs_code,
            manhours=hours if hours is not None else Decimal("0"),
            quantity=number("quantity"),
            unit_of_measure=text("unit"),
            unit_rate=number("rate"),
            source_sheet=sheet.name,
            source_row=row,
        )
