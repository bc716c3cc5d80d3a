"""
Discipline Block Extractor - Reads the fixed-size discipline blocks of
the BUDGETS sheet.

Template layout (one block per discipline, 12 rows by default):
    A: discipline number   B: discipline name   D: category label
    E: manhours            F: value             G: percentage

The first row of every block carries the number, the name and the
DIRECT LABOR label. Extraction is total: bad cells become zero with a
warning, nameless blocks are skipped, unknown labels pass through.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional
import logging

from ...config import BudgetImportConfig, get_config
from ...modules.etl import cell_to_decimal
from ..entities.categories import CostCategory, normalize_label
from ..entities.discipline_block import CategoryFigures, DisciplineBlock, UnrecognizedCategory
from ..entities.transformation_log import TransformationLog
from ..entities.workbook import EmptyCell, NumberCell, Sheet

logger = logging.getLogger(__name__)


@dataclass
class BlockExtraction:
    """Blocks read from one sheet plus sheet-level warnings."""
    sheet_name: str
    blocks: List[DisciplineBlock] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    first_block_row: Optional[int] = None

    @property
    def all_warnings(self) -> List[str]:
        """Sheet warnings followed by every block's own issues."""
        issues = list(self.warnings)
        for block in self.blocks:
            issues.extend(block.issues)
        return issues


class DisciplineBlockExtractor:
    """Walks a BUDGETS sheet block by block."""

    def __init__(self, config: Optional[BudgetImportConfig] = None):
        self.config = config or get_config()
        self.block_size = self.config.block_size
        self.columns = self.config.block_columns
        self.header_label = normalize_label(self.config.block_header_label)
        self.expected_labels = [normalize_label(l) for l in self.config.expected_block_labels]

    def find_first_block_row(self, sheet: Sheet) -> Optional[int]:
        """First row whose label reads DIRECT LABOR and that names a discipline."""
        for row in range(sheet.row_count):
            label = normalize_label(sheet.text(row, self.columns["label"]))
            if label == self.header_label and sheet.text(row, self.columns["name"]):
                return row
        return None

    def extract(
        self,
        sheet: Sheet,
        log: Optional[TransformationLog] = None,
        first_block_row: Optional[int] = None,
        block_size: Optional[int] = None,
    ) -> BlockExtraction:
        """
        Extract every discipline block of a sheet.

        Args:
            sheet: The BUDGETS sheet
            log: Run log to record steps in
            first_block_row: 0-based start row (defaults to configuration,
                then to the first DIRECT LABOR row)
            block_size: Rows per block (defaults to configuration)

        Returns:
            BlockExtraction with blocks in sheet order
        """
        log = log if log is not None else TransformationLog()
        size = block_size or self.block_size
        result = BlockExtraction(sheet_name=sheet.name)

        start = first_block_row
        if start is None:
            start = self.config.first_block_row
        if start is None:
            start = self.find_first_block_row(sheet)
        if start is None:
            message = f"Sheet '{sheet.name}' has no discipline blocks"
            result.warnings.append(message)
            log.record("budgets_sheet_start", message, {"sheet": sheet.name, "blocks": 0})
            return result

        result.first_block_row = start
        log.record(
            "budgets_sheet_start",
            f"Reading discipline blocks from sheet '{sheet.name}'",
            {"sheet": sheet.name, "first_block_row": start, "block_size": size},
        )

        last_row = sheet.last_populated_row
        row = start
        while row <= last_row:
            name = sheet.text(row, self.columns["name"])
            if not name:
                if not self._block_has_data(sheet, row, size):
                    break
                message = (
                    f"Discipline block at row {row + 1} in sheet '{sheet.name}' "
                    f"has no discipline name; block skipped"
                )
                result.warnings.append(message)
                log.record("block_skipped", message, {"row": row})
                logger.warning(message)
                row += size
                continue

            block = self._read_block(sheet, row, size, name, log)
            result.blocks.append(block)
            log.record(
                "discipline_found",
                f"Discipline '{block.discipline}' at row {row + 1}",
                {
                    "discipline": block.discipline,
                    "number": block.discipline_number,
                    "manhours": float(block.manhours),
                    "value": float(block.value),
                    "categories": [c.value for c in block.categories],
                },
            )
            row += size

        log.record(
            "sheet_complete",
            f"Extracted {len(result.blocks)} discipline block(s) from '{sheet.name}'",
            {"sheet": sheet.name, "disciplines": [b.discipline for b in result.blocks]},
        )
        logger.info(f"Extracted {len(result.blocks)} discipline blocks from '{sheet.name}'")
        return result

    def _block_has_data(self, sheet: Sheet, start: int, size: int) -> bool:
        data_columns = (
            self.columns["label"],
            self.columns["manhours"],
            self.columns["value"],
        )
        for row in range(start, start + size):
            for col in data_columns:
                if not isinstance(sheet.cell(row, col), EmptyCell):
                    return True
        return False

    def _read_block(
        self,
        sheet: Sheet,
        start: int,
        size: int,
        name: str,
        log: TransformationLog,
    ) -> DisciplineBlock:
        block = DisciplineBlock(
            discipline=name,
            discipline_number=self._discipline_number(sheet, start),
            start_row=start,
            sheet_name=sheet.name,
        )

        for offset in range(size):
            row = start + offset
            label = sheet.text(row, self.columns["label"])
            if not label:
                continue

            if offset < len(self.expected_labels) and normalize_label(label) != self.expected_labels[offset]:
                log.record(
                    "layout_drift",
                    f"Row {row + 1} of '{name}' reads '{label}', template expects "
                    f"'{self.expected_labels[offset]}'",
                    {"discipline": name, "row": row, "label": label},
                )

            figures = CategoryFigures(
                label=label,
                manhours=self._number(sheet, row, "manhours", block, label, log),
                value=self._number(sheet, row, "value", block, label, log),
                percentage=self._number(sheet, row, "percentage", block, label, log),
                row=row,
            )

            category = CostCategory.from_label(label)
            if category is None:
                block.passthrough.append(UnrecognizedCategory(label, figures, row))
                message = (
                    f"Unrecognized category '{label}' in discipline '{name}' "
                    f"(sheet '{sheet.name}', row {row + 1}); not allocated"
                )
                block.issues.append(message)
                log.record("unrecognized_category", message, {"discipline": name, "label": label})
                continue

            if category in block.categories:
                block.categories[category] = block.categories[category].merged(figures)
                log.record(
                    "duplicate_category",
                    f"Category '{label}' repeated in discipline '{name}'; values summed",
                    {"discipline": name, "row": row},
                )
            else:
                block.categories[category] = figures
            log.record(
                "cost_type_found",
                f"{name}: {category.value}",
                {"row": row, "manhours": float(figures.manhours), "value": float(figures.value)},
            )

        return block

    def _number(
        self,
        sheet: Sheet,
        row: int,
        field_name: str,
        block: DisciplineBlock,
        label: str,
        log: TransformationLog,
    ) -> Decimal:
        cell = sheet.cell(row, self.columns[field_name])
        value, ok = cell_to_decimal(cell)
        if not ok:
            message = (
                f"Unparseable {field_name} '{cell.text()}' for '{label}' in discipline "
                f"'{block.discipline}' (sheet '{sheet.name}', row {row + 1}); treated as zero"
            )
            block.issues.append(message)
            log.record("parse_warning", message, {"row": row, "field": field_name})
            logger.warning(message)
        return value

    def _discipline_number(self, sheet: Sheet, row: int) -> Optional[int]:
        cell = sheet.cell(row, self.columns["number"])
        if isinstance(cell, NumberCell):
            return int(cell.value)
        value, ok = cell_to_decimal(cell)
        if ok and not isinstance(cell, EmptyCell):
            return int(value)
        return None
