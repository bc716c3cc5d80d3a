"""
Budget Validator - Collects findings from every stage of a run.

Never raises. Errors and warnings are advisory; the caller decides
whether any of them block persistence.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
import logging

from ..entities.categories import CostCategory
from ..entities.discipline_block import DisciplineBlock
from .column_mapper import MappingValidation

logger = logging.getLogger(__name__)

NO_SHEETS_ERROR = "No sheets found in workbook"


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "info": list(self.info),
        }


class BudgetValidator:
    """Accumulates errors, warnings and info messages for one run."""

    def __init__(self):
        self._report = ValidationReport()

    def error(self, message: str) -> None:
        if message not in self._report.errors:
            self._report.errors.append(message)
            logger.error(message)

    def warning(self, message: str) -> None:
        if message not in self._report.warnings:
            self._report.warnings.append(message)
            logger.warning(message)

    def warnings(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.warning(message)

    def info(self, message: str) -> None:
        if message not in self._report.info:
            self._report.info.append(message)

    def report(self) -> ValidationReport:
        return ValidationReport(
            errors=list(self._report.errors),
            warnings=list(self._report.warnings),
            info=list(self._report.info),
        )

    # =========================================================================
    # Structural checks
    # =========================================================================

    def check_has_sheets(self, sheet_names: Sequence[str]) -> bool:
        if not sheet_names:
            self.error(NO_SHEETS_ERROR)
            return False
        return True

    def check_empty_sheet(self, sheet_name: str, is_empty: bool) -> bool:
        if is_empty:
            self.warning(f"Sheet '{sheet_name}' is empty; no headers found")
        return not is_empty

    def check_header(self, sheet_name: str, has_header: bool, has_custom_mapping: bool) -> None:
        if not has_header and not has_custom_mapping:
            self.warning(
                f"Sheet '{sheet_name}' has no valid headers and no custom column mapping"
            )

    def check_required_sheets(self, sheet_names: Sequence[str], required: Iterable[str]) -> None:
        present = {name.strip().upper() for name in sheet_names}
        for name in required:
            if name.strip().upper() not in present:
                self.warning(f"Required sheet '{name}' not found in workbook")

    def check_mapping(self, validation: MappingValidation) -> None:
        for issue in validation.issues:
            self.error(issue)

    def check_unknown_mapping_sheets(self, mapped_sheets: Iterable[str], sheet_names: Sequence[str]) -> None:
        present = {name.strip().upper() for name in sheet_names}
        for name in mapped_sheets:
            if name.strip().upper() not in present:
                self.warning(f"Custom mapping given for unknown sheet '{name}'")

    # =========================================================================
    # Data checks
    # =========================================================================

    def check_discipline_totals(self, blocks: Iterable[DisciplineBlock], tolerance: Decimal) -> None:
        """Compare each DISCIPLINE TOTALS row with the sum of its eleven inputs."""
        for block in blocks:
            totals = block.figures(CostCategory.DISCIPLINE_TOTALS)
            if totals is None:
                continue
            difference = abs(totals.value - block.input_value)
            if difference > tolerance:
                self.warning(
                    f"Discipline '{block.discipline}': DISCIPLINE TOTALS {totals.value} "
                    f"differs from category sum {block.input_value} by {difference}"
                )

    def check_duplicate_disciplines(self, block_disciplines: Sequence[str]) -> None:
        """Flag discipline names used by more than one BUDGETS block."""
        seen = set()
        for name in block_disciplines:
            key = name.strip().upper()
            if key in seen:
                self.warning(
                    f"Discipline '{name}' appears in more than one BUDGETS block; "
                    f"their totals are combined in one WBS leaf"
                )
            seen.add(key)

    def check_discipline_coverage(
        self,
        input_disciplines: Optional[Sequence[str]],
        block_disciplines: Sequence[str],
    ) -> None:
        """Cross-check the INPUT sheet's active list against the BUDGETS blocks."""
        if not input_disciplines:
            return
        active = {d.strip().upper() for d in input_disciplines}
        found = {d.strip().upper() for d in block_disciplines}
        for name in block_disciplines:
            if name.strip().upper() not in active:
                self.warning(f"Discipline '{name}' has a BUDGETS block but is not active on INPUT")
        for name in input_disciplines:
            if name.strip().upper() not in found:
                self.warning(f"Discipline '{name}' is active on INPUT but has no BUDGETS block")
