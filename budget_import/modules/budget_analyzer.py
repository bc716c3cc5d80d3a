"""
Budget Analyzer - Runs a workbook through every import stage.

workbook → header detection → column mapping → detail sheet extraction
         → BUDGETS block extraction → allocation → WBS + line items
         → validation

analyze() is a pure function of its inputs. analyze_and_save() also
hands the result to a caller-supplied persistence callback; the analyzer
itself performs no I/O.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from ..config import BudgetImportConfig, get_config
from ..domain.entities.allocation import DisciplineAllocation
from ..domain.entities.budget_line_item import BudgetLineItem
from ..domain.entities.categories import CostCategory
from ..domain.entities.discipline_block import DisciplineBlock
from ..domain.entities.transformation_log import TransformationLog
from ..domain.entities.wbs_node import DisciplineGroup, WBSTree
from ..domain.entities.workbook import Sheet, Workbook
from ..domain.exceptions import WorkbookContractError
from ..domain.services.allocation_engine import AllocationEngine
from ..domain.services.budget_validator import BudgetValidator, ValidationReport
from ..domain.services.column_mapper import ColumnMapper, MappingValidation, validate_mapping
from ..domain.services.discipline_block_extractor import DisciplineBlockExtractor
from ..domain.services.discipline_mapper import DisciplineMapper
from ..domain.services.header_detector import DetectedHeader, HeaderDetector
from ..domain.services.line_item_materializer import (
    BudgetTotals,
    LineItemMaterializer,
    summarize_line_items,
)
from ..domain.services.tabular_sheet_extractor import TabularSheetExtractor
from ..domain.services.wbs_builder import WBSBuilder

logger = logging.getLogger(__name__)

CustomMappings = Mapping[str, Mapping[str, int]]


@dataclass
class AnalysisResult:
    """
    Everything one run produces.

    Attributes:
        wbs_structure: Two-level WBS tree
        line_items: sheet name -> budget line items
        totals: Grand total and per-category totals
        detected_headers: sheet name -> detected header
        raw_data: sheet name -> {headers, rows, total_rows}
        column_mappings: sheet name -> role -> column index
        transformation_log: Steps taken during the run
        validation: Errors, warnings and info messages
        disciplines: Blocks read from the BUDGETS sheet
        allocations: Allocated totals per discipline
    """
    wbs_structure: WBSTree = field(default_factory=WBSTree)
    line_items: Dict[str, List[BudgetLineItem]] = field(default_factory=dict)
    totals: BudgetTotals = field(default_factory=BudgetTotals)
    detected_headers: Dict[str, DetectedHeader] = field(default_factory=dict)
    raw_data: Dict[str, dict] = field(default_factory=dict)
    column_mappings: Dict[str, Dict[str, int]] = field(default_factory=dict)
    transformation_log: TransformationLog = field(default_factory=TransformationLog)
    validation: ValidationReport = field(default_factory=ValidationReport)
    disciplines: List[DisciplineBlock] = field(default_factory=list)
    allocations: List[DisciplineAllocation] = field(default_factory=list)

    @property
    def all_line_items(self) -> List[BudgetLineItem]:
        return [item for items in self.line_items.values() for item in items]

    def to_dict(self) -> dict:
        return {
            "wbs_structure": self.wbs_structure.to_list(),
            "line_items": {
                sheet: [item.to_dict() for item in items]
                for sheet, items in self.line_items.items()
            },
            "totals": self.totals.to_dict(),
            "detected_headers": {
                sheet: header.to_dict() for sheet, header in self.detected_headers.items()
            },
            "raw_data": self.raw_data,
            "column_mappings": self.column_mappings,
            "transformation_log": self.transformation_log.to_list(),
            "validation": self.validation.to_dict(),
            "disciplines": [block.to_dict() for block in self.disciplines],
            "allocations": [allocation.to_dict() for allocation in self.allocations],
        }


class BudgetAnalyzer:
    """
    Stateless import pipeline.

    One instance can analyze any number of workbooks, concurrently or
    not; every run builds its own log, validator and result.
    """

    def __init__(
        self,
        config: Optional[BudgetImportConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or get_config()
        self.clock = clock or datetime.now
        self.header_detector = HeaderDetector(self.config)
        self.column_mapper = ColumnMapper()
        self.block_extractor = DisciplineBlockExtractor(self.config)
        self.allocation_engine = AllocationEngine(self.config)
        self.discipline_mapper = DisciplineMapper(self.config)
        self.wbs_builder = WBSBuilder()
        self.tabular_extractor = TabularSheetExtractor(self.config)
        self.materializer = LineItemMaterializer(source_sheet=self.config.block_sheet_name)

    def validate_mapping(self, sheet_id: str, mapping: Mapping[str, int], sheet_width: int) -> MappingValidation:
        return validate_mapping(sheet_id, mapping, sheet_width)

    def analyze(
        self,
        workbook: Workbook,
        custom_mappings: Optional[CustomMappings] = None,
        discipline_groups: Optional[Sequence[DisciplineGroup]] = None,
    ) -> AnalysisResult:
        """
        Analyze a workbook without side effects.

        Args:
            workbook: Parsed workbook
            custom_mappings: sheet name -> role -> column index overrides
            discipline_groups: Explicit WBS grouping; defaults to the INPUT
                sheet grouping, else one group per discipline

        Returns:
            AnalysisResult

        Raises:
            WorkbookContractError: If workbook is not a Workbook
        """
        if workbook is None or not isinstance(workbook, Workbook):
            raise WorkbookContractError(workbook)

        custom_mappings = custom_mappings or {}
        log = TransformationLog(clock=self.clock)
        validator = BudgetValidator()
        result = AnalysisResult(transformation_log=log)

        log.record(
            "start",
            f"Analyzing workbook with {len(workbook.sheet_names)} sheet(s)",
            {"sheets": list(workbook.sheet_names), "custom_mappings": sorted(custom_mappings)},
        )

        if not validator.check_has_sheets(workbook.sheet_names):
            log.record("complete", "Nothing to analyze", {"sheets": 0})
            result.validation = validator.report()
            return result

        validator.check_unknown_mapping_sheets(custom_mappings.keys(), workbook.sheet_names)

        block_sheet = self.config.block_sheet_name.strip().upper()
        input_sheets = {name.strip().upper() for name in self.config.input_sheet_names}
        input_disciplines: Optional[List[str]] = None
        tabular_items: Dict[str, List[BudgetLineItem]] = {}
        blocks: List[DisciplineBlock] = []

        for name in workbook.sheet_names:
            sheet = workbook.sheets.get(name)
            if sheet is None:
                validator.error(f"Sheet '{name}' listed in workbook but has no data")
                log.record("skip_sheet", f"Sheet '{name}' has no grid", {"sheet": name})
                continue
            key = name.strip().upper()
            custom = _lookup_mapping(custom_mappings, name)

            if not validator.check_empty_sheet(name, sheet.is_empty):
                result.raw_data[name] = {"headers": [], "rows": [], "total_rows": 0}
                log.record("skip_sheet", f"Sheet '{name}' is empty", {"sheet": name})
                continue

            header = self.header_detector.detect(sheet)
            if header is not None:
                result.detected_headers[name] = header
                log.record("header_detected", f"Header row {header.header_row_index} in '{name}'", header.to_dict())
            result.raw_data[name] = _raw_data(sheet, header)

            if key == block_sheet:
                extraction = self.block_extractor.extract(sheet, log)
                blocks.extend(extraction.blocks)
                validator.warnings(extraction.all_warnings)
                continue

            if key in input_sheets:
                input_disciplines = self.discipline_mapper.extract_disciplines_from_input(sheet)
                log.record(
                    "input_disciplines",
                    f"{len(input_disciplines)} active discipline(s) on '{name}'",
                    {"disciplines": input_disciplines},
                )
                if not input_disciplines:
                    validator.info(f"Sheet '{name}' has no active discipline list")
                continue

            validator.check_header(name, header is not None, bool(custom))
            resolution = self.column_mapper.resolve(name, header, custom, sheet.column_count)
            validator.check_mapping(resolution.validation)
            if resolution.mapping:
                result.column_mappings[name] = dict(resolution.mapping)

            label = self.config.category_for_sheet(name)
            category = CostCategory.from_label(label) if label else None
            if category is None or not category.is_base:
                validator.info(f"Sheet '{name}' is not a budget detail sheet; skipped")
                log.record("skip_sheet", f"Sheet '{name}' is not a budget detail sheet", {"sheet": name})
                continue
            if header is None and not custom:
                continue

            header_row = header.header_row_index if header else self.config.custom_mapping_header_row
            extraction = self.tabular_extractor.extract(
                sheet,
                resolution.mapping,
                category,
                header_row,
                keep_raw_wbs=resolution.sources.get("wbs") == "custom",
                log=log,
            )
            validator.warnings(extraction.warnings)
            if extraction.items:
                tabular_items[name] = extraction.items
            else:
                validator.warning(f"Sheet '{name}' has no data rows")

        validator.check_required_sheets(workbook.sheet_names, self.config.required_sheets)

        allocations = self.allocation_engine.allocate_all(blocks, log)
        for allocation in allocations:
            validator.warnings(allocation.warnings)
        validator.check_discipline_totals(blocks, self.config.totals_tolerance)

        block_names = [b.discipline for b in blocks]
        validator.check_duplicate_disciplines(block_names)
        validator.check_discipline_coverage(input_disciplines, block_names)
        groups = self._discipline_groups(discipline_groups, input_disciplines, block_names)
        tree = self.wbs_builder.build(groups)
        log.record(
            "wbs_built",
            f"WBS with {len(tree)} group(s)",
            {"codes": [node.code for node in tree.flatten()]},
        )

        budget_items = self.materializer.materialize(allocations, tree)

        result.line_items.update(tabular_items)
        if budget_items:
            result.line_items[self.config.block_sheet_name] = budget_items

        # BUDGETS blocks restate the detail sheets, so they alone count when present
        result.totals = summarize_line_items(budget_items if blocks else
                                             [i for items in tabular_items.values() for i in items])
        result.wbs_structure = tree
        result.disciplines = blocks
        result.allocations = allocations
        result.validation = validator.report()

        log.record(
            "complete",
            f"Analysis complete: {result.totals.item_count} line item(s), "
            f"grand total {result.totals.grand_total}",
            {
                "grand_total": float(result.totals.grand_total),
                "errors": len(result.validation.errors),
                "warnings": len(result.validation.warnings),
            },
        )
        logger.info(
            f"Analysis complete: {len(blocks)} discipline(s), "
            f"{sum(len(v) for v in result.line_items.values())} line item(s)"
        )
        return result

    def analyze_and_save(
        self,
        workbook: Workbook,
        persist: Callable[[AnalysisResult], Any],
        custom_mappings: Optional[CustomMappings] = None,
        discipline_groups: Optional[Sequence[DisciplineGroup]] = None,
    ) -> Tuple[AnalysisResult, Any]:
        """
        Analyze a workbook, then hand the result to persist.

        persist is called exactly once, after analysis completes; its
        return value is passed back unchanged alongside the result.
        """
        result = self.analyze(workbook, custom_mappings, discipline_groups)
        result.transformation_log.record("persist", "Handing result to persistence callback")
        persisted = persist(result)
        return result, persisted

    def _discipline_groups(
        self,
        explicit: Optional[Sequence[DisciplineGroup]],
        input_disciplines: Optional[List[str]],
        block_names: List[str],
    ) -> List[DisciplineGroup]:
        if explicit is not None:
            groups = list(explicit)
            listed = {d.strip().upper() for g in groups for d in g.disciplines}
            missing = [n for n in block_names if n.strip().upper() not in listed]
            return groups + DisciplineMapper.single_discipline_groups(missing)

        if input_disciplines:
            active = {d.strip().upper() for d in input_disciplines}
            names = list(input_disciplines) + [n for n in block_names if n.strip().upper() not in active]
            return self.discipline_mapper.group_disciplines(names)

        return DisciplineMapper.single_discipline_groups(block_names)


def _lookup_mapping(custom_mappings: CustomMappings, sheet_name: str) -> Optional[Mapping[str, int]]:
    if sheet_name in custom_mappings:
        return custom_mappings[sheet_name]
    wanted = sheet_name.strip().upper()
    for name, mapping in custom_mappings.items():
        if name.strip().upper() == wanted:
            return mapping
    return None


def _raw_data(sheet: Sheet, header: Optional[DetectedHeader]) -> dict:
    if header is None:
        rows = sheet.raw_rows()
        return {"headers": [], "rows": rows, "total_rows": len(rows)}
    row = header.header_row_index
    headers = [sheet.text(row, col) for col in range(sheet.column_count)]
    rows = sheet.raw_rows(row + 1)
    return {"headers": headers, "rows": rows, "total_rows": len(rows)}
