"""
Domain Services - Header detection, extraction, allocation, WBS and validation.
"""

from .header_detector import HeaderDetector, DetectedHeader, HeaderColumn, HEADER_ROLES
from .column_mapper import ColumnMapper, ColumnResolution, MappingValidation, validate_mapping
from .discipline_block_extractor import DisciplineBlockExtractor, BlockExtraction
from .allocation_engine import AllocationEngine, ALLOCATION_POLICY
from .discipline_mapper import DisciplineMapper
from .wbs_builder import WBSBuilder
from .tabular_sheet_extractor import TabularSheetExtractor, TabularExtraction
from .line_item_materializer import LineItemMaterializer, BudgetTotals, summarize_line_items
from .budget_validator import BudgetValidator, ValidationReport, NO_SHEETS_ERROR

__all__ = [
    'HeaderDetector',
    'DetectedHeader',
    'HeaderColumn',
    'HEADER_ROLES',
    'ColumnMapper',
    'ColumnResolution',
    'MappingValidation',
    'validate_mapping',
    'DisciplineBlockExtractor',
    'BlockExtraction',
    'AllocationEngine',
    'ALLOCATION_POLICY',
    'DisciplineMapper',
    'WBSBuilder',
    'TabularSheetExtractor',
    'TabularExtraction',
    'LineItemMaterializer',
    'BudgetTotals',
    'summarize_line_items',
    'BudgetValidator',
    'ValidationReport',
    'NO_SHEETS_ERROR',
]
