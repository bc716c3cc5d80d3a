"""
Domain Entities - Workbook model and budget objects.
"""

from .workbook import Workbook, Sheet, Cell, EmptyCell, TextCell, NumberCell, EMPTY, to_cell
from .categories import CostCategory, BASE_CATEGORIES, ADD_ON_CATEGORIES, DERIVED_CATEGORIES
from .discipline_block import DisciplineBlock, CategoryFigures, UnrecognizedCategory
from .allocation import (
    DisciplineAllocation, DisciplineAllocationBuilder, BucketTotal, UnallocatedAmount,
)
from .wbs_node import WBSNode, WBSTree, DisciplineGroup
from .budget_line_item import BudgetLineItem, COST_BUCKETS
from .transformation_log import TransformationLog, TransformationStep

__all__ = [
    'Workbook', 'Sheet', 'Cell', 'EmptyCell', 'TextCell', 'NumberCell', 'EMPTY', 'to_cell',
    'CostCategory', 'BASE_CATEGORIES', 'ADD_ON_CATEGORIES', 'DERIVED_CATEGORIES',
    'DisciplineBlock', 'CategoryFigures', 'UnrecognizedCategory',
    'DisciplineAllocation', 'DisciplineAllocationBuilder', 'BucketTotal', 'UnallocatedAmount',
    'WBSNode', 'WBSTree', 'DisciplineGroup',
    'BudgetLineItem', 'COST_BUCKETS',
    'TransformationLog', 'TransformationStep',
]
