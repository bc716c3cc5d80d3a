"""
Line-Item Materializer - Flattens allocations into budget line items and
attaches them to the WBS tree.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List
import logging

from ..entities.allocation import DisciplineAllocation
from ..entities.budget_line_item import BudgetLineItem
from ..entities.categories import CostCategory, BASE_CATEGORIES
from ..entities.wbs_node import WBSTree
from .wbs_builder import WBSBuilder

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class BudgetTotals:
    """Totals over a set of line items."""
    grand_total: Decimal = ZERO
    by_category: Dict[str, Decimal] = field(default_factory=dict)
    total_labor: Decimal = ZERO
    total_non_labor: Decimal = ZERO
    direct_labor_hours: Decimal = ZERO
    indirect_labor_hours: Decimal = ZERO
    item_count: int = 0

    @property
    def total_manhours(self) -> Decimal:
        return self.direct_labor_hours + self.indirect_labor_hours

    def to_dict(self) -> dict:
        return {
            "grand_total": self.grand_total,
            "by_category": dict(self.by_category),
            "total_labor": self.total_labor,
            "total_non_labor": self.total_non_labor,
            "direct_labor_hours": self.direct_labor_hours,
            "indirect_labor_hours": self.indirect_labor_hours,
            "total_manhours": self.total_manhours,
            "item_count": self.item_count,
        }


def summarize_line_items(items: Iterable[BudgetLineItem]) -> BudgetTotals:
    """Grand total, per-category totals and labor hours of line items."""
    totals = BudgetTotals(by_category={c.value: ZERO for c in BASE_CATEGORIES})
    for item in items:
        totals.item_count += 1
        totals.grand_total += item.total_cost
        label = item.cost_type.value
        totals.by_category[label] = totals.by_category.get(label, ZERO) + item.total_cost
        if item.is_labor:
            totals.total_labor += item.total_cost
        else:
            totals.total_non_labor += item.total_cost
        if item.cost_type == CostCategory.DIRECT_LABOR:
            totals.direct_labor_hours += item.manhours
        elif item.cost_type == CostCategory.INDIRECT_LABOR:
            totals.indirect_labor_hours += item.manhours
    return totals


class LineItemMaterializer:
    """Emits one item per discipline and non-zero base category."""

    def __init__(self, source_sheet: str = "BUDGETS"):
        self.source_sheet = source_sheet

    def materialize(self, allocations: Iterable[DisciplineAllocation], tree: WBSTree) -> List[BudgetLineItem]:
        items: List[BudgetLineItem] = []
        for allocation in allocations:
            if not WBSBuilder.attach(tree, allocation):
                logger.warning(f"No WBS leaf for discipline '{allocation.discipline}'")
            leaf = tree.find_leaf(allocation.discipline)
            wbs_code = leaf.code if leaf else None

            for category, bucket in allocation.items():
                if bucket.value == 0:
                    continue
                description = f"{allocation.discipline} - {category.display_name}"
                if allocation.received_add_ons(category):
                    description += " (incl. proportional add-ons)"
                items.append(BudgetLineItem.for_category(
                    category,
                    bucket.value,
                    description=description,
                    discipline=allocation.discipline,
                    wbs_code=wbs_code,
                    manhours=bucket.manhours,
                    source_sheet=self.source_sheet,
                ))

        logger.info(f"Materialized {len(items)} budget line item(s)")
        return items
