"""
Budget Line Item Entity - Materialized output row ready for persistence.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .categories import CostCategory

ZERO = Decimal("0")

# Base category -> line item bucket field
COST_BUCKETS = {
    CostCategory.DIRECT_LABOR: "labor_direct_cost",
    CostCategory.INDIRECT_LABOR: "labor_indirect_cost",
    CostCategory.MATERIALS: "materials_cost",
    CostCategory.EQUIPMENT: "equipment_cost",
    CostCategory.SUBCONTRACTS: "subcontracts_cost",
    CostCategory.SMALL_TOOLS: "small_tools_cost",
}


@dataclass(frozen=True)
class BudgetLineItem:
    """
    One budget line, tagged with cost type, discipline and WBS code.

    total_cost always equals the sum of the seven bucket fields.
    labor_staff_cost is kept for the persistence schema; the template
    has no staff category so the engine never fills it.
    """
    description: str
    discipline: Optional[str]
    cost_type: CostCategory
    total_cost: Decimal = ZERO
    wbs_code: Optional[str] = None
    labor_direct_cost: Decimal = ZERO
    labor_indirect_cost: Decimal = ZERO
    labor_staff_cost: Decimal = ZERO
    materials_cost: Decimal = ZERO
    equipment_cost: Decimal = ZERO
    subcontracts_cost: Decimal = ZERO
    small_tools_cost: Decimal = ZERO
    manhours: Decimal = ZERO
    quantity: Optional[Decimal] = None
    unit_of_measure: Optional[str] = None
    unit_rate: Optional[Decimal] = None
    source_sheet: Optional[str] = None
    source_row: Optional[int] = None

    @classmethod
    def for_category(cls, category: CostCategory, amount: Decimal, **kwargs) -> "BudgetLineItem":
        """Build an item carrying amount in the bucket matching category."""
        if category not in COST_BUCKETS:
            raise ValueError(f"{category.value} is not a base cost category")
        kwargs[COST_BUCKETS[category]] = amount
        return cls(cost_type=category, total_cost=amount, **kwargs)

    @property
    def bucket_sum(self) -> Decimal:
        return (
            self.labor_direct_cost
            + self.labor_indirect_cost
            + self.labor_staff_cost
            + self.materials_cost
            + self.equipment_cost
            + self.subcontracts_cost
            + self.small_tools_cost
        )

    @property
    def is_labor(self) -> bool:
        return self.cost_type.is_labor

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "wbs_code": self.wbs_code,
            "discipline": self.discipline,
            "cost_type": self.cost_type.display_name,
            "category": self.cost_type.value,
            "total_cost": self.total_cost,
            "labor_direct_cost": self.labor_direct_cost,
            "labor_indirect_cost": self.labor_indirect_cost,
            "labor_staff_cost": self.labor_staff_cost,
            "materials_cost": self.materials_cost,
            "equipment_cost": self.equipment_cost,
            "subcontracts_cost": self.subcontracts_cost,
            "small_tools_cost": self.small_tools_cost,
            "manhours": self.manhours,
            "quantity": self.quantity,
            "unit_of_measure": self.unit_of_measure,
            "unit_rate": self.unit_rate,
            "source_sheet": self.source_sheet,
            "source_row": self.source_row,
        }
