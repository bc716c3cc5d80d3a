"""
Cost Category taxonomy of the BUDGETS template.

Six base categories receive money, five add-on categories are spread
over them, and two roll-up rows exist only as the template's own checks.
"""
from enum import Enum
from typing import Optional
import re


class CostCategory(Enum):
    """Category labels as they appear in the budget template."""
    DIRECT_LABOR = "DIRECT LABOR"
    INDIRECT_LABOR = "INDIRECT LABOR"
    MATERIALS = "MATERIALS"
    EQUIPMENT = "EQUIPMENT"
    SUBCONTRACTS = "SUBCONTRACTS"
    SMALL_TOOLS = "SMALL TOOLS & CONSUMABLES"
    TAXES_INSURANCE = "TAXES & INSURANCE"
    PERDIEM = "PERDIEM"
    ADD_ONS = "ADD ONS"
    SCAFFOLDING = "SCAFFOLDING"
    RISK = "RISK"
    ALL_LABOR = "ALL LABOR"
    DISCIPLINE_TOTALS = "DISCIPLINE TOTALS"

    @property
    def is_base(self) -> bool:
        return self in BASE_CATEGORIES

    @property
    def is_add_on(self) -> bool:
        return self in ADD_ON_CATEGORIES

    @property
    def is_derived(self) -> bool:
        return self in DERIVED_CATEGORIES

    @property
    def is_labor(self) -> bool:
        return self in (CostCategory.DIRECT_LABOR, CostCategory.INDIRECT_LABOR)

    @property
    def display_name(self) -> str:
        """Title-case name used for line item cost types."""
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_label(cls, label: str) -> Optional["CostCategory"]:
        """
        Match a template label to a category.

        Matching ignores case and repeated whitespace and accepts a few
        spellings seen in older templates ('PER DIEM', 'ADD-ONS', ...).
        Returns None for anything outside the closed set.
        """
        if not label:
            return None
        key = normalize_label(label)
        return _BY_LABEL.get(key) or _ALIASES.get(key)


def normalize_label(label: str) -> str:
    text = label.strip().upper().replace(" AND ", " & ")
    return re.sub(r"\s+", " ", text)


BASE_CATEGORIES = (
    CostCategory.DIRECT_LABOR,
    CostCategory.INDIRECT_LABOR,
    CostCategory.MATERIALS,
    CostCategory.EQUIPMENT,
    CostCategory.SUBCONTRACTS,
    CostCategory.SMALL_TOOLS,
)

ADD_ON_CATEGORIES = (
    CostCategory.TAXES_INSURANCE,
    CostCategory.PERDIEM,
    CostCategory.ADD_ONS,
    CostCategory.SCAFFOLDING,
    CostCategory.RISK,
)

DERIVED_CATEGORIES = (
    CostCategory.ALL_LABOR,
    CostCategory.DISCIPLINE_TOTALS,
)

_BY_LABEL = {c.value: c for c in CostCategory}

_ALIASES = {
    "PER DIEM": CostCategory.PERDIEM,
    "PER-DIEM": CostCategory.PERDIEM,
    "ADD-ONS": CostCategory.ADD_ONS,
    "ADDONS": CostCategory.ADD_ONS,
    "SMALL TOOLS": CostCategory.SMALL_TOOLS,
    "SMALL TOOLS & CONSUMABLE": CostCategory.SMALL_TOOLS,
    "TAXES & INS": CostCategory.TAXES_INSURANCE,
    "SUBCONTRACT": CostCategory.SUBCONTRACTS,
    "DISCIPLINE TOTAL": CostCategory.DISCIPLINE_TOTALS,
}

_DISPLAY_NAMES = {
    CostCategory.DIRECT_LABOR: "Direct Labor",
    CostCategory.INDIRECT_LABOR: "Indirect Labor",
    CostCategory.MATERIALS: "Materials",
    CostCategory.EQUIPMENT: "Equipment",
    CostCategory.SUBCONTRACTS: "Subcontracts",
    CostCategory.SMALL_TOOLS: "Small Tools & Consumables",
    CostCategory.TAXES_INSURANCE: "Taxes & Insurance",
    CostCategory.PERDIEM: "Per Diem",
    CostCategory.ADD_ONS: "Add Ons",
    CostCategory.SCAFFOLDING: "Scaffolding",
    CostCategory.RISK: "Risk",
    CostCategory.ALL_LABOR: "All Labor",
    CostCategory.DISCIPLINE_TOTALS: "Discipline Totals",
}
