"""
Discipline Block Entity - One discipline's figures from the BUDGETS sheet.

Each block holds manhours, dollar value and percentage per cost category,
plus any rows whose label is not part of the template taxonomy.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from .categories import CostCategory, BASE_CATEGORIES, ADD_ON_CATEGORIES

ZERO = Decimal("0")


@dataclass(frozen=True)
class CategoryFigures:
    """Manhours, value and percentage read from one block row."""
    label: str
    manhours: Decimal = ZERO
    value: Decimal = ZERO
    percentage: Decimal = ZERO
    row: Optional[int] = None

    def merged(self, other: "CategoryFigures") -> "CategoryFigures":
        """Combine with a repeated row for the same category."""
        return CategoryFigures(
            label=self.label,
            manhours=self.manhours + other.manhours,
            value=self.value + other.value,
            percentage=self.percentage + other.percentage,
            row=self.row,
        )


@dataclass(frozen=True)
class UnrecognizedCategory:
    """A block row whose label is outside the closed category set."""
    label: str
    figures: CategoryFigures
    row: int


@dataclass
class DisciplineBlock:
    """
    Figures for one discipline.

    Attributes:
        discipline: Discipline name as written in the block header row
        discipline_number: Sequence number from column A, when numeric
        start_row: 0-based sheet row of the block header
        categories: Recognized category -> figures
        passthrough: Rows with unrecognized labels (never allocated)
        issues: Data-quality warnings raised while reading the block
    """
    discipline: str
    discipline_number: Optional[int] = None
    start_row: int = 0
    sheet_name: str = ""
    categories: Dict[CostCategory, CategoryFigures] = field(default_factory=dict)
    passthrough: List[UnrecognizedCategory] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)

    def figures(self, category: CostCategory) -> Optional[CategoryFigures]:
        return self.categories.get(category)

    def value_of(self, category: CostCategory) -> Decimal:
        figures = self.categories.get(category)
        return figures.value if figures else ZERO

    def manhours_of(self, category: CostCategory) -> Decimal:
        figures = self.categories.get(category)
        return figures.manhours if figures else ZERO

    @property
    def direct_labor_hours(self) -> Decimal:
        return self.manhours_of(CostCategory.DIRECT_LABOR)

    @property
    def indirect_labor_hours(self) -> Decimal:
        return self.manhours_of(CostCategory.INDIRECT_LABOR)

    @property
    def manhours(self) -> Decimal:
        """Direct plus indirect labor hours."""
        return self.direct_labor_hours + self.indirect_labor_hours

    @property
    def base_value(self) -> Decimal:
        return sum((self.value_of(c) for c in BASE_CATEGORIES), ZERO)

    @property
    def add_on_value(self) -> Decimal:
        return sum((self.value_of(c) for c in ADD_ON_CATEGORIES), ZERO)

    @property
    def input_value(self) -> Decimal:
        """Sum of the eleven base and add-on category values."""
        return self.base_value + self.add_on_value

    @property
    def value(self) -> Decimal:
        """Discipline value: the DISCIPLINE TOTALS row when present, else the inputs."""
        totals = self.categories.get(CostCategory.DISCIPLINE_TOTALS)
        return totals.value if totals else self.input_value

    @property
    def cost_per_hour(self) -> Decimal:
        """Labor value per labor hour (0 without hours)."""
        hours = self.manhours
        if hours == 0:
            return ZERO
        labor = self.value_of(CostCategory.DIRECT_LABOR) + self.value_of(CostCategory.INDIRECT_LABOR)
        return labor / hours

    def to_dict(self) -> dict:
        return {
            "discipline": self.discipline,
            "discipline_number": self.discipline_number,
            "start_row": self.start_row,
            "manhours": self.manhours,
            "value": self.value,
            "cost_per_hour": self.cost_per_hour,
            "categories": {
                category.value: {
                    "label": f.label,
                    "manhours": f.manhours,
                    "value": f.value,
                    "percentage": f.percentage,
                }
                for category, f in self.categories.items()
            },
            "passthrough": [
                {"label": p.label, "row": p.row, "value": p.figures.value}
                for p in self.passthrough
            ],
        }
