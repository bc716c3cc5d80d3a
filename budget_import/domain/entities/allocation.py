"""
Discipline Allocation Entity - Six base buckets after add-on redistribution.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from .categories import CostCategory, BASE_CATEGORIES
from .discipline_block import UnrecognizedCategory

ZERO = Decimal("0")


@dataclass(frozen=True)
class BucketTotal:
    """Post-allocation value and extracted manhours of one base category."""
    value: Decimal = ZERO
    manhours: Decimal = ZERO


@dataclass(frozen=True)
class UnallocatedAmount:
    """Add-on money that could not be split (zero denominator)."""
    category: CostCategory
    amount: Decimal
    reason: str


@dataclass
class DisciplineAllocationBuilder:
    """
    Mutable accumulator for one discipline's six base buckets.

    Values start at the block's base figures; add-on shares are added
    with add(). Manhours are set once and never moved.
    """
    discipline: str
    direct_labor: Decimal = ZERO
    indirect_labor: Decimal = ZERO
    materials: Decimal = ZERO
    equipment: Decimal = ZERO
    subcontracts: Decimal = ZERO
    small_tools: Decimal = ZERO
    manhours: Dict[CostCategory, Decimal] = field(default_factory=dict)
    allocated: Dict[CostCategory, Dict[CostCategory, Decimal]] = field(default_factory=dict)
    unallocated: List[UnallocatedAmount] = field(default_factory=list)

    def get(self, category: CostCategory) -> Decimal:
        return getattr(self, BUCKET_FIELDS[category])

    def add(self, category: CostCategory, amount: Decimal, source: Optional[CostCategory] = None) -> None:
        name = BUCKET_FIELDS[category]
        setattr(self, name, getattr(self, name) + amount)
        if source is not None:
            shares = self.allocated.setdefault(source, {})
            shares[category] = shares.get(category, ZERO) + amount

    def leave_unallocated(self, category: CostCategory, amount: Decimal, reason: str) -> None:
        self.unallocated.append(UnallocatedAmount(category, amount, reason))

    def build(
        self,
        base_snapshot: Dict[CostCategory, Decimal],
        add_ons: Dict[CostCategory, Decimal],
        passthrough: Optional[List[UnrecognizedCategory]] = None,
        warnings: Optional[List[str]] = None,
    ) -> "DisciplineAllocation":
        buckets = {
            category: BucketTotal(
                value=self.get(category),
                manhours=self.manhours.get(category, ZERO),
            )
            for category in BASE_CATEGORIES
        }
        return DisciplineAllocation(
            discipline=self.discipline,
            buckets=buckets,
            base_snapshot=dict(base_snapshot),
            add_ons=dict(add_ons),
            allocated={k: dict(v) for k, v in self.allocated.items()},
            unallocated=list(self.unallocated),
            passthrough=list(passthrough or []),
            warnings=list(warnings or []),
        )


BUCKET_FIELDS = {
    CostCategory.DIRECT_LABOR: "direct_labor",
    CostCategory.INDIRECT_LABOR: "indirect_labor",
    CostCategory.MATERIALS: "materials",
    CostCategory.EQUIPMENT: "equipment",
    CostCategory.SUBCONTRACTS: "subcontracts",
    CostCategory.SMALL_TOOLS: "small_tools",
}


@dataclass(frozen=True)
class DisciplineAllocation:
    """
    Allocated totals for one discipline.

    Attributes:
        discipline: Discipline name
        buckets: Base category -> post-allocation value and manhours
        base_snapshot: Base values before any add-on was spread
        add_ons: Add-on category -> amount read from the block
        allocated: Add-on category -> (base category -> share received)
        unallocated: Add-on amounts left unspread
        passthrough: Unrecognized rows carried for reporting only
        warnings: Data-quality findings raised during allocation
    """
    discipline: str
    buckets: Dict[CostCategory, BucketTotal]
    base_snapshot: Dict[CostCategory, Decimal] = field(default_factory=dict)
    add_ons: Dict[CostCategory, Decimal] = field(default_factory=dict)
    allocated: Dict[CostCategory, Dict[CostCategory, Decimal]] = field(default_factory=dict)
    unallocated: List[UnallocatedAmount] = field(default_factory=list)
    passthrough: List[UnrecognizedCategory] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def bucket(self, category: CostCategory) -> BucketTotal:
        return self.buckets.get(category, BucketTotal())

    def value(self, category: CostCategory) -> Decimal:
        return self.bucket(category).value

    def items(self) -> List[Tuple[CostCategory, BucketTotal]]:
        """Buckets in base category order."""
        return [(c, self.bucket(c)) for c in BASE_CATEGORIES]

    @property
    def total_value(self) -> Decimal:
        return sum((b.value for b in self.buckets.values()), ZERO)

    @property
    def total_manhours(self) -> Decimal:
        return sum((b.manhours for b in self.buckets.values()), ZERO)

    @property
    def labor_manhours(self) -> Decimal:
        return (
            self.bucket(CostCategory.DIRECT_LABOR).manhours
            + self.bucket(CostCategory.INDIRECT_LABOR).manhours
        )

    @property
    def unallocated_total(self) -> Decimal:
        return sum((u.amount for u in self.unallocated), ZERO)

    def received_add_ons(self, category: CostCategory) -> bool:
        """Whether any add-on share landed in this base category."""
        return any(
            shares.get(category, ZERO) != 0 for shares in self.allocated.values()
        )

    def percentages(self, places: int = 2) -> Dict[str, float]:
        """Share of each bucket in the discipline total, for diagnostics."""
        total = self.total_value
        if total == 0:
            return {c.value: 0.0 for c in BASE_CATEGORIES}
        return {
            c.value: round(float(self.value(c) / total) * 100, places)
            for c in BASE_CATEGORIES
        }

    def to_dict(self) -> dict:
        return {
            "discipline": self.discipline,
            "buckets": {
                c.value: {"value": b.value, "manhours": b.manhours}
                for c, b in self.items()
            },
            "total_value": self.total_value,
            "allocated": {
                source.value: {target.value: amount for target, amount in shares.items()}
                for source, shares in self.allocated.items()
            },
            "unallocated": [
                {"category": u.category.value, "amount": u.amount, "reason": u.reason}
                for u in self.unallocated
            ],
        }
