"""
WBS Node Entity - Two-level Work Breakdown Structure.

Level 1 nodes are discipline groups, level 2 nodes are disciplines.
Parent totals are always the live sum of their children.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterator, List, Optional

from ..exceptions import WBSStructureError

ZERO = Decimal("0")


@dataclass(frozen=True)
class DisciplineGroup:
    """Ordered member disciplines of one top-level group."""
    name: str
    disciplines: tuple = ()


@dataclass
class WBSNode:
    """
    Node in the WBS tree.

    Attributes:
        code: '01' for level 1, '01.02' for level 2
        parent_code: Code of the level 1 parent (None at level 1)
        level: 1 or 2
        description: Group name (level 1) or discipline (level 2)
        discipline: Discipline name on leaves
        children: Ordered child nodes
    """
    code: str
    level: int
    description: str
    parent_code: Optional[str] = None
    discipline: Optional[str] = None
    children: List["WBSNode"] = field(default_factory=list)
    _budget_total: Decimal = ZERO
    _manhours_total: Decimal = ZERO
    _material_cost: Decimal = ZERO

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def budget_total(self) -> Decimal:
        if self.children:
            return sum((c.budget_total for c in self.children), ZERO)
        return self._budget_total

    @property
    def manhours_total(self) -> Decimal:
        if self.children:
            return sum((c.manhours_total for c in self.children), ZERO)
        return self._manhours_total

    @property
    def material_cost(self) -> Decimal:
        if self.children:
            return sum((c.material_cost for c in self.children), ZERO)
        return self._material_cost

    def set_totals(self, budget_total: Decimal, manhours_total: Decimal, material_cost: Decimal) -> None:
        """Assign a leaf's own totals."""
        if self.children:
            raise WBSStructureError(self.code)
        self._budget_total = budget_total
        self._manhours_total = manhours_total
        self._material_cost = material_cost

    def add_child(self, child: "WBSNode") -> None:
        self.children.append(child)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "parent_code": self.parent_code,
            "level": self.level,
            "description": self.description,
            "discipline": self.discipline,
            "budget_total": self.budget_total,
            "manhours_total": self.manhours_total,
            "material_cost": self.material_cost,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class WBSTree:
    """Ordered level 1 roots with leaf lookup by discipline."""
    roots: List[WBSNode] = field(default_factory=list)

    def __iter__(self) -> Iterator[WBSNode]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def leaves(self) -> List[WBSNode]:
        return [child for root in self.roots for child in root.children]

    def find_leaf(self, discipline: str) -> Optional[WBSNode]:
        """Find the level 2 node for a discipline (case-insensitive)."""
        wanted = discipline.strip().upper()
        for leaf in self.leaves():
            if leaf.discipline and leaf.discipline.strip().upper() == wanted:
                return leaf
        return None

    def flatten(self) -> List[WBSNode]:
        """Nodes in persistence order: each parent followed by its children."""
        nodes = []
        for root in self.roots:
            nodes.append(root)
            nodes.extend(root.children)
        return nodes

    @property
    def budget_total(self) -> Decimal:
        return sum((r.budget_total for r in self.roots), ZERO)

    def to_list(self) -> List[dict]:
        return [r.to_dict() for r in self.roots]
