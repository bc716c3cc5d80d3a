"""
WBS Builder - Two-level tree from discipline groups.

Groups become level 1 nodes coded 01, 02, ...; member disciplines become
level 2 nodes coded 01.01, 01.02, ... Leaves start at zero until an
allocation is attached.
"""
from typing import Iterable
import logging

from ..entities.allocation import DisciplineAllocation
from ..entities.categories import CostCategory
from ..entities.wbs_node import DisciplineGroup, WBSNode, WBSTree

logger = logging.getLogger(__name__)


class WBSBuilder:
    """Assigns sequential codes in group encounter order."""

    def build(self, groups: Iterable[DisciplineGroup]) -> WBSTree:
        tree = WBSTree()
        for group_index, group in enumerate(groups, start=1):
            parent_code = f"{group_index:02d}"
            parent = WBSNode(
                code=parent_code,
                level=1,
                description=group.name.upper(),
            )
            for child_index, discipline in enumerate(group.disciplines, start=1):
                parent.add_child(WBSNode(
                    code=f"{parent_code}.{child_index:02d}",
                    level=2,
                    description=discipline,
                    parent_code=parent_code,
                    discipline=discipline,
                ))
            tree.roots.append(parent)

        logger.info(f"Built WBS with {len(tree.roots)} group(s) and {len(tree.leaves())} discipline(s)")
        return tree

    @staticmethod
    def attach(tree: WBSTree, allocation: DisciplineAllocation) -> bool:
        """
        Add an allocation onto its discipline leaf.

        Blocks sharing a discipline name land on the same leaf, so totals
        accumulate rather than replace.

        Returns:
            False when the tree has no leaf for the discipline
        """
        leaf = tree.find_leaf(allocation.discipline)
        if leaf is None:
            return False
        leaf.set_totals(
            budget_total=leaf.budget_total + allocation.total_value,
            manhours_total=leaf.manhours_total + allocation.labor_manhours,
            material_cost=leaf.material_cost + allocation.value(CostCategory.MATERIALS),
        )
        return True
