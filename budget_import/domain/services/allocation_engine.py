"""
Allocation Engine - Spreads add-on categories over the six base buckets.

Policy:
    ADD ONS           → INDIRECT LABOR
    SCAFFOLDING       → SUBCONTRACTS
    TAXES & INSURANCE → DIRECT / INDIRECT LABOR, by labor base value
    PERDIEM           → DIRECT / INDIRECT LABOR, by labor base value
    RISK              → all six base categories, by base value

Every proportional split reads the same pre-allocation snapshot, so the
order add-ons are applied in never changes the result. Only dollar
values move; manhours stay as extracted.
"""
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
import logging

from ...config import BudgetImportConfig, get_config
from ...modules.etl import split_amount
from ..entities.allocation import DisciplineAllocation, DisciplineAllocationBuilder
from ..entities.categories import CostCategory, ADD_ON_CATEGORIES, BASE_CATEGORIES
from ..entities.discipline_block import DisciplineBlock
from ..entities.transformation_log import TransformationLog

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

LABOR_BASES = (CostCategory.DIRECT_LABOR, CostCategory.INDIRECT_LABOR)

ALLOCATION_POLICY: Dict[CostCategory, Tuple[CostCategory, ...]] = {
    CostCategory.TAXES_INSURANCE: LABOR_BASES,
    CostCategory.PERDIEM: LABOR_BASES,
    CostCategory.ADD_ONS: (CostCategory.INDIRECT_LABOR,),
    CostCategory.SCAFFOLDING: (CostCategory.SUBCONTRACTS,),
    CostCategory.RISK: BASE_CATEGORIES,
}


def proportional_weights(snapshot: Dict[CostCategory, Decimal], targets: Tuple[CostCategory, ...]) -> List[float]:
    """
    Share of each target in the sum of the targets' base values.

    Non-positive base values weigh nothing. All zeros when the
    denominator is zero, never NaN.
    """
    values = [max(snapshot.get(t, ZERO), ZERO) for t in targets]
    denominator = float(sum(values, ZERO))
    if denominator <= 0:
        return [0.0] * len(targets)
    return [float(v) / denominator for v in values]


class AllocationEngine:
    """Applies the fixed add-on policy to discipline blocks."""

    def __init__(self, config: Optional[BudgetImportConfig] = None):
        self.config = config or get_config()
        self.quantum = self.config.allocation_quantum
        self.percentage_places = self.config.percentage_places

    def allocate(self, block: DisciplineBlock, log: Optional[TransformationLog] = None) -> DisciplineAllocation:
        """
        Redistribute one block's add-ons.

        Returns:
            DisciplineAllocation whose bucket values sum to the block's base
            plus add-on values, less anything left unallocated
        """
        log = log if log is not None else TransformationLog()
        discipline = block.discipline

        snapshot = {c: block.value_of(c) for c in BASE_CATEGORIES}
        add_ons = {c: block.value_of(c) for c in ADD_ON_CATEGORIES if block.value_of(c) != 0}

        builder = DisciplineAllocationBuilder(discipline=discipline)
        for category in BASE_CATEGORIES:
            builder.add(category, snapshot[category])
            builder.manhours[category] = block.manhours_of(category)

        warnings: List[str] = []
        for source in ADD_ON_CATEGORIES:
            amount = add_ons.get(source, ZERO)
            if amount == 0:
                continue

            targets = ALLOCATION_POLICY[source]
            if len(targets) == 1:
                builder.add(targets[0], amount, source=source)
                continue

            weights = proportional_weights(snapshot, targets)
            if not any(weights):
                message = (
                    f"Cannot allocate {source.value} of {amount} for discipline "
                    f"'{discipline}': base denominator is zero; amount left unallocated"
                )
                builder.leave_unallocated(source, amount, "zero denominator")
                warnings.append(message)
                log.record(
                    "unallocated",
                    message,
                    {"discipline": discipline, "category": source.value, "amount": float(amount)},
                )
                logger.warning(message)
                continue

            for target, share in zip(targets, split_amount(amount, weights, self.quantum)):
                if share != 0:
                    builder.add(target, share, source=source)

        allocation = builder.build(
            base_snapshot=snapshot,
            add_ons=add_ons,
            passthrough=block.passthrough,
            warnings=warnings,
        )

        percentages = allocation.percentages(self.percentage_places)
        log.record(
            "allocation_complete",
            f"Allocated add-ons for '{discipline}'",
            {
                "discipline": discipline,
                "total": float(allocation.total_value),
                "percentages": percentages,
                "unallocated": float(allocation.unallocated_total),
            },
        )
        logger.debug(f"{discipline}: bucket percentages {percentages}")
        return allocation

    def allocate_all(
        self,
        blocks: List[DisciplineBlock],
        log: Optional[TransformationLog] = None,
    ) -> List[DisciplineAllocation]:
        return [self.allocate(block, log) for block in blocks]
