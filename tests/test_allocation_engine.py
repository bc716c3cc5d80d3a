"""
Tests for add-on allocation across the six base buckets.
"""
import pytest
from decimal import Decimal

from budget_import.domain.entities import (
    BASE_CATEGORIES,
    CategoryFigures,
    CostCategory,
    DisciplineBlock,
    TransformationLog,
)
from budget_import.domain.services.allocation_engine import AllocationEngine, proportional_weights


def make_block(name="ELECTRICAL", values=None, hours=None):
    """DisciplineBlock from category -> value (and optional manhours)."""
    hours = hours or {}
    block = DisciplineBlock(discipline=name)
    for category, value in (values or {}).items():
        block.categories[category] = CategoryFigures(
            label=category.value,
            value=Decimal(str(value)),
            manhours=Decimal(str(hours.get(category, 0))),
        )
    return block


ELECTRICAL = {
    CostCategory.DIRECT_LABOR: 50000,
    CostCategory.INDIRECT_LABOR: 10000,
    CostCategory.MATERIALS: 20000,
    CostCategory.EQUIPMENT: 5000,
    CostCategory.SUBCONTRACTS: 8000,
    CostCategory.SMALL_TOOLS: 2000,
    CostCategory.TAXES_INSURANCE: 3000,
    CostCategory.PERDIEM: 1000,
    CostCategory.ADD_ONS: 500,
    CostCategory.SCAFFOLDING: 300,
    CostCategory.RISK: 200,
    CostCategory.ALL_LABOR: 60000,
    CostCategory.DISCIPLINE_TOTALS: 100000,
}

TOLERANCE = Decimal("0.00001")


@pytest.fixture
def engine():
    return AllocationEngine()


class TestElectricalScenario:
    """The reference ELECTRICAL discipline."""

    def test_grand_total_exact(self, engine):
        """Test the eleven inputs sum to exactly 100000 after allocation."""
        allocation = engine.allocate(make_block(values=ELECTRICAL))
        assert allocation.total_value == Decimal("100000")
        assert allocation.unallocated == []

    def test_subcontracts(self, engine):
        """Test SUBCONTRACTS gets scaffolding plus its risk share."""
        allocation = engine.allocate(make_block(values=ELECTRICAL))
        expected = Decimal("8000") + Decimal("300") + Decimal("200") * Decimal("8000") / Decimal("95000")
        assert abs(allocation.value(CostCategory.SUBCONTRACTS) - expected) < TOLERANCE

    def test_labor_buckets(self, engine):
        """Test T&I and per diem split 5:1, add-ons go to indirect."""
        allocation = engine.allocate(make_block(values=ELECTRICAL))
        risk_direct = Decimal("200") * Decimal("50000") / Decimal("95000")
        risk_indirect = Decimal("200") * Decimal("10000") / Decimal("95000")

        direct = Decimal("50000") + Decimal("2500") + Decimal("1000") * 5 / 6 + risk_direct
        indirect = Decimal("10000") + Decimal("500") + Decimal("1000") / 6 + Decimal("500") + risk_indirect
        assert abs(allocation.value(CostCategory.DIRECT_LABOR) - direct) < TOLERANCE
        assert abs(allocation.value(CostCategory.INDIRECT_LABOR) - indirect) < TOLERANCE

    def test_derived_rows_ignored(self, engine):
        """Test ALL LABOR and DISCIPLINE TOTALS never feed allocation."""
        values = dict(ELECTRICAL)
        values[CostCategory.ALL_LABOR] = 999999
        values[CostCategory.DISCIPLINE_TOTALS] = 1
        allocation = engine.allocate(make_block(values=values))
        assert allocation.total_value == Decimal("100000")


class TestConservation:
    """Allocation neither creates nor loses money."""

    @pytest.mark.parametrize("values", [
        ELECTRICAL,
        {CostCategory.DIRECT_LABOR: "1234.57", CostCategory.RISK: "0.01", CostCategory.PERDIEM: "33.33"},
        {CostCategory.MATERIALS: 10, CostCategory.EQUIPMENT: 3, CostCategory.RISK: "100.000001"},
        {CostCategory.DIRECT_LABOR: 7, CostCategory.INDIRECT_LABOR: 3, CostCategory.TAXES_INSURANCE: "-10"},
    ])
    def test_sum_preserved(self, engine, values):
        block = make_block(values=values)
        allocation = engine.allocate(block)
        expected = block.base_value + block.add_on_value - allocation.unallocated_total
        assert allocation.total_value == expected

    def test_unallocated_excluded(self, engine):
        """Test zero-denominator amounts are the only money not placed."""
        block = make_block(values={
            CostCategory.MATERIALS: 1000,
            CostCategory.TAXES_INSURANCE: 50,
            CostCategory.PERDIEM: 25,
        })
        allocation = engine.allocate(block)
        assert allocation.unallocated_total == Decimal("75")
        assert allocation.total_value == Decimal("1000")


class TestAllocationTargeting:
    """Fixed targets of ADD ONS and SCAFFOLDING."""

    def test_add_ons_only_to_indirect(self, engine):
        values = {c: 1000 for c in BASE_CATEGORIES}
        values[CostCategory.ADD_ONS] = 600
        allocation = engine.allocate(make_block(values=values))
        for category in BASE_CATEGORIES:
            expected = Decimal("1600") if category is CostCategory.INDIRECT_LABOR else Decimal("1000")
            assert allocation.value(category) == expected
        assert allocation.allocated[CostCategory.ADD_ONS] == {CostCategory.INDIRECT_LABOR: Decimal("600")}

    def test_scaffolding_only_to_subcontracts(self, engine):
        values = {c: 1000 for c in BASE_CATEGORIES}
        values[CostCategory.SCAFFOLDING] = 250
        allocation = engine.allocate(make_block(values=values))
        for category in BASE_CATEGORIES:
            expected = Decimal("1250") if category is CostCategory.SUBCONTRACTS else Decimal("1000")
            assert allocation.value(category) == expected

    def test_add_ons_with_zero_indirect_base(self, engine):
        """Test fixed targets need no base value."""
        allocation = engine.allocate(make_block(values={CostCategory.ADD_ONS: 500}))
        assert allocation.value(CostCategory.INDIRECT_LABOR) == Decimal("500")
        assert allocation.unallocated == []


class TestProportionality:
    """Proportional splits of RISK, T&I and PERDIEM."""

    @pytest.mark.parametrize("category", BASE_CATEGORIES)
    def test_risk_to_single_base(self, engine, category):
        """Test 100% of RISK goes to the only non-zero base."""
        allocation = engine.allocate(make_block(values={category: 4000, CostCategory.RISK: 321}))
        assert allocation.value(category) == Decimal("4321")
        for other in BASE_CATEGORIES:
            if other is not category:
                assert allocation.value(other) == Decimal("0")

    def test_taxes_to_direct_only(self, engine):
        """Test T&I with no indirect base all goes to direct labor."""
        allocation = engine.allocate(make_block(values={
            CostCategory.DIRECT_LABOR: 40000,
            CostCategory.TAXES_INSURANCE: 2000,
        }))
        assert allocation.value(CostCategory.DIRECT_LABOR) == Decimal("42000")
        assert allocation.value(CostCategory.INDIRECT_LABOR) == Decimal("0")

    def test_no_cascading(self, engine):
        """Test RISK proportions use the pre-allocation snapshot."""
        allocation = engine.allocate(make_block(values={
            CostCategory.DIRECT_LABOR: 1000,
            CostCategory.MATERIALS: 1000,
            CostCategory.TAXES_INSURANCE: 1000,
            CostCategory.RISK: 100,
        }))
        # a running base would give direct labor 2/3 of RISK
        assert allocation.allocated[CostCategory.RISK][CostCategory.DIRECT_LABOR] == Decimal("50")
        assert allocation.allocated[CostCategory.RISK][CostCategory.MATERIALS] == Decimal("50")

    def test_manhours_untouched(self, engine):
        """Test only values move."""
        block = make_block(
            values=ELECTRICAL,
            hours={CostCategory.DIRECT_LABOR: 800, CostCategory.INDIRECT_LABOR: 200},
        )
        allocation = engine.allocate(block)
        assert allocation.bucket(CostCategory.DIRECT_LABOR).manhours == Decimal("800")
        assert allocation.bucket(CostCategory.INDIRECT_LABOR).manhours == Decimal("200")
        assert allocation.total_manhours == Decimal("1000")

    def test_proportional_weights_guarded(self):
        """Test zero denominators give zero weights, never NaN."""
        snapshot = {c: Decimal("0") for c in BASE_CATEGORIES}
        assert proportional_weights(snapshot, BASE_CATEGORIES) == [0.0] * 6
        snapshot[CostCategory.MATERIALS] = Decimal("-5")
        assert proportional_weights(snapshot, BASE_CATEGORIES) == [0.0] * 6


class TestZeroDenominator:
    """Add-ons that cannot be split."""

    def test_taxes_without_labor(self, engine):
        """Test T&I with no labor base is left unallocated with a warning."""
        log = TransformationLog()
        allocation = engine.allocate(make_block(
            name="CIVIL",
            values={CostCategory.MATERIALS: 500, CostCategory.TAXES_INSURANCE: 80},
        ), log)
        assert len(allocation.unallocated) == 1
        assert allocation.unallocated[0].category is CostCategory.TAXES_INSURANCE
        assert allocation.unallocated[0].amount == Decimal("80")
        assert len(allocation.warnings) == 1
        assert "CIVIL" in allocation.warnings[0]
        assert "TAXES & INSURANCE" in allocation.warnings[0]
        assert len(log.steps("unallocated")) == 1

    def test_risk_without_any_base(self, engine):
        """Test RISK on an empty discipline."""
        allocation = engine.allocate(make_block(values={CostCategory.RISK: 10}))
        assert allocation.total_value == Decimal("0")
        assert "RISK" in allocation.warnings[0]


class TestDiagnostics:
    """Percentages and passthrough."""

    def test_percentages(self, engine):
        allocation = engine.allocate(make_block(values={
            CostCategory.DIRECT_LABOR: 1,
            CostCategory.MATERIALS: 2,
        }))
        percentages = allocation.percentages()
        assert percentages["DIRECT LABOR"] == 33.33
        assert percentages["MATERIALS"] == 66.67

    def test_percentages_of_empty_discipline(self, engine):
        allocation = engine.allocate(make_block(values={}))
        assert set(allocation.percentages().values()) == {0.0}

    def test_allocate_all(self, engine):
        blocks = [make_block("A", {CostCategory.MATERIALS: 1}), make_block("B", {CostCategory.EQUIPMENT: 2})]
        allocations = engine.allocate_all(blocks)
        assert [a.discipline for a in allocations] == ["A", "B"]
