"""
Tests for discipline grouping and the WBS tree.
"""
import pytest
from decimal import Decimal

from budget_import.domain.entities import (
    BucketTotal,
    CostCategory,
    DisciplineAllocation,
    DisciplineGroup,
    Sheet,
)
from budget_import.domain.exceptions import WBSStructureError
from budget_import.domain.services.discipline_mapper import DisciplineMapper
from budget_import.domain.services.wbs_builder import WBSBuilder

from conftest import input_rows


def allocation(discipline, **values):
    buckets = {
        CostCategory.DIRECT_LABOR: BucketTotal(Decimal(values.get("direct", 0)), Decimal(values.get("hours", 0))),
        CostCategory.MATERIALS: BucketTotal(Decimal(values.get("materials", 0))),
    }
    return DisciplineAllocation(discipline=discipline, buckets=buckets)


class TestDisciplineMapper:
    """Tests for DisciplineMapper."""

    @pytest.fixture
    def mapper(self):
        return DisciplineMapper()

    def test_group_for(self, mapper):
        assert mapper.group_for("PIPING") == "Mechanical"
        assert mapper.group_for("I&E DEMO") == "I&E"
        assert mapper.group_for("GROUTING") == "Civil"
        assert mapper.group_for("HEAT TRACE") == "Heat Trace"
        assert mapper.group_for("I&E SUPPORT") == "I&E Support"

    def test_group_disciplines_encounter_order(self, mapper):
        groups = mapper.group_disciplines(["ELECTRICAL", "PIPING", "STEEL", "INSTRUMENTATION", "PIPING"])
        assert [g.name for g in groups] == ["I&E", "Mechanical"]
        assert groups[0].disciplines == ("ELECTRICAL", "INSTRUMENTATION")
        assert groups[1].disciplines == ("PIPING", "STEEL")

    def test_single_discipline_groups(self):
        groups = DisciplineMapper.single_discipline_groups(["PIPING", "CIVIL", "piping"])
        assert groups == [
            DisciplineGroup("PIPING", ("PIPING",)),
            DisciplineGroup("CIVIL", ("CIVIL",)),
        ]

    def test_extract_from_input(self, mapper):
        """Test flags in AG and names in AH from the FABRICATION row."""
        rows = input_rows([
            ("FABRICATION", 1),
            ("piping", 1),
            ("STEEL", 0),
            ("ELECTRICAL", "1"),
            (None, None),
            ("CIVIL", 1),
        ])
        sheet = Sheet.from_values("INPUT", rows)
        assert mapper.extract_disciplines_from_input(sheet) == ["FABRICATION", "PIPING", "ELECTRICAL"]

    def test_extract_without_anchor(self, mapper):
        sheet = Sheet.from_values("INPUT", input_rows([("PIPING", 1)]))
        assert mapper.extract_disciplines_from_input(sheet) == []


class TestWBSBuilder:
    """Tests for WBSBuilder."""

    @pytest.fixture
    def tree(self):
        return WBSBuilder().build([
            DisciplineGroup("Mechanical", ("PIPING", "STEEL")),
            DisciplineGroup("I&E", ("ELECTRICAL",)),
        ])

    def test_codes(self, tree):
        assert [n.code for n in tree.flatten()] == ["01", "01.01", "01.02", "02", "02.01"]

    def test_levels_and_parents(self, tree):
        mechanical = tree.roots[0]
        assert mechanical.level == 1
        assert mechanical.parent_code is None
        assert mechanical.description == "MECHANICAL"
        steel = mechanical.children[1]
        assert steel.level == 2
        assert steel.parent_code == "01"
        assert steel.discipline == "STEEL"
        assert steel.description == "STEEL"

    def test_leaves_start_at_zero(self, tree):
        for node in tree.flatten():
            assert node.budget_total == Decimal("0")
            assert node.manhours_total == Decimal("0")

    def test_roll_up(self, tree):
        """Test parent totals are the live sum of children."""
        WBSBuilder.attach(tree, allocation("PIPING", direct="100.25", materials="50", hours="10"))
        WBSBuilder.attach(tree, allocation("steel", direct="200", hours="4"))
        mechanical = tree.roots[0]
        assert mechanical.budget_total == Decimal("350.25")
        assert mechanical.manhours_total == Decimal("14")
        assert mechanical.material_cost == Decimal("50")

        WBSBuilder.attach(tree, allocation("STEEL", direct="1", hours="2"))
        assert mechanical.budget_total == Decimal("351.25")
        assert tree.find_leaf("STEEL").manhours_total == Decimal("6")
        for root in tree:
            assert root.budget_total == sum((c.budget_total for c in root.children), Decimal("0"))

    def test_attach_unknown_discipline(self, tree):
        assert WBSBuilder.attach(tree, allocation("CIVIL", direct="5")) is False

    def test_parent_totals_cannot_be_set(self, tree):
        with pytest.raises(WBSStructureError):
            tree.roots[0].set_totals(Decimal("1"), Decimal("0"), Decimal("0"))

    def test_unique_codes_many_groups(self):
        groups = [DisciplineGroup(f"G{i}", (f"D{i}a", f"D{i}b")) for i in range(12)]
        tree = WBSBuilder().build(groups)
        codes = [n.code for n in tree.flatten()]
        assert len(codes) == len(set(codes))
        assert tree.roots[11].code == "12"
        assert tree.roots[11].children[1].code == "12.02"

    def test_empty(self):
        assert len(WBSBuilder().build([])) == 0
