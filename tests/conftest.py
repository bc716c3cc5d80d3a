"""
Shared workbook builders for the importer tests.
"""
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from budget_import.domain.entities import Workbook

TEMPLATE_LABELS = [
    "DIRECT LABOR",
    "INDIRECT LABOR",
    "ALL LABOR",
    "TAXES & INSURANCE",
    "PERDIEM",
    "ADD ONS",
    "SMALL TOOLS & CONSUMABLES",
    "MATERIALS",
    "EQUIPMENT",
    "SUBCONTRACTS",
    "RISK",
    "DISCIPLINE TOTALS",
]

# Scaffolding takes the ALL LABOR slot in this estimate
ELECTRICAL_LABELS = [
    "SCAFFOLDING" if label == "ALL LABOR" else label for label in TEMPLATE_LABELS
]

ELECTRICAL_VALUES = {
    "DIRECT LABOR": 50000,
    "INDIRECT LABOR": 10000,
    "SCAFFOLDING": 300,
    "TAXES & INSURANCE": 3000,
    "PERDIEM": 1000,
    "ADD ONS": 500,
    "SMALL TOOLS & CONSUMABLES": 2000,
    "MATERIALS": 20000,
    "EQUIPMENT": 5000,
    "SUBCONTRACTS": 8000,
    "RISK": 200,
    "DISCIPLINE TOTALS": 100000,
}

ELECTRICAL_HOURS = {
    "DIRECT LABOR": 800,
    "INDIRECT LABOR": 200,
}


def discipline_block(number, name, values, hours=None, labels=None):
    """Twelve template rows for one discipline (columns A-G)."""
    hours = hours or {}
    labels = labels or TEMPLATE_LABELS
    rows = []
    for offset, label in enumerate(labels):
        rows.append([
            number if offset == 0 else None,
            name if offset == 0 else None,
            None,
            label,
            hours.get(label, 0),
            values.get(label, 0),
            None,
        ])
    return rows


def budgets_rows(*blocks):
    """A BUDGETS sheet: title row followed by the given blocks."""
    rows = [["ESTIMATE SUMMARY", None, None, None, None, None, None]]
    for block in blocks:
        rows.extend(block)
    return rows


def input_rows(disciplines):
    """
    An INPUT sheet with the discipline list in AG (flag) / AH (name).

    Args:
        disciplines: list of (name, flag) pairs
    """
    rows = [[None] * 34 for _ in range(3)]
    rows[0][0] = "PROJECT INPUTS"
    for name, flag in disciplines:
        row = [None] * 34
        row[32] = flag
        row[33] = name
        rows.append(row)
    return rows


DIRECTS_ROWS = [
    ["WBS Code", "Description", "Quantity", "Unit", "Rate", "Hours", "Total Cost"],
    ["01-100", "Site Preparation", 100, "EA", 50, 200, 5000],
    ["01-200", "Foundation Work", 200, "CY", 150, 400, 30000],
    [None, None, None, None, None, None, None],
    ["Total", "", "", "", "", "", 35000],
]


@pytest.fixture
def electrical_block_rows():
    return discipline_block(1, "ELECTRICAL", ELECTRICAL_VALUES, ELECTRICAL_HOURS, ELECTRICAL_LABELS)


@pytest.fixture
def electrical_workbook(electrical_block_rows):
    return Workbook.from_rows({"BUDGETS": budgets_rows(electrical_block_rows)})


@pytest.fixture
def directs_workbook():
    return Workbook.from_rows({"DIRECTS": DIRECTS_ROWS})


@pytest.fixture
def full_workbook():
    """INPUT + BUDGETS + DIRECTS, three disciplines in two groups."""
    piping = {
        "DIRECT LABOR": 40000,
        "INDIRECT LABOR": 0,
        "MATERIALS": 10000,
        "TAXES & INSURANCE": 2000,
        "RISK": 500,
        "DISCIPLINE TOTALS": 52500,
    }
    steel = {
        "DIRECT LABOR": 30000,
        "INDIRECT LABOR": 10000,
        "EQUIPMENT": 4000,
        "ADD ONS": 1000,
        "DISCIPLINE TOTALS": 45000,
    }
    return Workbook.from_rows({
        "INPUT": input_rows([
            ("FABRICATION", 0),
            ("PIPING", 1),
            ("ELECTRICAL", 1),
            ("STEEL", 1),
        ]),
        "BUDGETS": budgets_rows(
            discipline_block(1, "PIPING", piping, {"DIRECT LABOR": 500}),
            discipline_block(2, "ELECTRICAL", ELECTRICAL_VALUES, ELECTRICAL_HOURS, ELECTRICAL_LABELS),
            discipline_block(3, "STEEL", steel, {"DIRECT LABOR": 300, "INDIRECT LABOR": 100}),
        ),
        "DIRECTS": DIRECTS_ROWS,
    })
