"""
Tests for the budget-import command line.
"""
import json

import pandas as pd
import pytest
from click.testing import CliRunner

from budget_import.cli import cli
from budget_import.modules.etl import load_workbook, sheet_to_dataframe

from conftest import DIRECTS_ROWS, budgets_rows


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workbook_path(tmp_path, electrical_block_rows):
    """An .xlsx with a BUDGETS sheet and a DIRECTS detail sheet."""
    path = tmp_path / "estimate.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(budgets_rows(electrical_block_rows)).to_excel(
            writer, sheet_name="BUDGETS", header=False, index=False)
        pd.DataFrame(DIRECTS_ROWS).to_excel(
            writer, sheet_name="DIRECTS", header=False, index=False)
    return path


class TestLoadWorkbook:
    """Reading .xlsx files into a Workbook."""

    def test_sheets_in_order(self, workbook_path):
        workbook = load_workbook(workbook_path)
        assert workbook.sheet_names == ("BUDGETS", "DIRECTS")
        assert workbook.sheets["BUDGETS"].text(0, 0) == "ESTIMATE SUMMARY"
        assert workbook.sheets["BUDGETS"].text(1, 1) == "ELECTRICAL"
        assert workbook.sheets["DIRECTS"].text(0, 6) == "Total Cost"

    def test_sheet_to_dataframe(self, workbook_path):
        """Test the raw frame keeps spreadsheet row positions."""
        frame = sheet_to_dataframe(load_workbook(workbook_path), "directs")
        assert frame.shape[0] == 5
        assert frame.iloc[1, 1] == "Site Preparation"
        assert frame.iloc[3, 0] is None

    def test_sheet_to_dataframe_unknown_sheet(self, workbook_path):
        assert sheet_to_dataframe(load_workbook(workbook_path), "SUBS").empty


class TestAnalyzeCommand:
    """Tests for `budget-import analyze`."""

    def test_summary(self, runner, workbook_path):
        result = runner.invoke(cli, ["analyze", str(workbook_path)])
        assert result.exit_code == 0, result.output
        assert "Grand total:     $100,000.00" in result.output
        assert "01.01" in result.output
        assert "No issues found" in result.output

    def test_json(self, runner, workbook_path):
        result = runner.invoke(cli, ["analyze", str(workbook_path), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["totals"]["grand_total"] == 100000.0
        assert data["wbs_structure"][0]["code"] == "01"
        assert len(data["line_items"]["DIRECTS"]) == 2

    def test_output_file(self, runner, workbook_path, tmp_path):
        target = tmp_path / "result.json"
        result = runner.invoke(cli, ["analyze", str(workbook_path), "--output", str(target)])
        assert result.exit_code == 0, result.output
        data = json.loads(target.read_text())
        assert data["validation"]["errors"] == []

    def test_custom_mappings_file(self, runner, workbook_path, tmp_path):
        mappings = tmp_path / "mappings.yaml"
        mappings.write_text("DIRECTS:\n  wbs: 10\n")
        result = runner.invoke(cli, ["analyze", str(workbook_path), "--mappings", str(mappings)])
        assert result.exit_code == 0, result.output
        assert "Errors (1)" in result.output
        assert "field 'wbs'" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["analyze", str(tmp_path / "nope.xlsx")])
        assert result.exit_code != 0


class TestValidateMappingCommand:
    """Tests for `budget-import validate-mapping`."""

    def test_valid(self, runner):
        result = runner.invoke(cli, ["validate-mapping", "DIRECTS", "7", "--map", "wbs=0", "--map", "total=6"])
        assert result.exit_code == 0
        assert "Mapping is valid" in result.output

    def test_invalid(self, runner):
        result = runner.invoke(cli, ["validate-mapping", "DIRECTS", "7", "--map", "wbs=10"])
        assert result.exit_code == 1
        assert "invalid column index 10" in result.output

    def test_bad_pair(self, runner):
        result = runner.invoke(cli, ["validate-mapping", "DIRECTS", "7", "--map", "wbs"])
        assert result.exit_code != 0


class TestShowSheetCommand:
    """Tests for `budget-import show-sheet`."""

    def test_prints_grid(self, runner, workbook_path):
        result = runner.invoke(cli, ["show-sheet", str(workbook_path), "directs", "--rows", "2"])
        assert result.exit_code == 0, result.output
        assert "directs: 5 rows x 7 columns" in result.output
        assert "Site Preparation" in result.output
        assert "Foundation Work" not in result.output

    def test_unknown_sheet(self, runner, workbook_path):
        result = runner.invoke(cli, ["show-sheet", str(workbook_path), "SUBS"])
        assert result.exit_code == 1
        assert "Sheet 'SUBS' not found" in result.output
