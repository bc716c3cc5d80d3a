#!/usr/bin/env python3
"""
CLI for the budget workbook importer.

Usage:
    budget-import analyze budget.xlsx
    budget-import analyze budget.xlsx --mappings mappings.yaml --json --output result.json
    budget-import validate-mapping DIRECTS 7 --map wbs=0 --map total=6
    budget-import show-sheet budget.xlsx DIRECTS --rows 20

Commands:
    analyze            Analyze a workbook and print totals, WBS and findings
    validate-mapping   Check a column mapping against a sheet width
    show-sheet         Print the raw grid of one sheet
"""
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import click
import yaml

from . import __version__
from .config import BudgetImportConfig, ConfigurationError
from .domain.services.column_mapper import validate_mapping
from .modules.budget_analyzer import BudgetAnalyzer
from .modules.etl import load_workbook, sheet_to_dataframe

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _load_mappings(path: str) -> dict:
    """Read sheet -> role -> column index overrides from a YAML or JSON file."""
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise click.BadParameter("mappings file must contain a sheet -> mapping object")
    mappings = {}
    for sheet, mapping in data.items():
        if not isinstance(mapping, dict):
            raise click.BadParameter(f"mapping for sheet '{sheet}' must be an object")
        mappings[str(sheet)] = {str(role): index for role, index in mapping.items()}
    return mappings


@click.group()
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Show debug logging')
def cli(verbose: bool):
    """Construction budget workbook importer.

    Detects headers, reads BUDGETS discipline blocks, spreads add-on
    costs over the base cost buckets and builds the WBS.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.argument('workbook', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--mappings',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='YAML/JSON file of custom column mappings (sheet -> role -> index)'
)
@click.option(
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to an alternative budget_import_config.yaml'
)
@click.option('--json', 'as_json', is_flag=True, help='Print the full result as JSON')
@click.option('--output', default=None, help='Write the full JSON result to this file')
def analyze(workbook: str, mappings: str, config_path: str, as_json: bool, output: str):
    """Analyze a budget workbook without saving anything."""
    try:
        config = BudgetImportConfig(Path(config_path)) if config_path else None
        analyzer = BudgetAnalyzer(config=config)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    custom = _load_mappings(mappings) if mappings else None
    result = analyzer.analyze(load_workbook(workbook), custom_mappings=custom)
    payload = json.dumps(result.to_dict(), indent=2, default=_json_default)

    if output:
        Path(output).write_text(payload)
        click.echo(f"Result written to {output}")

    if as_json:
        click.echo(payload)
        return

    totals = result.totals
    click.echo(click.style("\nBudget Totals", bold=True))
    click.echo(f"  Grand total:     ${totals.grand_total:,.2f}")
    for category, amount in totals.by_category.items():
        click.echo(f"  {category:<28} ${amount:,.2f}")
    click.echo(f"  Labor hours:     {totals.total_manhours:,.1f}")

    if len(result.wbs_structure):
        click.echo(click.style("\nWBS", bold=True))
        for node in result.wbs_structure.flatten():
            indent = "  " * node.level
            click.echo(f"{indent}{node.code}  {node.description:<30} ${node.budget_total:,.2f}")

    click.echo(click.style("\nLine items", bold=True))
    for sheet, items in result.line_items.items():
        click.echo(f"  {sheet}: {len(items)}")

    validation = result.validation
    if validation.errors:
        click.echo(click.style(f"\nErrors ({len(validation.errors)})", fg='red'))
        for message in validation.errors:
            click.echo(f"  - {message}")
    if validation.warnings:
        click.echo(click.style(f"\nWarnings ({len(validation.warnings)})", fg='yellow'))
        for message in validation.warnings:
            click.echo(f"  - {message}")
    if not validation.errors and not validation.warnings:
        click.echo(click.style("\nNo issues found", fg='green'))


@cli.command('validate-mapping')
@click.argument('sheet')
@click.argument('width', type=int)
@click.option('--map', 'pairs', multiple=True, required=True, help='role=index, repeatable')
def validate_mapping_command(sheet: str, width: int, pairs: tuple):
    """Check a custom column mapping against a sheet width."""
    mapping = {}
    for pair in pairs:
        role, sep, index = pair.partition('=')
        if not sep:
            raise click.BadParameter(f"expected role=index, got '{pair}'")
        try:
            mapping[role.strip()] = int(index)
        except ValueError:
            raise click.BadParameter(f"column index for '{role}' must be an integer")

    result = validate_mapping(sheet, mapping, width)
    if result.valid:
        click.echo(click.style("Mapping is valid", fg='green'))
        return

    click.echo(click.style("Mapping is invalid:", fg='red'))
    for issue in result.issues:
        click.echo(f"  - {issue}")
    raise SystemExit(1)


@cli.command('show-sheet')
@click.argument('workbook', type=click.Path(exists=True, dir_okay=False))
@click.argument('sheet')
@click.option('--rows', default=20, show_default=True, help='Number of rows to print')
def show_sheet(workbook: str, sheet: str, rows: int):
    """Print the raw cells of one sheet (row 0 is Excel row 1)."""
    frame = sheet_to_dataframe(load_workbook(workbook), sheet)
    if frame.empty:
        raise click.ClickException(f"Sheet '{sheet}' not found or empty")

    click.echo(click.style(f"{sheet}: {len(frame)} rows x {len(frame.columns)} columns", bold=True))
    click.echo(frame.head(rows).fillna("").to_string())


if __name__ == '__main__':
    cli()
