"""
Configuration loader for the budget importer.

Header vocabularies, BUDGETS block layout, discipline rules and
allocation settings live in budget_import_config.yaml; this module
wraps them in typed accessors with in-code defaults.
"""
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional
from functools import lru_cache

import yaml


# Default config path inside the package
DEFAULT_CONFIG_PATH = Path(__file__).parent / "budget_import_config.yaml"


class ConfigurationError(Exception):
    """Config file missing, unreadable or holding invalid values."""
    pass


class BudgetImportConfig:
    """
    Configuration manager for the budget importer.

    Pass config_path to read an alternative file (the CLI --config flag);
    otherwise use get_config() for the shared instance.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Read and sanity-check the YAML file."""
        if not self._config_path.exists():
            raise ConfigurationError(f"Config file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r') as f:
                self._config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load()
        get_config.cache_clear()

    @property
    def version(self) -> str:
        """Configuration file version."""
        return self._config.get("version", "unknown")

    # =========================================================================
    # Header Detection
    # =========================================================================

    @property
    def header_detection(self) -> dict:
        """Header detection configuration."""
        return self._config.get("header_detection", {})

    @property
    def header_scan_depth(self) -> int:
        """Number of rows scanned for a header row."""
        return int(self.header_detection.get("scan_depth", 20))

    @property
    def header_min_roles(self) -> int:
        """Distinct roles a row needs before it counts as a header."""
        return int(self.header_detection.get("min_roles", 2))

    @property
    def header_scorer(self) -> str:
        """Name of the rapidfuzz scorer used for header matching."""
        return self.header_detection.get("scorer", "token_sort_ratio")

    @property
    def header_min_similarity(self) -> float:
        """Default minimum similarity (0-100) for a role match."""
        return float(self.header_detection.get("min_similarity", 80))

    def get_role_min_similarity(self, role: str) -> float:
        """
        Get the minimum similarity for a header role.

        Args:
            role: One of the header roles (e.g., 'wbs', 'total')
        """
        overrides = self.header_detection.get("role_min_similarity", {}) or {}
        return float(overrides.get(role, self.header_min_similarity))

    @property
    def role_vocabularies(self) -> dict[str, list[str]]:
        """Canonical header vocabulary per role, in role priority order."""
        return self.header_detection.get("roles", {})

    # =========================================================================
    # Discipline Blocks
    # =========================================================================

    @property
    def discipline_blocks(self) -> dict:
        """BUDGETS sheet block layout."""
        return self._config.get("discipline_blocks", {})

    @property
    def block_sheet_name(self) -> str:
        """Name of the sheet organized as discipline blocks."""
        return self.discipline_blocks.get("sheet_name", "BUDGETS")

    @property
    def block_size(self) -> int:
        """Rows per discipline block."""
        return int(self.discipline_blocks.get("block_size", 12))

    @property
    def first_block_row(self) -> Optional[int]:
        """0-based row of the first block, or None to locate it."""
        value = self.discipline_blocks.get("first_block_row")
        return int(value) if value is not None else None

    @property
    def block_header_label(self) -> str:
        """Category label found on the first row of every block."""
        return self.discipline_blocks.get("header_label", "DIRECT LABOR")

    @property
    def block_columns(self) -> dict[str, int]:
        """Column indices within a block row."""
        defaults = {
            "number": 0,
            "name": 1,
            "label": 3,
            "manhours": 4,
            "value": 5,
            "percentage": 6,
        }
        defaults.update(self.discipline_blocks.get("columns", {}) or {})
        return defaults

    @property
    def expected_block_labels(self) -> list[str]:
        """Category labels the template places at each block offset."""
        return self.discipline_blocks.get("expected_labels", [])

    @property
    def totals_tolerance(self) -> Decimal:
        """Allowed gap between DISCIPLINE TOTALS and the sum of its inputs."""
        return _to_decimal(self.discipline_blocks.get("totals_tolerance", "1.00"), "totals_tolerance")

    # =========================================================================
    # INPUT Sheet
    # =========================================================================

    @property
    def input_sheet(self) -> dict:
        """INPUT sheet discipline list layout."""
        return self._config.get("input_sheet", {})

    @property
    def input_sheet_names(self) -> list[str]:
        """Sheet names treated as the INPUT sheet."""
        return self.input_sheet.get("sheet_names", ["INPUT", "INPUTS"])

    @property
    def input_flag_column(self) -> int:
        return int(self.input_sheet.get("flag_column", 32))

    @property
    def input_name_column(self) -> int:
        return int(self.input_sheet.get("name_column", 33))

    @property
    def input_anchor(self) -> str:
        """Discipline name that marks the first row of the list."""
        return self.input_sheet.get("anchor", "FABRICATION")

    # =========================================================================
    # Discipline Groups
    # =========================================================================

    @property
    def discipline_rules(self) -> dict[str, list[str]]:
        """Group name -> member disciplines."""
        return self._config.get("discipline_rules", {})

    def find_discipline_group(self, discipline: str) -> Optional[str]:
        """Find the group for a discipline (case-insensitive)."""
        name = discipline.strip().upper()
        for group, members in self.discipline_rules.items():
            for member in members or []:
                if str(member).strip().upper() == name:
                    return group
        return None

    # =========================================================================
    # Detail Sheets
    # =========================================================================

    @property
    def sheet_mappings(self) -> dict[str, str]:
        """Detail sheet name -> base cost category label."""
        return self._config.get("sheet_mappings", {})

    def category_for_sheet(self, sheet_name: str) -> Optional[str]:
        """Get the base category label for a detail sheet (case-insensitive)."""
        name = sheet_name.strip().upper()
        for key, label in self.sheet_mappings.items():
            if str(key).strip().upper() == name:
                return label
        return None

    @property
    def tabular(self) -> dict:
        """Detail sheet parsing configuration."""
        return self._config.get("tabular", {})

    @property
    def wbs_pattern(self) -> str:
        """Regex a cell must match to be read as a WBS code."""
        return self.tabular.get("wbs_pattern", r"^\d{2,3}[-.]\d{2,3}([-.]\d{2,3})?")

    @property
    def total_row_keywords(self) -> list[str]:
        """Leading words that mark a subtotal/total row."""
        return self.tabular.get("total_row_keywords", ["total", "grand total", "subtotal"])

    @property
    def custom_mapping_header_row(self) -> int:
        """Header row assumed when a custom mapping is given and none is detected."""
        return int(self.tabular.get("custom_mapping_header_row", 0))

    # =========================================================================
    # Allocation
    # =========================================================================

    @property
    def allocation(self) -> dict:
        """Allocation configuration."""
        return self._config.get("allocation", {})

    @property
    def allocation_quantum(self) -> Decimal:
        """Smallest amount an add-on split is distributed in."""
        quantum = _to_decimal(self.allocation.get("quantum", "0.000001"), "allocation.quantum")
        if quantum <= 0:
            raise ConfigurationError("allocation.quantum must be positive")
        return quantum

    @property
    def percentage_places(self) -> int:
        return int(self.allocation.get("percentage_places", 2))

    # =========================================================================
    # Validation
    # =========================================================================

    @property
    def validation(self) -> dict:
        """Validation configuration."""
        return self._config.get("validation", {})

    @property
    def required_sheets(self) -> list[str]:
        """Sheets whose absence produces a warning."""
        return self.validation.get("required_sheets", ["BUDGETS"])

    # =========================================================================
    # Raw Access
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level config value by key."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access to config."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """Check if key exists in config."""
        return key in self._config


def _to_decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ConfigurationError(f"{name} must be numeric, got {value!r}")


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> BudgetImportConfig:
    """
    Get the singleton configuration instance.

    Args:
        config_path: Optional path to config file. Only used on first call.

    Returns:
        BudgetImportConfig singleton instance
    """
    path = Path(config_path) if config_path else None
    return BudgetImportConfig(path)


def reload_config() -> BudgetImportConfig:
    """Reload configuration from disk and return new instance."""
    get_config.cache_clear()
    return get_config()
