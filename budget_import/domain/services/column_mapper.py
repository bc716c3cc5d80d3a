"""
Column Mapper - Resolves role -> column index per sheet.

Custom mappings supplied by the caller win over detected headers role by
role; every index is validated against the sheet width.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional
import logging

from .header_detector import DetectedHeader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappingValidation:
    """Result of checking a mapping against a sheet's width."""
    valid: bool
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "issues": list(self.issues)}


@dataclass
class ColumnResolution:
    """
    Resolved mapping for one sheet.

    Attributes:
        mapping: role -> column index, all within the sheet width
        sources: role -> 'custom' or 'detected'
        validation: Issues found in the custom mapping
    """
    mapping: Dict[str, int] = field(default_factory=dict)
    sources: Dict[str, str] = field(default_factory=dict)
    validation: MappingValidation = field(default_factory=lambda: MappingValidation(True))

    def get(self, role: str) -> Optional[int]:
        return self.mapping.get(role)

    @property
    def has_custom(self) -> bool:
        return "custom" in self.sources.values()


def _in_bounds(index: object, sheet_width: int) -> bool:
    if isinstance(index, bool) or not isinstance(index, int):
        return False
    return 0 <= index < sheet_width


def validate_mapping(sheet_id: str, mapping: Mapping[str, object], sheet_width: int) -> MappingValidation:
    """
    Check that every mapped column exists in the sheet.

    Args:
        sheet_id: Sheet name, used in issue text
        mapping: role -> column index
        sheet_width: Number of columns in the sheet

    Returns:
        MappingValidation with one issue per role whose index is not an
        integer in [0, sheet_width). Never raises.

    Example:
        validate_mapping("DIRECTS", {"wbs": 10, "description": 1, "total": 6}, 7)
        → MappingValidation(valid=False, issues=["Sheet 'DIRECTS': field 'wbs' ..."])
    """
    issues = []
    for role, index in mapping.items():
        if isinstance(index, bool) or not isinstance(index, int):
            issues.append(
                f"Sheet '{sheet_id}': field '{role}' mapped to non-integer column {index!r}"
            )
        elif not _in_bounds(index, sheet_width):
            issues.append(
                f"Sheet '{sheet_id}': field '{role}' mapped to invalid column index {index} "
                f"(sheet has {sheet_width} columns)"
            )
    return MappingValidation(valid=not issues, issues=issues)


class ColumnMapper:
    """Combines detected headers and custom overrides into one mapping."""

    def resolve(
        self,
        sheet_id: str,
        detected: Optional[DetectedHeader],
        custom: Optional[Mapping[str, int]],
        sheet_width: int,
    ) -> ColumnResolution:
        """
        Build the column mapping for a sheet.

        Invalid custom roles are reported and fall back to the detected
        column for that role, if any.
        """
        resolution = ColumnResolution()
        if detected is not None:
            for role, index in detected.mapping.items():
                if 0 <= index < sheet_width:
                    resolution.mapping[role] = index
                    resolution.sources[role] = "detected"

        if custom:
            validation = validate_mapping(sheet_id, custom, sheet_width)
            resolution.validation = validation
            for role, index in custom.items():
                if not _in_bounds(index, sheet_width):
                    continue
                resolution.mapping[role] = index
                resolution.sources[role] = "custom"
            if not validation.valid:
                logger.warning(f"Custom mapping for '{sheet_id}' has {len(validation.issues)} issue(s)")

        return resolution
