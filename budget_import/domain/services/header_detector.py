"""
Header Detector - Finds the header row of a loosely structured sheet.

Every text cell in the first rows of a sheet is fuzzy-matched against a
vocabulary per column role (wbs, description, quantity, unit, rate,
hours, total, discipline, category). The row matching the most distinct
roles wins.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging
import re

from rapidfuzz import fuzz, process

from ...config import BudgetImportConfig, ConfigurationError, get_config
from ..entities.workbook import Sheet, TextCell

logger = logging.getLogger(__name__)

HEADER_ROLES = (
    "wbs",
    "description",
    "quantity",
    "unit",
    "rate",
    "hours",
    "total",
    "discipline",
    "category",
)


@dataclass(frozen=True)
class HeaderColumn:
    """One classified header cell."""
    index: int
    header_text: str
    confidence: float


@dataclass
class DetectedHeader:
    """
    Header row found in a sheet.

    Attributes:
        header_row_index: 0-based row of the header
        columns: role -> classified column; roles not found are absent
    """
    header_row_index: int
    columns: Dict[str, HeaderColumn] = field(default_factory=dict)

    def index_of(self, role: str) -> Optional[int]:
        column = self.columns.get(role)
        return column.index if column else None

    @property
    def mapping(self) -> Dict[str, int]:
        return {role: col.index for role, col in self.columns.items()}

    def to_dict(self) -> dict:
        return {
            "header_row_index": self.header_row_index,
            "columns": {
                role: {
                    "index": col.index,
                    "header_text": col.header_text,
                    "confidence": col.confidence,
                }
                for role, col in self.columns.items()
            },
        }


def normalize_header(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


class HeaderDetector:
    """
    Classifies header cells with rapidfuzz against per-role vocabularies.

    Deterministic: a cell takes its best role (earlier role on a score
    tie), a role keeps its best cell (leftmost on a tie), and the row with
    the most distinct roles wins (earliest on a tie).
    """

    def __init__(self, config: Optional[BudgetImportConfig] = None):
        self.config = config or get_config()
        scorer_name = self.config.header_scorer
        self.scorer = getattr(fuzz, scorer_name, None)
        if self.scorer is None:
            raise ConfigurationError(f"Unknown rapidfuzz scorer: {scorer_name}")

        vocabularies = self.config.role_vocabularies
        self.vocabularies: Dict[str, List[str]] = {
            role: [normalize_header(v) for v in vocabularies.get(role, [])]
            for role in HEADER_ROLES
        }
        self.thresholds = {
            role: self.config.get_role_min_similarity(role) for role in HEADER_ROLES
        }

    def classify(self, text: str) -> Optional[Tuple[str, float]]:
        """
        Best role for a header text.

        Returns:
            (role, score 0-100) or None when no role reaches its threshold
        """
        normalized = normalize_header(text)
        if not normalized:
            return None

        best: Optional[Tuple[str, float]] = None
        for role in HEADER_ROLES:
            vocabulary = self.vocabularies[role]
            if not vocabulary:
                continue
            result = process.extractOne(
                normalized,
                vocabulary,
                scorer=self.scorer,
                score_cutoff=self.thresholds[role],
            )
            if result is None:
                continue
            score = float(result[1])
            if best is None or score > best[1]:
                best = (role, score)
        return best

    def score_row(self, sheet: Sheet, row: int) -> Dict[str, HeaderColumn]:
        """Classify every text cell of a row; one column per role."""
        columns: Dict[str, HeaderColumn] = {}
        for col in range(sheet.column_count):
            cell = sheet.cell(row, col)
            if not isinstance(cell, TextCell):
                continue
            match = self.classify(cell.value)
            if match is None:
                continue
            role, score = match
            current = columns.get(role)
            # strict > keeps the leftmost column on ties
            if current is None or score / 100 > current.confidence:
                columns[role] = HeaderColumn(
                    index=col,
                    header_text=cell.value.strip(),
                    confidence=round(score / 100, 4),
                )
        return columns

    def detect(self, sheet: Sheet, scan_depth: Optional[int] = None) -> Optional[DetectedHeader]:
        """
        Find the most likely header row within the first scan_depth rows.

        Args:
            sheet: Sheet to scan
            scan_depth: Rows to scan (defaults to configuration)

        Returns:
            DetectedHeader, or None for an empty sheet or when no row
            matches enough distinct roles
        """
        depth = scan_depth if scan_depth is not None else self.config.header_scan_depth
        min_roles = self.config.header_min_roles

        best: Optional[DetectedHeader] = None
        for row in range(min(depth, sheet.row_count)):
            columns = self.score_row(sheet, row)
            if len(columns) < min_roles:
                continue
            if best is None or len(columns) > len(best.columns):
                best = DetectedHeader(header_row_index=row, columns=columns)

        if best is None:
            logger.debug(f"No header row found in sheet '{sheet.name}'")
        else:
            logger.debug(
                f"Header row {best.header_row_index} in sheet '{sheet.name}': "
                f"{sorted(best.columns)}"
            )
        return best
