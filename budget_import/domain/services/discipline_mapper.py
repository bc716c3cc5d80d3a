"""
Discipline Mapper - Active disciplines from the INPUT sheet and their
top-level groups.

The INPUT sheet lists disciplines in column AH with an include flag in
column AG; the list starts at the FABRICATION row and ends at the first
blank name.
"""
from typing import Iterable, List, Optional
import logging

from ...config import BudgetImportConfig, get_config
from ...modules.etl import cell_to_decimal
from ..entities.wbs_node import DisciplineGroup
from ..entities.workbook import Sheet

logger = logging.getLogger(__name__)


class DisciplineMapper:
    """Groups disciplines using the configured discipline rules."""

    def __init__(self, config: Optional[BudgetImportConfig] = None):
        self.config = config or get_config()

    def group_for(self, discipline: str) -> str:
        """Group name for a discipline; unknown disciplines form their own group."""
        group = self.config.find_discipline_group(discipline)
        if group:
            return group
        return discipline.strip().title().replace("I&e", "I&E")

    def group_disciplines(self, disciplines: Iterable[str]) -> List[DisciplineGroup]:
        """Groups in first-encounter order, members in input order, duplicates dropped."""
        order: List[str] = []
        members = {}
        seen = set()
        for discipline in disciplines:
            key = discipline.strip().upper()
            if not key or key in seen:
                continue
            seen.add(key)
            group = self.group_for(discipline)
            if group not in members:
                order.append(group)
                members[group] = []
            members[group].append(discipline.strip())
        return [DisciplineGroup(name, tuple(members[name])) for name in order]

    @staticmethod
    def single_discipline_groups(disciplines: Iterable[str]) -> List[DisciplineGroup]:
        """One group per discipline, used when there is no INPUT grouping."""
        groups = []
        seen = set()
        for discipline in disciplines:
            key = discipline.strip().upper()
            if not key or key in seen:
                continue
            seen.add(key)
            groups.append(DisciplineGroup(discipline.strip(), (discipline.strip(),)))
        return groups

    def extract_disciplines_from_input(self, sheet: Sheet) -> List[str]:
        """
        Read the active discipline list from an INPUT sheet.

        Returns:
            Upper-cased names of disciplines whose flag is 1, in sheet
            order; empty when the anchor row is missing
        """
        flag_col = self.config.input_flag_column
        name_col = self.config.input_name_column
        anchor = self.config.input_anchor.strip().upper()

        start = None
        for row in range(sheet.row_count):
            if anchor in sheet.text(row, name_col).upper():
                start = row
                break
        if start is None:
            logger.info(f"No '{anchor}' row in sheet '{sheet.name}'; no discipline list")
            return []

        disciplines = []
        for row in range(start, sheet.row_count):
            name = sheet.text(row, name_col)
            if not name:
                break
            flag, ok = cell_to_decimal(sheet.cell(row, flag_col))
            if ok and flag == 1:
                disciplines.append(name.upper())

        logger.info(f"INPUT sheet '{sheet.name}' lists {len(disciplines)} active discipline(s)")
        return disciplines
