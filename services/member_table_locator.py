# services/member_table_locator.py
"""
Locate the member table inside a raw sheet grid.

Real exports put the table anywhere: titles, logos and pivot summaries often
sit above it, so the header row is searched for instead of assumed. Two header
layouts are recognised (labels come from ``utils.excel.HEADER_LABELS``):

* separate columns: ``RUT`` + ``DV`` + ``NOMBRE`` (+ optional ``GENERO``)
* combined column:  ``RUT DV`` + ``NOMBRE`` (+ optional ``GENERO``)

Rows are scanned top to bottom and the first row satisfying either layout is
the header. Within one row the separate layout wins.
"""

from __future__ import annotations

import logging

from domain.models.grid import Grid
from domain.models.member_import import ColumnMapping
from middleware.errors import MissingTableError
from utils.excel import ColumnRole, find_header_columns

logger = logging.getLogger(__name__)


def _mapping_for_row(row_index: int, found: dict[ColumnRole, int]) -> ColumnMapping | None:
    if ColumnRole.NAME not in found:
        return None

    gender_col = found.get(ColumnRole.GENDER)

    if ColumnRole.RUT in found and ColumnRole.DV in found:
        return ColumnMapping(
            header_row=row_index,
            rut_col=found[ColumnRole.RUT],
            dv_col=found[ColumnRole.DV],
            name_col=found[ColumnRole.NAME],
            gender_col=gender_col,
        )

    if ColumnRole.RUT_DV in found:
        return ColumnMapping(
            header_row=row_index,
            rut_dv_col=found[ColumnRole.RUT_DV],
            name_col=found[ColumnRole.NAME],
            gender_col=gender_col,
        )

    return None


def locate_member_table(grid: Grid) -> ColumnMapping:
    """Return the column mapping of the first header row in ``grid``.

    Raises :class:`MissingTableError` when no row carries a known header.
    """

    for row_index, row in enumerate(grid):
        mapping = _mapping_for_row(row_index, find_header_columns(row))
        if mapping is not None:
            logger.info(
                "Member table header at row %d (%s layout)",
                row_index + 1,
                mapping.layout.value,
            )
            return mapping

    raise MissingTableError(details={"rows_scanned": len(grid)})
