# services/member_row_extractor.py
"""
Walk the rows below a located header and yield member rows.

Rows are not trusted blindly: sheets often carry a second, unrelated table
(pivot summaries, totals) below the real one, plus stray notes and blank
spacing. The rules, applied in order per row:

1. all of RUT, name and gender empty -> count towards the empty streak; after
   ``EMPTY_STREAK_LIMIT`` consecutive empty rows the scan stops
2. separate RUT/DV layout only: a RUT cell that does not look like a RUT
   number (6-9 digits) or a DV cell that is not a single ``0-9``/``K`` char
   means the row belongs to another table -> skip
3. no name -> skip
4. no RUT text -> skip
"""

from __future__ import annotations

import logging
import re
from typing import Iterator

from domain.models.grid import Grid, Row, cell_text
from domain.models.member_import import ColumnMapping, ImportLayout, ImportRow
from middleware.errors import MissingTableError
from services.member_table_locator import locate_member_table
from utils.helpers import _strip_whitespace

logger = logging.getLogger(__name__)

EMPTY_STREAK_LIMIT = 25

RUT_NUMBER_MIN_DIGITS = 6
RUT_NUMBER_MAX_DIGITS = 9

_NON_DIGIT_RE = re.compile(r"[^0-9]")
_NON_DV_RE = re.compile(r"[^0-9K]")
_DV_RE = re.compile(r"^[0-9K]$")


def _digits(value: str) -> str:
    return _NON_DIGIT_RE.sub("", value)


def _dv_chars(value: str) -> str:
    return _NON_DV_RE.sub("", value.upper())


def is_likely_rut_number(value: str) -> bool:
    """Digits only, with a plausible RUT length (check digit excluded)."""
    return value.isdigit() and RUT_NUMBER_MIN_DIGITS <= len(value) <= RUT_NUMBER_MAX_DIGITS


def is_likely_dv(value: str) -> bool:
    return bool(_DV_RE.match(value))


def join_rut_dv(rut_part: str, dv_part: str) -> str:
    """'10.017.452' + 'k' -> '10017452-K'; empty when either side cleans to nothing."""
    number = _digits(rut_part)
    dv = _dv_chars(dv_part)
    if not number or not dv:
        return ""
    return f"{number}-{dv}"


def _read_rut(row: Row, mapping: ColumnMapping) -> str:
    if mapping.layout is ImportLayout.COMBINED:
        return cell_text(row, mapping.rut_dv_col)

    rut_part = cell_text(row, mapping.rut_col)
    dv_part = cell_text(row, mapping.dv_col)
    if rut_part and dv_part:
        return join_rut_dv(rut_part, dv_part)
    # The RUT cell may already embed its own DV, e.g. "10017452-9"
    return rut_part


def _looks_foreign(row: Row, mapping: ColumnMapping) -> bool:
    rut_part = _digits(cell_text(row, mapping.rut_col))
    dv_part = _dv_chars(cell_text(row, mapping.dv_col))
    if not rut_part:
        return False
    return not is_likely_rut_number(rut_part) or bool(dv_part and not is_likely_dv(dv_part))


def extract_member_rows(grid: Grid, mapping: ColumnMapping) -> Iterator[ImportRow]:
    """Yield an :class:`ImportRow` for every data row below ``mapping.header_row``.

    The generator is single-use; call again with the same grid to restart.
    """

    empty_streak = 0

    for row_index in range(mapping.header_row + 1, len(grid)):
        row = grid[row_index] or []

        full_name = cell_text(row, mapping.name_col)
        gender_text = cell_text(row, mapping.gender_col) or None
        rut_raw = _strip_whitespace(_read_rut(row, mapping)).upper()

        if not (rut_raw or full_name or gender_text):
            empty_streak += 1
            if empty_streak >= EMPTY_STREAK_LIMIT:
                logger.debug("Stopping at row %d after %d empty rows", row_index + 1, empty_streak)
                break
            continue
        empty_streak = 0

        if mapping.layout is ImportLayout.SEPARATE and _looks_foreign(row, mapping):
            logger.debug("Row %d skipped: RUT/DV cells do not look like member data", row_index + 1)
            continue

        if not full_name:
            logger.debug("Row %d skipped: missing name", row_index + 1)
            continue

        if not rut_raw:
            logger.debug("Row %d skipped: missing RUT", row_index + 1)
            continue

        yield ImportRow(rut_raw=rut_raw, full_name=full_name, gender_text=gender_text)


def extract_from_grid(grid: Grid) -> Iterator[ImportRow]:
    """Locate the member table and yield its rows; nothing when there is no table."""

    try:
        mapping = locate_member_table(grid)
    except MissingTableError:
        logger.warning("No member table header found in %d rows", len(grid))
        return
    yield from extract_member_rows(grid, mapping)
