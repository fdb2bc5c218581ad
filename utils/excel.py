# utils/excel.py
from __future__ import annotations

from enum import StrEnum
from io import BytesIO
from typing import Dict, List, Optional, Tuple

import pandas as pd

from domain.models.grid import Cell, build_grid
from middleware.errors import InvalidFormatError

# ─────────────────────────────────────────────────────────────────────────────
# 1) Header label table for the member sheet.
#    Keep this as the single source of truth for structure. Matching is
#    case-insensitive and exact per (trimmed) cell.
# ─────────────────────────────────────────────────────────────────────────────
class ColumnRole(StrEnum):
    RUT = "rut"
    DV = "dv"
    RUT_DV = "rut_dv"
    NAME = "name"
    GENDER = "gender"


HEADER_LABELS: Dict[ColumnRole, Tuple[str, ...]] = {
    ColumnRole.RUT: ("RUT",),
    ColumnRole.DV: ("DV",),
    ColumnRole.RUT_DV: ("RUT DV",),
    ColumnRole.NAME: ("NOMBRE",),
    ColumnRole.GENDER: ("GENERO",),
}

_LABEL_TO_ROLE: Dict[str, ColumnRole] = {
    label.upper(): role
    for role, labels in HEADER_LABELS.items()
    for label in labels
}

EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}


# ─────────────────────────────────────────────────────────────────────────────
# 2) Tiny helpers the locator can use
# ─────────────────────────────────────────────────────────────────────────────
def header_role(value: object) -> Optional[ColumnRole]:
    """Return the column role a header cell announces, if any."""

    return _LABEL_TO_ROLE.get(Cell.of(value).text.upper())


def find_header_columns(row) -> Dict[ColumnRole, int]:
    """Map each recognised role to the first column index carrying its label."""

    found: Dict[ColumnRole, int] = {}
    for idx, value in enumerate(row or []):
        role = header_role(value)
        if role is not None and role not in found:
            found[role] = idx
    return found


# ─────────────────────────────────────────────────────────────────────────────
# 3) Workbook bytes -> raw grid (no header assumptions)
# ─────────────────────────────────────────────────────────────────────────────
def read_grid(data: bytes, sheet: int | str = 0) -> List[List[Cell]]:
    """Read one sheet of an XLSX payload as a header-less grid of cells.

    Every physical row becomes one grid row; blank cells become empty cells.
    Unreadable payloads raise :class:`InvalidFormatError`.
    """

    if not data:
        raise InvalidFormatError("Uploaded file is empty")

    try:
        df = pd.read_excel(
            BytesIO(data),
            sheet_name=sheet,
            header=None,
            dtype=object,
            engine="openpyxl",
        )
    except Exception as exc:
        raise InvalidFormatError(
            "Could not read the Excel file", details={"reason": str(exc)}
        ) from exc

    return build_grid(df.itertuples(index=False, name=None))
