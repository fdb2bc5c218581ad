"""Spreadsheet grid cells.

Cells coming out of a workbook carry no type guarantees: a RUT can arrive as
text, as a float, or not at all. Every cell is wrapped in :class:`Cell` at the
grid boundary so downstream code only ever reads :attr:`Cell.text`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, List, Sequence, Union


class CellKind(StrEnum):
    TEXT = "text"
    NUMBER = "number"
    EMPTY = "empty"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Union[str, int, float, None] = None

    @classmethod
    def of(cls, raw: object) -> "Cell":
        """Wrap a raw workbook value (already-wrapped cells pass through)."""
        if isinstance(raw, Cell):
            return raw
        if raw is None:
            return EMPTY_CELL
        if isinstance(raw, bool):
            return cls(CellKind.TEXT, str(raw))
        if isinstance(raw, float) and math.isnan(raw):
            return EMPTY_CELL
        if isinstance(raw, (int, float)):
            return cls(CellKind.NUMBER, raw)
        text = str(raw)
        if not text.strip():
            return EMPTY_CELL
        return cls(CellKind.TEXT, text)

    @property
    def text(self) -> str:
        """Trimmed text view; integral numbers lose their ``.0``."""
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.NUMBER:
            value = self.value
            if isinstance(value, float) and value.is_integer():
                return str(int(value))
            return str(value)
        return str(self.value).strip()

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY


EMPTY_CELL = Cell(CellKind.EMPTY)

Row = Sequence[Cell]
Grid = Sequence[Row]


def build_grid(rows: Iterable[Iterable[object]]) -> List[List[Cell]]:
    """Wrap every value of a raw 2-D iterable into :class:`Cell`."""
    return [[Cell.of(value) for value in row] for row in rows]


def cell_text(row: Sequence[object], index: int | None) -> str:
    """Text of ``row[index]``; missing columns read as empty."""
    if index is None or index < 0 or index >= len(row):
        return ""
    return Cell.of(row[index]).text
