from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ImportLayout(StrEnum):
    """How the RUT is laid out in the member table."""

    SEPARATE = "separate"  # "RUT" and "DV" columns
    COMBINED = "combined"  # single "RUT DV" column


class ColumnMapping(BaseModel):
    """Location of the member table inside a sheet (0-based indices)."""

    model_config = ConfigDict(frozen=True)

    header_row: int = Field(..., ge=0)
    name_col: int = Field(..., ge=0)
    rut_col: Optional[int] = Field(default=None, ge=0)
    dv_col: Optional[int] = Field(default=None, ge=0)
    rut_dv_col: Optional[int] = Field(default=None, ge=0)
    gender_col: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _one_rut_strategy(self) -> "ColumnMapping":
        separate = self.rut_col is not None and self.dv_col is not None
        combined = self.rut_dv_col is not None
        if separate == combined:
            raise ValueError(
                "mapping needs either rut_col + dv_col or rut_dv_col, not both"
            )
        return self

    @property
    def layout(self) -> ImportLayout:
        return ImportLayout.COMBINED if self.rut_dv_col is not None else ImportLayout.SEPARATE


@dataclass(frozen=True)
class ImportRow:
    rut_raw: str
    full_name: str
    gender_text: Optional[str] = None


@dataclass
class ImportSummary:
    total_rows: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    dry_run: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def message(self) -> str:
        if self.skipped > 0:
            return f"Import completed ({self.skipped} rows skipped without a valid RUT)."
        return "Import completed."
