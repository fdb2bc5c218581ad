from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.normalize_rut import format_rut, normalize_rut


class Gender(StrEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class MemberStatus(StrEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Member(BaseModel):
    """Registry member keyed by normalized RUT."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )

    id: Optional[str] = Field(default=None, alias="_id", description="MongoDB identifier")

    # Identity
    rut: str = Field(..., description="Normalized RUT like '9313137-1'")
    rut_masked: str = Field(default="", validate_default=True, description="Display RUT like '9.313.137-1'")
    full_name: str = Field(..., min_length=1)
    affiliate: Optional[str] = None
    gender: Optional[Gender] = None

    # Verification
    status: MemberStatus = MemberStatus.ACTIVE
    token: str = Field(..., min_length=16, description="Public verification handle")

    # Provenance
    import_source: Optional[str] = None
    last_import_at: Optional[datetime] = None
    imported_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # ---------- Validators ----------

    @field_validator("rut", mode="before")
    @classmethod
    def _normalize_rut(cls, v: object) -> str:
        rut = normalize_rut(v)
        if not rut:
            raise ValueError("invalid RUT")
        return rut

    @field_validator("full_name", mode="before")
    @classmethod
    def _strip_name(cls, v: object) -> str:
        return str(v or "").strip()

    @field_validator("affiliate", "gender", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    @field_validator("rut_masked", mode="after")
    @classmethod
    def _default_masked(cls, v: str, info) -> str:
        if v:
            return v
        rut = info.data.get("rut")
        return format_rut(rut) if rut else v

    # ---------- Helpers ----------

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE

    def to_mongo(self) -> dict:
        """Serialize for Mongo (exclude None)."""
        data = self.model_dump(exclude_none=True, by_alias=True)
        if isinstance(data.get("_id"), str):
            data["_id"] = ObjectId(data["_id"])
        return data

    @classmethod
    def from_mongo(cls, doc: dict | None) -> "Member | None":
        if not doc:
            return None
        doc = {**doc, "_id": str(doc.get("_id"))} if doc.get("_id") is not None else dict(doc)
        return cls.model_validate(doc)
