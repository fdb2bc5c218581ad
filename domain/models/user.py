from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Mapping, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AdminRole(StrEnum):
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    VIEWER = "VIEWER"


# Roles allowed to write member data (import, manual entry, status, tokens)
EDITOR_ROLES = frozenset({AdminRole.SUPERADMIN, AdminRole.ADMIN})


class User(BaseModel):
    """Administrator account stored in MongoDB."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: Optional[str] = Field(default=None, alias="_id", description="MongoDB identifier")
    username: str = Field(..., min_length=2, description="Unique username")
    password_hash: str = Field(..., min_length=8, description="Hashed password")
    email: Optional[EmailStr] = Field(default=None, description="Email address")
    phone: Optional[str] = None
    role: AdminRole = AdminRole.VIEWER
    is_active: bool = True

    def to_mongo(self) -> dict:
        data = self.model_dump(exclude_none=True, by_alias=True)
        if isinstance(data.get("_id"), str):
            data["_id"] = ObjectId(data["_id"])
        return data

    @classmethod
    def from_mongo(cls, doc: dict | None) -> "User | None":
        if not doc:
            return None
        doc = {**doc, "_id": str(doc.get("_id"))}
        return cls(**doc)


@dataclass(frozen=True)
class AdminContext:
    """Who is performing an administrative operation."""

    username: str
    role: AdminRole = AdminRole.VIEWER

    @property
    def can_edit(self) -> bool:
        return self.role in EDITOR_ROLES

    @classmethod
    def from_session(cls, session: Mapping) -> "AdminContext | None":
        username = session.get("username")
        if not username:
            return None
        try:
            role = AdminRole(session.get("role") or AdminRole.VIEWER)
        except ValueError:
            role = AdminRole.VIEWER
        return cls(username=username, role=role)
