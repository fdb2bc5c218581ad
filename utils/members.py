"""Member-related helper functions (gender / status parsing, tokens)."""
from __future__ import annotations

import secrets
from typing import Optional

from domain.models.member import Gender, MemberStatus
from utils.helpers import _as_str_or_empty

# Ordered substring rules for free-text gender coming from spreadsheets.
# First matching marker wins; no match leaves the gender unset.
GENDER_RULES: tuple[tuple[str, Gender], ...] = (
    ("FEM", Gender.FEMALE),
    ("MAS", Gender.MALE),
)

TOKEN_BYTES = 16


def map_gender_text(value: object) -> Optional[Gender]:
    """'Femenino' -> FEMALE, 'MASCULINO' -> MALE, anything else -> None."""

    text = _as_str_or_empty(value).upper()
    if not text:
        return None
    for marker, gender in GENDER_RULES:
        if marker in text:
            return gender
    return None


def parse_gender_choice(value: object) -> Optional[Gender]:
    """Strict parsing for form input: only the exact enum values are accepted."""

    text = _as_str_or_empty(value)
    try:
        return Gender(text)
    except ValueError:
        return None


def parse_status_choice(value: object) -> MemberStatus:
    """Only an explicit 'INACTIVE' deactivates; everything else is ACTIVE."""

    if _as_str_or_empty(value) == MemberStatus.INACTIVE.value:
        return MemberStatus.INACTIVE
    return MemberStatus.ACTIVE


def new_token() -> str:
    """Opaque verification token (32 hex chars)."""

    return secrets.token_hex(TOKEN_BYTES)
