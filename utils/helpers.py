from __future__ import annotations

import re
from typing import Optional

_BOOL_MAP = {
    "yes": True,
    "no": False,
    "true": True,
    "false": False,
    "si": True,
    "sí": True,
}

_WS_RE = re.compile(r"\s+")


def _strip_whitespace(s: Optional[str]) -> str:
    """Drop every whitespace character ('10017452 9' -> '100174529')."""

    return _WS_RE.sub("", s or "")


def _as_str_or_empty(obj: object) -> str:
    """Fast, null-safe conversion to stripped string."""

    return str(obj).strip() if obj is not None else ""


def _parse_bool_value(value: object) -> Optional[bool]:
    """
    Accept only True/False or case-insensitive Yes/No (Sí/No).
    Everything else returns None.
    """

    if isinstance(value, bool):
        return value
    s = _as_str_or_empty(value).lower()
    return _BOOL_MAP.get(s)
