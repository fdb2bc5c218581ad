"""RUT normalization helpers.

:func:`normalize_rut` converts arbitrary input (``None``, strings, numbers)
into the canonical storage form used as the member key:

* only digits and ``K`` are kept, uppercased
* the last character is the check digit
* the number part has no leading zeros (``"0"`` when nothing is left)
* the two parts are joined with ``-``, e.g. ``"9313137-1"``

The check digit is not verified; an arithmetically wrong ``DV`` still
normalizes. :func:`is_valid_rut_check_digit` exists for display warnings only.
"""

from __future__ import annotations

import re

NON_RUT_RE = re.compile(r"[^0-9K]")
THOUSANDS_RE = re.compile(r"\B(?=(\d{3})+(?!\d))")


def normalize_rut(raw: object) -> str:
    """Return ``"<number>-<dv>"`` or an empty string when ``raw`` is unusable."""

    text = "" if raw is None else str(raw).strip().upper()
    compact = NON_RUT_RE.sub("", text)
    if len(compact) < 2:
        return ""

    dv = compact[-1]
    number = compact[:-1].lstrip("0") or "0"
    return f"{number}-{dv}"


def format_rut(rut: str) -> str:
    """Format a RUT for display: ``"9313137-1"`` -> ``"9.313.137-1"``.

    Input that does not reduce to a number and a check digit is returned
    unchanged.
    """

    clean = normalize_rut(rut)
    parts = clean.split("-")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return rut

    number, dv = parts
    return f"{THOUSANDS_RE.sub('.', number)}-{dv}"


def compute_check_digit(number: str) -> str:
    """Modulo-11 check digit for the digits in ``number``."""

    total = 0
    factor = 2
    for ch in reversed(re.sub(r"\D", "", number)):
        total += int(ch) * factor
        factor = 2 if factor == 7 else factor + 1

    remainder = 11 - (total % 11)
    if remainder == 11:
        return "0"
    if remainder == 10:
        return "K"
    return str(remainder)


def is_valid_rut_check_digit(rut: str) -> bool:
    clean = normalize_rut(rut)
    if not clean:
        return False
    number, dv = clean.split("-")
    return compute_check_digit(number) == dv


__all__ = [
    "normalize_rut",
    "format_rut",
    "compute_check_digit",
    "is_valid_rut_check_digit",
]
