"""Service layer for member administration: manual upsert, search, status and tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from domain.models.member import Member, MemberStatus
from domain.models.user import AdminContext
from middleware.errors import (
    DuplicateKeyError,
    InvalidRutError,
    RecordNotFoundError,
    ValidationError,
)
from repositories.member_repository import MemberRepository
from services.auth_service import require_editor
from utils.helpers import _as_str_or_empty
from utils.members import new_token, parse_gender_choice, parse_status_choice
from utils.normalize_rut import format_rut, normalize_rut

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 200

_repo: MemberRepository | None = None


def _repository() -> MemberRepository:
    global _repo
    if _repo is None:
        _repo = MemberRepository()
    return _repo


@dataclass
class MemberListResult:
    members: List[Member]
    total: int
    page: int
    per_page: int


def manual_source_label(context: AdminContext) -> str:
    return f"Manual ({context.username})"


def save_member_from_form(
    form: Mapping[str, Any],
    context: Optional[AdminContext],
    repo: MemberRepository | None = None,
) -> tuple[Member, bool]:
    """Create or update one member by RUT from admin form input.

    Returns ``(member, created)``. The token of an existing member is kept.
    """

    context = require_editor(context)
    repo = repo or _repository()

    full_name = _as_str_or_empty(form.get("full_name"))
    if not full_name:
        raise ValidationError("Full name is required.")

    rut = normalize_rut(form.get("rut"))
    if not rut:
        raise InvalidRutError(details={"rut": _as_str_or_empty(form.get("rut"))})

    gender = parse_gender_choice(form.get("gender"))
    fields = {
        "full_name": full_name,
        "rut_masked": format_rut(rut),
        "affiliate": _as_str_or_empty(form.get("affiliate")) or None,
        "gender": gender.value if gender else None,
        "status": parse_status_choice(form.get("status")).value,
        "import_source": manual_source_label(context),
        "last_import_at": datetime.now(timezone.utc),
        "imported_by": context.username,
    }

    try:
        existing = repo.find_by_rut(rut)
        if existing is None:
            member = repo.create(Member(rut=rut, token=new_token(), **fields))
            created = True
        else:
            member = repo.update(rut, fields)
            created = False
    except MongoDuplicateKeyError as exc:
        raise DuplicateKeyError(details={"rut": rut}) from exc

    logger.info(
        "Member %s %s manually by %s",
        rut,
        "created" if created else "updated",
        context.username,
    )
    return member, created


def search_members(
    query: Optional[str],
    *,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
    repo: MemberRepository | None = None,
) -> MemberListResult:
    """Return members matching ``query`` (RUT, masked RUT, name or token), newest first."""

    repo = repo or _repository()
    per_page = min(max(per_page, 1), MAX_PER_PAGE)
    page = max(page, 1)
    members, total = repo.search_members(
        (query or "").strip() or None,
        skip=(page - 1) * per_page,
        limit=per_page,
    )
    return MemberListResult(members=members, total=total, page=page, per_page=per_page)


def get_member_by_token(token: str, repo: MemberRepository | None = None) -> Optional[Member]:
    token = (token or "").strip()
    if not token:
        return None
    return (repo or _repository()).find_by_token(token)


def find_member_by_rut(raw_rut: str, repo: MemberRepository | None = None) -> Optional[Member]:
    """Lookup used by the public member login; raises when the RUT does not normalize."""

    rut = normalize_rut(raw_rut)
    if not rut:
        raise InvalidRutError(details={"rut": _as_str_or_empty(raw_rut)})
    return (repo or _repository()).find_by_rut(rut)


def toggle_member_status(
    member_id: str,
    context: Optional[AdminContext],
    repo: MemberRepository | None = None,
) -> Member:
    require_editor(context)
    repo = repo or _repository()
    member = repo.find_by_id(member_id)
    if member is None:
        raise RecordNotFoundError(details={"member_id": member_id})

    new_status = MemberStatus.INACTIVE if member.is_active else MemberStatus.ACTIVE
    updated = repo.set_status(member_id, new_status)
    logger.info("Member %s set to %s by %s", member.rut, new_status.value, context.username)
    return updated


def regenerate_member_token(
    member_id: str,
    context: Optional[AdminContext],
    repo: MemberRepository | None = None,
) -> Member:
    require_editor(context)
    repo = repo or _repository()
    updated = repo.set_token(member_id, new_token())
    if updated is None:
        raise RecordNotFoundError(details={"member_id": member_id})
    logger.info("Token regenerated for member %s by %s", updated.rut, context.username)
    return updated


def fetch_dashboard_stats(repo: MemberRepository | None = None) -> dict[str, int]:
    """Return total / active / inactive member counts."""

    repo = repo or _repository()
    return {
        "total": repo.count(),
        "active": repo.count(MemberStatus.ACTIVE),
        "inactive": repo.count(MemberStatus.INACTIVE),
    }


__all__ = [
    "MemberListResult",
    "save_member_from_form",
    "search_members",
    "get_member_by_token",
    "find_member_by_rut",
    "toggle_member_status",
    "regenerate_member_token",
    "fetch_dashboard_stats",
]
