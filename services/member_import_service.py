# services/member_import_service.py
"""
================================================================================
Member Import Service
================================================================================

Purpose:
--------
Turn an uploaded member spreadsheet into created / updated member records.

Pipeline:
---------
1. ``read_grid``            workbook bytes -> raw grid (utils.excel)
2. ``locate_member_table``  find the header row (services.member_table_locator)
3. ``extract_member_rows``  yield validated rows (services.member_row_extractor)
4. ``reconcile_rows``       normalize RUT, create or update per row (this module)

Notes:
------
• Rows are written one at a time: lookup by RUT, then insert or update.
• A store failure aborts the run; rows already written stay written and the
  partial counts travel on the raised ``ImportStoreError``.
• ``dry_run`` performs the lookups only and reports what would happen.

================================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from pymongo.errors import PyMongoError

from domain.models.member import Member, MemberStatus
from domain.models.member_import import ImportRow, ImportSummary
from domain.models.user import AdminContext
from middleware.errors import ImportStoreError
from repositories.member_repository import MemberRepository
from services.member_row_extractor import extract_from_grid
from utils.excel import read_grid
from utils.members import map_gender_text, new_token
from utils.normalize_rut import format_rut, normalize_rut

logger = logging.getLogger(__name__)

SOURCE_SEPARATOR = " · "


def _gender_value(text: Optional[str]) -> Optional[str]:
    gender = map_gender_text(text)
    return gender.value if gender else None


def import_source_label(affiliate: str, import_source: str) -> str:
    """'FENATS OCTAVA' + 'Arauco 12/2025' -> 'FENATS OCTAVA · Arauco 12/2025'."""
    return f"{affiliate}{SOURCE_SEPARATOR}{import_source}"


def reconcile_rows(
    rows: Iterable[ImportRow],
    *,
    affiliate: str,
    import_source: str,
    repo: MemberRepository,
    context: Optional[AdminContext] = None,
    dry_run: bool = False,
) -> ImportSummary:
    """Create or update one member per row, in order, and count the outcomes."""

    summary = ImportSummary(dry_run=dry_run)
    source_label = import_source_label(affiliate, import_source)
    imported_by = context.username if context else None
    seen_in_batch: set[str] = set()

    for row in rows:
        summary.total_rows += 1

        rut = normalize_rut(row.rut_raw)
        if not rut:
            summary.skipped += 1
            logger.debug("Skipped row with unusable RUT %r", row.rut_raw)
            continue

        fields = {
            "full_name": row.full_name,
            "rut_masked": format_rut(rut),
            "affiliate": affiliate or None,
            "gender": _gender_value(row.gender_text),
            "import_source": source_label,
            "last_import_at": datetime.now(timezone.utc),
            "imported_by": imported_by,
        }

        try:
            exists = repo.find_by_rut(rut) is not None or (dry_run and rut in seen_in_batch)

            if dry_run:
                seen_in_batch.add(rut)
            elif not exists:
                repo.create(
                    Member(
                        rut=rut,
                        token=new_token(),
                        status=MemberStatus.ACTIVE,
                        **fields,
                    )
                )
            else:
                repo.update(rut, fields)
        except PyMongoError as exc:
            logger.exception("Import aborted at RUT %s", rut)
            raise ImportStoreError(
                f"Import aborted at RUT {format_rut(rut)}: {exc}",
                details={"rut": rut, **summary.to_dict()},
            ) from exc

        if exists:
            summary.updated += 1
        else:
            summary.created += 1

    logger.info(
        "Member import %s: total=%d created=%d updated=%d skipped=%d%s",
        source_label,
        summary.total_rows,
        summary.created,
        summary.updated,
        summary.skipped,
        " (dry run)" if dry_run else "",
    )
    return summary


def import_members(
    data: bytes,
    *,
    affiliate: str,
    import_source: str,
    repo: Optional[MemberRepository] = None,
    context: Optional[AdminContext] = None,
    dry_run: bool = False,
) -> ImportSummary:
    """Import members from XLSX bytes; a sheet without a member table yields zeros."""

    grid = read_grid(data)
    return reconcile_rows(
        extract_from_grid(grid),
        affiliate=affiliate,
        import_source=import_source,
        repo=repo or MemberRepository(),
        context=context,
        dry_run=dry_run,
    )
