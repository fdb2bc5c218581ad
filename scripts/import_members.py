#!/usr/bin/env python3
"""Import members from an XLSX file without going through the web app.

Usage:
    python -m scripts.import_members members.xlsx --affiliate "FENATS OCTAVA" \
        --source "Arauco 12/2025" [--dry-run] [--user admin]

Uses exactly the same locate / extract / reconcile pipeline as the upload page
and prints the resulting counts.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from config import settings
from domain.models.user import AdminContext, AdminRole
from middleware.errors import ImportStoreError, InvalidFormatError
from services.member_import_service import import_members


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path, help="XLSX file with the member table")
    parser.add_argument("--affiliate", default=settings.DEFAULT_AFFILIATE)
    parser.add_argument("--source", default=settings.DEFAULT_IMPORT_SOURCE)
    parser.add_argument("--user", default="cli", help="username recorded as importer")
    parser.add_argument("--dry-run", action="store_true", default=settings.IMPORT_DRY_RUN)
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    if not args.path.exists():
        print(f"File not found: {args.path}", file=sys.stderr)
        return 2

    try:
        summary = import_members(
            args.path.read_bytes(),
            affiliate=args.affiliate,
            import_source=args.source,
            context=AdminContext(username=args.user, role=AdminRole.ADMIN),
            dry_run=args.dry_run,
        )
    except InvalidFormatError as exc:
        print(f"Unreadable workbook: {exc.message}", file=sys.stderr)
        return 2
    except ImportStoreError as exc:
        print(f"{exc.message}\nPartial counts: {exc.details}", file=sys.stderr)
        return 1

    print(summary.message + (" (dry run)" if summary.dry_run else ""))
    for key in ("total_rows", "created", "updated", "skipped"):
        print(f"  {key:<10} {getattr(summary, key)}")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution only
    sys.exit(main())
