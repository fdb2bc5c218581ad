# routes/admin.py
"""Administrator UI: dashboard, spreadsheet import, manual entry, member list."""

from __future__ import annotations

import os
from dataclasses import dataclass
from math import ceil

from flask import (
    Blueprint,
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    url_for,
)

from config import settings
from middleware.auth import editor_required, login_required
from middleware.errors import DuplicateKeyError, ImportStoreError, InvalidFormatError, ValidationError
from services.member_import_service import import_members
from services.member_service import (
    DEFAULT_PER_PAGE,
    fetch_dashboard_stats,
    regenerate_member_token,
    save_member_from_form,
    search_members,
    toggle_member_status,
)
from utils.excel import EXCEL_EXTENSIONS
from utils.helpers import _parse_bool_value
from utils.normalize_rut import is_valid_rut_check_digit

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

CHECK_DIGIT_WARNING = "The check digit does not match the RUT number. Please double-check it."

# Members with a mismatched DV are still stored; the list flags them
admin_bp.add_app_template_global(is_valid_rut_check_digit, "valid_check_digit")


def _allowed_file(filename: str) -> bool:
    _, ext = os.path.splitext(filename.lower())
    return ext in EXCEL_EXTENSIONS


def _render_upload(status: int = 200, **context):
    context.setdefault("summary", None)
    context.setdefault("error", None)
    context.setdefault("affiliate", settings.DEFAULT_AFFILIATE)
    context.setdefault("import_source", settings.DEFAULT_IMPORT_SOURCE)
    return render_template("admin/upload.html", **context), status


@dataclass
class SimplePagination:
    """Minimal helper for previous / next links on the member list."""

    page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        return max(1, ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


@admin_bp.get("/", strict_slashes=False)
@login_required
def dashboard():
    """Render member counts for the dashboard."""
    stats = fetch_dashboard_stats()
    return render_template("admin/dashboard.html", stats=stats)


@admin_bp.get("/upload")
@editor_required
def upload_form():
    return _render_upload()


@admin_bp.post("/upload")
@editor_required
def upload_members():
    """
    Import members from an uploaded spreadsheet.
    - Finds the member table anywhere on the first sheet
    - Creates or updates one member per valid row
    - Renders the created / updated / skipped summary
    """
    f = request.files.get("file")
    affiliate = (request.form.get("affiliate") or settings.DEFAULT_AFFILIATE).strip()
    import_source = (request.form.get("import_source") or settings.DEFAULT_IMPORT_SOURCE).strip()
    dry_run = bool(_parse_bool_value(request.form.get("dry_run"))) or settings.IMPORT_DRY_RUN

    if not f or not f.filename:
        return _render_upload(400, error="No file was uploaded.", affiliate=affiliate, import_source=import_source)

    if not _allowed_file(f.filename):
        return _render_upload(
            400,
            error="Unsupported file type. Please upload .xlsx or .xlsm.",
            affiliate=affiliate,
            import_source=import_source,
        )

    try:
        summary = import_members(
            f.read(),
            affiliate=affiliate,
            import_source=import_source,
            context=g.admin,
            dry_run=dry_run,
        )
    except InvalidFormatError as exc:
        return _render_upload(400, error=exc.message, affiliate=affiliate, import_source=import_source)
    except ImportStoreError as exc:
        current_app.logger.error("Member import failed: %s", exc.message)
        return _render_upload(
            500,
            error=exc.message,
            partial=exc.details,
            affiliate=affiliate,
            import_source=import_source,
        )

    current_app.logger.info(
        "Import by %s from %s: %s", g.admin.username, f.filename, summary.to_dict()
    )
    return _render_upload(summary=summary, affiliate=affiliate, import_source=import_source)


@admin_bp.get("/new")
@editor_required
def new_member_form():
    """Form to create or update a single member by RUT."""
    return render_template("admin/new.html", message=None, error=None, values={})


@admin_bp.post("/new")
@editor_required
def save_member():
    try:
        member, created = save_member_from_form(request.form, g.admin)
    except (ValidationError, DuplicateKeyError) as exc:
        return (
            render_template("admin/new.html", message=None, error=exc.message, values=request.form),
            exc.code,
        )

    verb = "Created" if created else "Saved"
    return render_template(
        "admin/new.html",
        error=None,
        message=f"{verb}: {member.full_name} ({member.rut_masked}).",
        warning=None if is_valid_rut_check_digit(member.rut) else CHECK_DIGIT_WARNING,
        values={},
    )


@admin_bp.get("/members")
@login_required
def show_members():
    """Searchable member list (RUT, name or token)."""
    q = request.args.get("q", "").strip()
    page = max(request.args.get("page", type=int) or 1, 1)
    per_page = request.args.get("per_page", type=int) or DEFAULT_PER_PAGE

    result = search_members(q, page=page, per_page=per_page)
    pagination = SimplePagination(page=result.page, per_page=result.per_page, total=result.total)
    return render_template(
        "admin/members.html",
        q=q,
        members=result.members,
        total=result.total,
        pagination=pagination,
    )


@admin_bp.post("/members/<member_id>/toggle")
@editor_required
def toggle_status(member_id: str):
    member = toggle_member_status(member_id, g.admin)
    flash(f"{member.full_name} is now {member.status}.", "success")
    return redirect(url_for("admin.show_members", q=request.form.get("q") or None))


@admin_bp.post("/members/<member_id>/regen-token")
@editor_required
def regen_token(member_id: str):
    member = regenerate_member_token(member_id, g.admin)
    flash(f"New QR token issued for {member.full_name}.", "success")
    return redirect(url_for("admin.show_members", q=request.form.get("q") or None))
