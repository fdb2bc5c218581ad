"""Public member routes: RUT login, QR verification, QR image and credential.

Nothing here requires a session. Pages only show the display RUT, the name,
the affiliate and the membership status.
"""

from __future__ import annotations

from datetime import datetime

from flask import Blueprint, abort, make_response, redirect, render_template, request, url_for

from config import settings
from middleware.errors import InvalidRutError
from services.member_service import find_member_by_rut, get_member_by_token
from services.qr_service import credential_url, qr_png_url, render_qr_png, verification_url

members_bp = Blueprint("members", __name__)

CHECKED_AT_FORMAT = "%d-%m-%Y %H:%M"


def _base_url() -> str:
    """PUBLIC_BASE_URL when configured, otherwise the host of this request."""
    return settings.PUBLIC_BASE_URL or request.host_url.rstrip("/")


@members_bp.route("/login-member", methods=["GET", "POST"])
def login_member():
    """A member types their RUT and is sent to their credential."""
    if request.method == "GET":
        return render_template("member/login.html", error=None, rut="")

    rut_input = (request.form.get("rut") or "").strip()
    if not rut_input:
        return render_template("member/login.html", error="Please enter your RUT.", rut=rut_input), 400

    try:
        member = find_member_by_rut(rut_input)
    except InvalidRutError:
        return (
            render_template(
                "member/login.html",
                error="Invalid RUT. It must include the check digit (e.g. 9.313.137-1).",
                rut=rut_input,
            ),
            400,
        )

    if member is None:
        return (
            render_template(
                "member/login.html",
                error="We could not find your RUT. Check the digit or contact your affiliate.",
                rut=rut_input,
            ),
            404,
        )

    return redirect(url_for("members.credential", token=member.token))


@members_bp.get("/s/<token>")
def verify(token: str):
    """Verification screen shown to whoever scans the QR."""
    checked_at = datetime.now().strftime(CHECKED_AT_FORMAT)
    member = get_member_by_token(token)

    if member is None:
        return (
            render_template(
                "member/verify.html",
                status="INVALID",
                title="CÓDIGO NO VÁLIDO",
                member=None,
                checked_at=checked_at,
                org_name=settings.ORG_NAME,
            ),
            404,
        )

    return render_template(
        "member/verify.html",
        status=member.status,
        title="SOCIO VIGENTE" if member.is_active else "SOCIO NO VIGENTE",
        member=member,
        checked_at=checked_at,
        credential_url=credential_url(_base_url(), member.token),
        org_name=settings.ORG_NAME,
    )


@members_bp.get("/qr/<token>.png")
def qr_image(token: str):
    """PNG QR code pointing at the verification URL of ``token``."""
    member = get_member_by_token(token)
    if member is None:
        abort(404)

    png = render_qr_png(verification_url(_base_url(), member.token))
    response = make_response(png)
    response.headers["Content-Type"] = "image/png"
    response.headers["Cache-Control"] = "no-store"
    return response


@members_bp.get("/credencial/<token>")
def credential(token: str):
    """Printable credential with the member's QR."""
    member = get_member_by_token(token)
    if member is None:
        abort(404)

    base_url = _base_url()
    return render_template(
        "member/credential.html",
        member=member,
        qr_url=qr_png_url(base_url, member.token),
        verify_url=verification_url(base_url, member.token),
        org_name=settings.ORG_NAME,
    )
