"""QR code rendering for member verification links."""

from __future__ import annotations

from io import BytesIO
from urllib.parse import quote

import qrcode
from qrcode.constants import ERROR_CORRECT_M

QR_BOX_SIZE = 8
QR_BORDER = 2


def verification_url(base_url: str, token: str) -> str:
    """Public verification link encoded in the QR: ``<base>/s/<token>``."""
    return f"{base_url.rstrip('/')}/s/{quote(token, safe='')}"


def credential_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/credencial/{quote(token, safe='')}"


def qr_png_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/qr/{quote(token, safe='')}.png"


def render_qr_png(data: str) -> bytes:
    """Render ``data`` as a PNG QR code and return the image bytes."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()
