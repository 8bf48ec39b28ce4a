"""
QR image artefacts.

Each patient gets ``qr-<token>.png`` in ``settings.QR_UPLOAD_DIR``.  The
image encodes the front-end emergency page URL for the token and is
served back under ``settings.QR_URL_PREFIX``.
"""
from __future__ import annotations

import logging
from pathlib import Path

import qrcode
from django.conf import settings

logger = logging.getLogger(__name__)


def emergency_url(qr_token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/emergency/{qr_token}"


def qr_filename(qr_token: str) -> str:
    return f"qr-{qr_token}.png"


def qr_path(qr_token: str) -> Path:
    return Path(settings.QR_UPLOAD_DIR) / qr_filename(qr_token)


def write_qr_image(qr_token: str) -> str:
    """Render the QR code for ``qr_token`` and return its public URL path."""
    path = qr_path(qr_token)
    path.parent.mkdir(parents=True, exist_ok=True)
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(emergency_url(qr_token))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    img.save(path)
    return f"{settings.QR_URL_PREFIX}{qr_filename(qr_token)}"


def remove_qr_image(qr_token: str) -> bool:
    """Delete the QR image if present.  Failures are logged, never raised."""
    try:
        qr_path(qr_token).unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.warning('could not remove QR image for token ending %s: %s', qr_token[-4:], e)
        return False
