import base64
import io
import logging
from urllib.parse import quote

import qrcode
from sqlalchemy.orm import Session

from guestdesk.core.config import get_settings
from guestdesk.core.exceptions import AppException
from guestdesk.db.models import Organization

settings = get_settings()
logger = logging.getLogger(__name__)

# ~256px for screens, ~512px for print, with the 1-module quiet zone.
SCREEN_BOX_SIZE = 8
PRINT_BOX_SIZE = 16
QUIET_ZONE = 1


def guest_sign_in_url(organization_id: str) -> str:
    return f"{settings.CLIENT_URL.rstrip('/')}/guest/signin/{organization_id}"


def guest_sign_in_url_with_metadata(organization_id: str, organization_name: str) -> str:
    return f"{guest_sign_in_url(organization_id)}?org={quote(organization_name, safe='')}"


def _render_png(data: str, box_size: int) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=QUIET_ZONE,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def build_qr_png(organization_id: str, organization_name: str, for_print: bool = False) -> bytes:
    url = guest_sign_in_url_with_metadata(organization_id, organization_name)
    try:
        return _render_png(url, PRINT_BOX_SIZE if for_print else SCREEN_BOX_SIZE)
    except Exception as exc:
        logger.exception("qr.render failed org_id=%s", organization_id)
        raise AppException("Failed to generate QR code", status_code=500) from exc


def build_qr_data_url(organization_id: str, organization_name: str) -> str:
    png = build_qr_png(organization_id, organization_name)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def generate_for_organization(db: Session, org: Organization) -> str:
    data_url = build_qr_data_url(org.id, org.name)
    org.qr_code_url = data_url
    db.commit()
    logger.info("qr.generated org_id=%s", org.id)
    return data_url
