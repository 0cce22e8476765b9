from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from guestdesk.api.deps import get_current_organization
from guestdesk.api.responses import success
from guestdesk.db.models import Organization
from guestdesk.db.session import get_db
from guestdesk.services import qr_service

router = APIRouter()


@router.post("/generate")
def generate(
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    data_url = qr_service.generate_for_organization(db, org)
    return success("QR code generated successfully", {"qrCodeUrl": data_url})


@router.get("/current")
def current(org: Organization = Depends(get_current_organization)):
    # data is always present here, null when no code has been generated yet.
    return {
        "success": True,
        "message": "QR code retrieved successfully",
        "data": {"qrCodeUrl": org.qr_code_url or None},
    }


@router.get("/download")
def download(org: Organization = Depends(get_current_organization)):
    png = qr_service.build_qr_png(org.id, org.name, for_print=True)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="guest-signin-qr-{org.id}.png"'},
    )
