import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from guestdesk.api.deps import get_current_organization
from guestdesk.api.responses import success
from guestdesk.db.models import GuestStatus, Organization
from guestdesk.db.session import get_db
from guestdesk.schemas.guest import (
    AssignIdCardRequest,
    ExtendVisitRequest,
    GuestRegistrationRequest,
    GuestSignOutRequest,
)
from guestdesk.services import export_service, guest_service
from guestdesk.socket.server import publish_guest_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_guest(payload: GuestRegistrationRequest, db: Session = Depends(get_db)):
    guest = guest_service.register_guest(db, payload)
    await publish_guest_event(guest.organization_id, guest.id, GuestStatus.signed_in.value, "registered")
    return success("Guest registered successfully", {"guestCode": guest.guest_code})


@router.post("/signout")
async def guest_sign_out(payload: GuestSignOutRequest, db: Session = Depends(get_db)):
    guest = guest_service.self_sign_out(db, payload.guestCode, payload.organizationId)
    data = guest_service.sign_out_summary(guest)
    await publish_guest_event(guest.organization_id, guest.id, GuestStatus.signed_out.value, "self_signed_out")
    return success("Guest signed out successfully", data)


@router.get("")
def list_guests(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    status: str | None = Query(None),
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    data = guest_service.list_guests(db, org.id, page=page, limit=limit, status=status)
    return success("Guests retrieved successfully", data)


@router.get("/export")
def export_guests(
    startDate: date | None = Query(None),
    endDate: date | None = Query(None),
    format: str = Query("json", pattern="^(json|csv)$"),
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    guests = guest_service.guests_for_export(db, org, start_date=startDate, end_date=endDate)
    rows = [export_service.export_row(guest, org) for guest in guests]
    logger.info("guest.export org_id=%s rows=%s format=%s", org.id, len(rows), format)

    if format == "csv":
        filename = export_service.export_filename(
            org,
            startDate.isoformat() if startDate else None,
            endDate.isoformat() if endDate else None,
        )
        return Response(
            content=export_service.rows_to_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return success("Guest data exported successfully", rows)


@router.patch("/{guest_id}/assign-id")
async def assign_id_card(
    guest_id: str,
    payload: AssignIdCardRequest,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    guest = guest_service.assign_id_card(db, org.id, guest_id, payload.idCardNumber)
    await publish_guest_event(org.id, guest.id, GuestStatus.signed_in.value, "id_assigned")
    return success("ID card assigned successfully")


@router.patch("/{guest_id}/signout")
async def admin_sign_out(
    guest_id: str,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    guest = guest_service.admin_sign_out(db, org.id, guest_id)
    await publish_guest_event(org.id, guest.id, GuestStatus.signed_out.value, "signed_out")
    return success("Guest signed out successfully")


@router.patch("/{guest_id}/extend")
async def extend_visit(
    guest_id: str,
    payload: ExtendVisitRequest,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    guest = guest_service.extend_visit(db, org.id, guest_id, payload.additionalMinutes)
    await publish_guest_event(org.id, guest.id, GuestStatus.signed_in.value, "extended")
    return success(
        f"Visit extended by {payload.additionalMinutes} minutes",
        {"newExpectedDuration": guest.expected_duration},
    )
