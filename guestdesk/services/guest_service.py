import logging
import math
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from guestdesk.core.clock import utcnow
from guestdesk.core.config import get_settings
from guestdesk.core.exceptions import AppException
from guestdesk.core.visit_timing import (
    calculate_visit_duration,
    display_status,
    expected_end_time,
    generate_guest_code,
    has_minimum_visit_time_passed,
    is_guest_expired,
)
from guestdesk.db.models import Guest, GuestStatus, Organization
from guestdesk.schemas.guest import GuestRegistrationRequest
from guestdesk.services.organization_service import get_active_organization

settings = get_settings()
logger = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_guest(guest: Guest, now: datetime | None = None) -> dict:
    now = now or utcnow()
    return {
        "id": guest.id,
        "guestName": guest.guest_name,
        "guestPhone": guest.guest_phone,
        "guestEmail": guest.guest_email,
        "guestCode": guest.guest_code,
        "organizationId": guest.organization_id,
        "location": guest.location,
        "personToSee": guest.person_to_see,
        "purpose": guest.purpose,
        "signInTime": _iso(guest.sign_in_time),
        "signOutTime": _iso(guest.sign_out_time),
        "expectedDuration": guest.expected_duration,
        "minVisitDuration": guest.min_visit_duration,
        "idCardNumber": guest.id_card_number,
        "idCardAssigned": bool(guest.id_card_assigned),
        "status": GuestStatus(guest.status).value,
        "securityNotified": bool(guest.security_notified),
        "expectedEndTime": _iso(expected_end_time(guest)),
        "isExpired": is_guest_expired(guest, now),
        "displayStatus": display_status(guest, now),
        "createdAt": _iso(guest.created_at),
        "updatedAt": _iso(guest.updated_at),
    }


def _code_in_use(db: Session, code: str) -> bool:
    return db.query(Guest.id).filter(Guest.guest_code == code).first() is not None


def register_guest(db: Session, payload: GuestRegistrationRequest) -> Guest:
    org = get_active_organization(db, payload.organizationId)

    for attempt in range(1, settings.GUEST_CODE_MAX_ATTEMPTS + 1):
        code = generate_guest_code()
        if _code_in_use(db, code):
            continue

        guest = Guest(
            guest_name=payload.guestName.strip(),
            guest_phone=payload.guestPhone,
            guest_email=payload.guestEmail.lower() if payload.guestEmail else None,
            guest_code=code,
            organization_id=org.id,
            location=payload.location.strip(),
            person_to_see=payload.personToSee.strip(),
            purpose=(payload.purpose or "").strip() or None,
            expected_duration=payload.expectedDuration,
            min_visit_duration=org.min_guest_visit_minutes,
            sign_in_time=utcnow(),
            status=GuestStatus.signed_in,
        )
        db.add(guest)
        try:
            db.commit()
        except IntegrityError:
            # Another registration took the same code between check and insert.
            db.rollback()
            logger.warning("guest.register code collision attempt=%s org_id=%s", attempt, org.id)
            continue
        db.refresh(guest)
        logger.info("guest.registered id=%s org_id=%s code=%s", guest.id, org.id, code)
        return guest

    logger.error("guest.register exhausted %s code attempts org_id=%s", settings.GUEST_CODE_MAX_ATTEMPTS, org.id)
    raise AppException("Unable to generate unique guest code. Please try again.", status_code=500)


def self_sign_out(db: Session, guest_code: str, organization_id: str, now: datetime | None = None) -> Guest:
    guest = (
        db.query(Guest)
        .filter(
            Guest.guest_code == guest_code.strip(),
            Guest.organization_id == organization_id,
            Guest.status == GuestStatus.signed_in,
        )
        .first()
    )
    if not guest:
        raise AppException("Guest not found or already signed out", status_code=404)

    now = now or utcnow()
    if not has_minimum_visit_time_passed(guest.sign_in_time, guest.min_visit_duration, now):
        raise AppException(
            f"Minimum visit time of {guest.min_visit_duration} minutes has not passed",
            status_code=400,
        )

    guest.sign_out_time = now
    guest.status = GuestStatus.signed_out
    db.commit()
    db.refresh(guest)

    logger.info(
        "guest.self_signed_out id=%s duration=%smin",
        guest.id,
        calculate_visit_duration(guest.sign_in_time, guest.sign_out_time),
    )
    return guest


def sign_out_summary(guest: Guest) -> dict:
    return {
        "guestCode": guest.guest_code,
        "signOutTime": _iso(guest.sign_out_time),
        "visitDuration": calculate_visit_duration(guest.sign_in_time, guest.sign_out_time),
    }


def _get_org_guest(db: Session, organization_id: str, guest_id: str) -> Guest:
    guest = db.query(Guest).filter(Guest.id == guest_id, Guest.organization_id == organization_id).first()
    if not guest:
        raise AppException("Guest not found", status_code=404)
    return guest


def admin_sign_out(db: Session, organization_id: str, guest_id: str, now: datetime | None = None) -> Guest:
    guest = _get_org_guest(db, organization_id, guest_id)
    if guest.status != GuestStatus.signed_in:
        # 404 keeps repeated sign-outs (dashboard auto-expiry) idempotent.
        raise AppException("Guest is not currently signed in", status_code=404)

    # No minimum-stay check: staff may close a visit early.
    guest.sign_out_time = now or utcnow()
    guest.status = GuestStatus.signed_out
    db.commit()
    db.refresh(guest)
    logger.info("guest.admin_signed_out id=%s org_id=%s", guest.id, organization_id)
    return guest


def extend_visit(db: Session, organization_id: str, guest_id: str, additional_minutes: int | None) -> Guest:
    if not additional_minutes or additional_minutes <= 0:
        raise AppException("Additional minutes must be a positive number", status_code=400)

    guest = _get_org_guest(db, organization_id, guest_id)
    if guest.status != GuestStatus.signed_in:
        raise AppException("Can only extend visit for signed-in guests", status_code=400)

    guest.expected_duration = guest.expected_duration + additional_minutes
    db.commit()
    db.refresh(guest)
    logger.info("guest.extended id=%s by=%smin total=%smin", guest.id, additional_minutes, guest.expected_duration)
    return guest


def assign_id_card(db: Session, organization_id: str, guest_id: str, id_card_number: str | None) -> Guest:
    card = (id_card_number or "").strip()
    if not card:
        raise AppException("ID card number is required", status_code=400)

    guest = (
        db.query(Guest)
        .filter(
            Guest.id == guest_id,
            Guest.organization_id == organization_id,
            Guest.status == GuestStatus.signed_in,
        )
        .first()
    )
    if not guest:
        raise AppException("Guest not found", status_code=404)

    guest.id_card_number = card
    guest.id_card_assigned = True
    db.commit()
    db.refresh(guest)
    logger.info("guest.id_assigned id=%s card=%s", guest.id, card)
    return guest


def list_guests(
    db: Session,
    organization_id: str,
    page: int = 1,
    limit: int = 50,
    status: str | None = None,
) -> dict:
    page = max(page, 1)
    limit = max(limit, 1)

    query = db.query(Guest).filter(Guest.organization_id == organization_id)
    if status:
        try:
            query = query.filter(Guest.status == GuestStatus(status))
        except ValueError as exc:
            raise AppException(f"Invalid status filter: {status}", status_code=400) from exc

    total = query.count()
    rows = (
        query.order_by(Guest.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    now = utcnow()
    return {
        "guests": [serialize_guest(row, now) for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


def guests_for_export(
    db: Session,
    organization: Organization,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[Guest]:
    query = db.query(Guest).filter(Guest.organization_id == organization.id)
    if start_date:
        query = query.filter(Guest.sign_in_time >= datetime.combine(start_date, time.min))
    if end_date:
        # Whole end day is included.
        query = query.filter(Guest.sign_in_time < datetime.combine(end_date + timedelta(days=1), time.min))
    return query.order_by(Guest.sign_in_time.desc()).all()
