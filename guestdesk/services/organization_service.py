import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from guestdesk.core.config import get_settings
from guestdesk.core.exceptions import AppException
from guestdesk.core.security import create_access_token, describe_expiry, hash_password, verify_password
from guestdesk.db.models import Organization
from guestdesk.schemas.auth import LoginResponse, OrganizationRegisterRequest
from guestdesk.schemas.organization import OrganizationProfileUpdate

settings = get_settings()
logger = logging.getLogger(__name__)


def _clean_list(values: list[str]) -> list[str]:
    return [value.strip() for value in values if value and value.strip()]


def serialize_organization(org: Organization) -> dict:
    return {
        "id": org.id,
        "name": org.name,
        "email": org.email,
        "contactPerson": org.contact_person,
        "phone": org.phone,
        "address": org.address,
        "locations": list(org.locations or []),
        "staffMembers": list(org.staff_members or []),
        "minGuestVisitMinutes": org.min_guest_visit_minutes,
        "qrCodeUrl": org.qr_code_url,
        "isActive": org.is_active,
        "createdAt": org.created_at.isoformat() if org.created_at else None,
        "updatedAt": org.updated_at.isoformat() if org.updated_at else None,
    }


def register_organization(db: Session, payload: OrganizationRegisterRequest) -> dict:
    email = payload.email.lower()
    existing = db.query(Organization).filter(Organization.email == email).first()
    if existing:
        raise AppException("Organization with this email already exists", status_code=409)

    org = Organization(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        contact_person=payload.contactPerson.strip(),
        phone=payload.phone,
        address=payload.address.strip(),
        locations=_clean_list(payload.locations) if payload.locations is not None else settings.default_locations,
        staff_members=(
            _clean_list(payload.staffMembers)
            if payload.staffMembers is not None
            else settings.default_staff_members
        ),
        min_guest_visit_minutes=(
            payload.minGuestVisitMinutes
            if payload.minGuestVisitMinutes is not None
            else settings.DEFAULT_MIN_GUEST_VISIT_MINUTES
        ),
    )
    db.add(org)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise AppException("Organization with this email already exists", status_code=409) from exc
    db.refresh(org)
    logger.info("organization.registered id=%s email=%s", org.id, org.email)
    return {"id": org.id, "name": org.name, "email": org.email}


def login(db: Session, email: str, password: str) -> LoginResponse:
    login_key = (email or "").strip().lower()
    org = db.query(Organization).filter(Organization.email == login_key).first()
    if not org:
        raise AppException("Invalid email or password", status_code=401)
    if not org.is_active:
        raise AppException("Organization account is deactivated", status_code=401)
    if not verify_password(password, org.password_hash):
        raise AppException("Invalid email or password", status_code=401)

    return LoginResponse(
        token=create_access_token(org.id),
        organization=serialize_organization(org),
        expiresIn=describe_expiry(),
    )


def get_active_organization(db: Session, organization_id: str) -> Organization:
    org = db.query(Organization).filter(Organization.id == organization_id).first()
    if not org or not org.is_active:
        raise AppException("Organization not found or inactive", status_code=404)
    return org


def update_profile(db: Session, org: Organization, payload: OrganizationProfileUpdate) -> Organization:
    # Empty strings leave the stored value untouched.
    if payload.name:
        org.name = payload.name.strip()
    if payload.contactPerson:
        org.contact_person = payload.contactPerson.strip()
    if payload.phone:
        org.phone = payload.phone
    if payload.address:
        org.address = payload.address.strip()
    if payload.locations is not None:
        org.locations = _clean_list(payload.locations)
    if payload.staffMembers is not None:
        org.staff_members = _clean_list(payload.staffMembers)
    if payload.minGuestVisitMinutes is not None:
        # In-progress visits keep the minimum they were registered with.
        org.min_guest_visit_minutes = payload.minGuestVisitMinutes
    db.commit()
    db.refresh(org)
    logger.info("organization.updated id=%s", org.id)
    return org
