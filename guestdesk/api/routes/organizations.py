from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from guestdesk.api.deps import get_current_organization
from guestdesk.api.responses import success
from guestdesk.db.models import Organization
from guestdesk.db.session import get_db
from guestdesk.schemas.organization import OrganizationProfileUpdate
from guestdesk.services import organization_service

router = APIRouter()


@router.put("/profile")
def update_profile(
    payload: OrganizationProfileUpdate,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    updated = organization_service.update_profile(db, org, payload)
    return success("Organization updated successfully", organization_service.serialize_organization(updated))


@router.get("/{organization_id}")
def get_organization(organization_id: str, db: Session = Depends(get_db)):
    org = organization_service.get_active_organization(db, organization_id)
    return success("Organization retrieved successfully", organization_service.serialize_organization(org))
