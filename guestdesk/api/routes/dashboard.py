from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from guestdesk.api.deps import get_current_organization
from guestdesk.api.responses import success
from guestdesk.db.models import Organization
from guestdesk.db.session import get_db
from guestdesk.services.dashboard_service import get_dashboard_stats, get_recent_activity

router = APIRouter()


@router.get("/stats")
def dashboard_stats(
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    return success("Dashboard statistics retrieved successfully", get_dashboard_stats(db, org.id))


@router.get("/activity")
def dashboard_activity(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_organization),
):
    data = {"recentGuests": get_recent_activity(db, org.id, limit=limit)}
    return success("Recent activity retrieved successfully", data)
