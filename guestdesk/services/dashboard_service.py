from datetime import datetime, time, timedelta

from sqlalchemy.orm import Session

from guestdesk.core.clock import utcnow
from guestdesk.db.models import Guest, GuestStatus


def get_dashboard_stats(db: Session, organization_id: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = datetime.combine(now.date(), time.min)
    tomorrow = today + timedelta(days=1)

    base = db.query(Guest).filter(Guest.organization_id == organization_id)
    return {
        "totalGuests": base.count(),
        "activeGuests": base.filter(Guest.status == GuestStatus.signed_in).count(),
        "todayGuests": base.filter(Guest.created_at >= today, Guest.created_at < tomorrow).count(),
        "pendingIdAssignments": base.filter(
            Guest.status == GuestStatus.signed_in,
            Guest.id_card_assigned.is_(False),
        ).count(),
    }


def get_recent_activity(db: Session, organization_id: str, limit: int = 10) -> list[dict]:
    rows = (
        db.query(Guest)
        .filter(Guest.organization_id == organization_id)
        .order_by(Guest.created_at.desc())
        .limit(max(limit, 1))
        .all()
    )
    return [
        {
            "id": row.id,
            "guestName": row.guest_name,
            "guestCode": row.guest_code,
            "personToSee": row.person_to_see,
            "status": GuestStatus(row.status).value,
            "signInTime": row.sign_in_time.isoformat() if row.sign_in_time else None,
            "signOutTime": row.sign_out_time.isoformat() if row.sign_out_time else None,
            "idCardAssigned": bool(row.id_card_assigned),
        }
        for row in rows
    ]
