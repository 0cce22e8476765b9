from guestdesk.db.models.guest import Guest, GuestStatus
from guestdesk.db.models.organization import Organization

__all__ = [
    "Guest",
    "GuestStatus",
    "Organization",
]
