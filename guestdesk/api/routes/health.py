from fastapi import APIRouter

from guestdesk.core.clock import utcnow
from guestdesk.core.config import get_settings

router = APIRouter()
settings = get_settings()


@router.get("/health")
def health():
    return {
        "success": True,
        "message": "Guest Management API is running!",
        "timestamp": utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
    }
