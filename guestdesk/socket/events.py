import logging

from guestdesk.core.config import get_settings
from guestdesk.core.security import InvalidTokenError, read_organization_id
from guestdesk.db.models import Organization
from guestdesk.db.session import SessionLocal

settings = get_settings()
logger = logging.getLogger(__name__)


def _resolve_organization_id(auth: dict | None) -> str | None:
    token = (auth or {}).get("token")
    if not token:
        return None
    try:
        organization_id = read_organization_id(token)
    except InvalidTokenError:
        return None

    db = SessionLocal()
    try:
        org = db.get(Organization, organization_id)
        return org.id if org and org.is_active else None
    finally:
        db.close()


def organization_room(organization_id: str) -> str:
    return f"org:{organization_id}"


def register_socket_events(sio):
    namespace = settings.DASHBOARD_NAMESPACE

    @sio.on("connect", namespace=namespace)
    async def connect(sid, environ, auth=None):
        organization_id = _resolve_organization_id(auth)
        if not organization_id:
            logger.info("dashboard socket rejected sid=%s", sid)
            return False
        await sio.save_session(sid, {"organizationId": organization_id}, namespace=namespace)
        await sio.enter_room(sid, organization_room(organization_id), namespace=namespace)
        logger.info("dashboard socket connected sid=%s org_id=%s", sid, organization_id)
        return True

    @sio.on("disconnect", namespace=namespace)
    async def disconnect(sid, *args):
        logger.info("dashboard socket disconnected sid=%s", sid)
