import logging

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from guestdesk.api.routes import api_router
from guestdesk.core.config import get_settings
from guestdesk.core.exceptions import register_exception_handlers
from guestdesk.core.logging import setup_logging
from guestdesk.core.security import hash_password
from guestdesk.db.models import Organization
from guestdesk.db.session import SessionLocal, engine, init_db
from guestdesk.middleware.request_context import RequestContextMiddleware
from guestdesk.socket.server import sio

settings = get_settings()
setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

fastapi_app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
fastapi_app.include_router(api_router, prefix=settings.API_PREFIX)
fastapi_app.add_middleware(RequestContextMiddleware)
fastapi_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(fastapi_app)

DEMO_EMAIL = "demo@organization.com"


def _seed_dev_data(db: Session):
    if db.query(Organization).filter(Organization.email == DEMO_EMAIL).first():
        return

    demo = Organization(
        name="Demo Organization",
        email=DEMO_EMAIL,
        password_hash=hash_password("demo123"),
        contact_person="John Demo",
        phone="+1234567890",
        address="123 Demo Street, Demo City, DC 12345",
        locations=[
            "Reception",
            "Main Office",
            "Conference Room A",
            "Conference Room B",
            "IT Department",
            "HR Department",
        ],
        staff_members=[
            "John Smith - Manager",
            "Jane Doe - HR Director",
            "Mike Johnson - IT Lead",
            "Sarah Wilson - Operations",
            "Reception Staff",
        ],
        min_guest_visit_minutes=settings.DEFAULT_MIN_GUEST_VISIT_MINUTES,
        is_active=True,
    )
    try:
        db.add(demo)
        db.commit()
        logger.info("Seeded demo organization %s", DEMO_EMAIL)
    except IntegrityError:
        # Demo organization created concurrently by another worker.
        db.rollback()


@fastapi_app.on_event("startup")
async def on_startup():
    init_db()
    logger.info(
        "%s starting environment=%s database=%s client_url=%s",
        settings.APP_NAME,
        settings.ENVIRONMENT,
        engine.url.render_as_string(hide_password=True),
        settings.CLIENT_URL,
    )
    db = SessionLocal()
    try:
        if settings.ENVIRONMENT.lower() == "development":
            _seed_dev_data(db)
    finally:
        db.close()


app = socketio.ASGIApp(
    sio,
    other_asgi_app=fastapi_app,
    socketio_path=settings.SOCKET_PATH.lstrip("/"),
)
