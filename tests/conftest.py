import os

# Settings are cached on first import, so the environment must be set first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["CLIENT_URL"] = "http://guests.test-client.com"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from guestdesk.core.clock import utcnow
from guestdesk.db.base import Base
from guestdesk.db.models import Guest
from guestdesk.db.session import build_engine, get_db
from guestdesk.main import fastapi_app

engine = build_engine("sqlite://")
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

DEFAULT_PASSWORD = "secret123"


def _override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    fastapi_app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_org(client):
    counter = {"n": 0}

    def _make(**overrides) -> dict:
        counter["n"] += 1
        payload = {
            "name": f"Acme {counter['n']}",
            "email": f"admin{counter['n']}@acme.com",
            "password": DEFAULT_PASSWORD,
            "contactPerson": "Ada Admin",
            "phone": "+15551234567",
            "address": "1 Main Street",
            "locations": ["Reception", "Lab"],
            "staffMembers": ["Dr. Smith", "Reception Staff"],
            "minGuestVisitMinutes": 15,
        }
        payload.update(overrides)
        created = client.post("/api/auth/register", json=payload)
        assert created.status_code == 201, created.text

        login = client.post("/api/auth/login", json={"email": payload["email"], "password": payload["password"]})
        assert login.status_code == 200, login.text
        data = login.json()["data"]
        return {
            "id": data["organization"]["id"],
            "token": data["token"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
            "organization": data["organization"],
        }

    return _make


@pytest.fixture
def org(make_org):
    return make_org()


@pytest.fixture
def register_guest(client):
    def _register(org_id: str, **overrides) -> str:
        payload = {
            "guestName": "Grace Guest",
            "guestPhone": "+15559876543",
            "guestEmail": "grace@visitor.com",
            "organizationId": org_id,
            "location": "Reception",
            "personToSee": "Dr. Smith",
            "purpose": "Interview",
            "expectedDuration": 30,
        }
        payload.update(overrides)
        response = client.post("/api/guests/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]["guestCode"]

    return _register


@pytest.fixture
def backdate(db):
    """Move a guest's sign-in time into the past by the given minutes."""

    def _backdate(guest_code: str, minutes: float) -> Guest:
        db.expire_all()
        guest = db.query(Guest).filter(Guest.guest_code == guest_code).one()
        guest.sign_in_time = utcnow() - timedelta(minutes=minutes)
        db.commit()
        db.refresh(guest)
        return guest

    return _backdate


@pytest.fixture
def guest_id(db):
    def _guest_id(guest_code: str) -> str:
        return db.query(Guest.id).filter(Guest.guest_code == guest_code).scalar()

    return _guest_id
