from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from guestdesk.api.responses import success
from guestdesk.db.session import get_db
from guestdesk.schemas.auth import LoginRequest, OrganizationRegisterRequest
from guestdesk.services import organization_service

router = APIRouter()


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    data = organization_service.login(db, email=payload.email, password=payload.password)
    return success("Login successful", data.model_dump())


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: OrganizationRegisterRequest, db: Session = Depends(get_db)):
    data = organization_service.register_organization(db, payload)
    return success("Organization registered successfully", data)
