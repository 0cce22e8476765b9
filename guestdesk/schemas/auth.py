from pydantic import BaseModel, EmailStr, Field

from guestdesk.schemas.organization import PHONE_PATTERN


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class OrganizationRegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    contactPerson: str = Field(min_length=1)
    phone: str = Field(pattern=PHONE_PATTERN)
    address: str = Field(min_length=1)
    locations: list[str] | None = None
    staffMembers: list[str] | None = None
    minGuestVisitMinutes: int | None = Field(default=None, ge=5, le=480)


class LoginResponse(BaseModel):
    token: str
    organization: dict
    expiresIn: str
