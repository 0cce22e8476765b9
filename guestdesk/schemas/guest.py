from pydantic import BaseModel, EmailStr, Field, field_validator

from guestdesk.schemas.organization import PHONE_PATTERN


class GuestRegistrationRequest(BaseModel):
    guestName: str = Field(min_length=1, max_length=100)
    guestPhone: str = Field(pattern=PHONE_PATTERN)
    guestEmail: EmailStr | None = None
    organizationId: str = Field(min_length=1)
    location: str = Field(min_length=1)
    personToSee: str = Field(min_length=1)
    purpose: str | None = Field(default=None, max_length=200)
    expectedDuration: int = Field(ge=5, le=480)

    @field_validator("guestEmail", mode="before")
    @classmethod
    def _blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class GuestSignOutRequest(BaseModel):
    guestCode: str = Field(min_length=1)
    organizationId: str = Field(min_length=1)


class AssignIdCardRequest(BaseModel):
    idCardNumber: str | None = None


class ExtendVisitRequest(BaseModel):
    # Range is checked by the service so the error names the rule.
    additionalMinutes: int | None = None
