from pydantic import BaseModel, Field

PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"


class OrganizationProfileUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    contactPerson: str | None = None
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    address: str | None = None
    locations: list[str] | None = None
    staffMembers: list[str] | None = None
    minGuestVisitMinutes: int | None = Field(default=None, ge=5, le=480)
