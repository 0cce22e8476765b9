import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SqlEnum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from guestdesk.core.clock import utcnow
from guestdesk.db.base import Base


class GuestStatus(str, Enum):
    signed_in = "signed-in"
    signed_out = "signed-out"
    # Display-only: derived from the visit timer, never written by the API.
    expired = "expired"


class Guest(Base):
    __tablename__ = "guests"
    __table_args__ = (
        Index("ix_guests_org_status", "organization_id", "status"),
        Index("ix_guests_org_sign_in_time", "organization_id", "sign_in_time"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    guest_name: Mapped[str] = mapped_column(String(100), nullable=False)
    guest_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    guest_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guest_code: Mapped[str] = mapped_column(String(6), unique=True, nullable=False, index=True)
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    location: Mapped[str] = mapped_column(String(120), nullable=False)
    person_to_see: Mapped[str] = mapped_column(String(120), nullable=False)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    sign_in_time: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    sign_out_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    expected_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    min_visit_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    id_card_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    id_card_assigned: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[GuestStatus] = mapped_column(
        SqlEnum(GuestStatus, values_callable=lambda enum: [item.value for item in enum]),
        nullable=False,
        default=GuestStatus.signed_in,
        index=True,
    )
    security_notified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    organization = relationship("Organization", back_populates="guests")
