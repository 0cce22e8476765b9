import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from guestdesk.core.clock import utcnow
from guestdesk.core.visit_timing import (
    display_status,
    expected_end_time,
    format_time_remaining,
    is_guest_expired,
    minutes_remaining,
)
from guestdesk.db.models.guest import GuestStatus


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class GuestView:
    id: str
    guest_name: str
    guest_code: str
    location: str
    person_to_see: str
    status: str
    sign_in_time: datetime
    expected_duration: int
    sign_out_time: datetime | None = None
    id_card_assigned: bool = False
    id_card_number: str | None = None

    @classmethod
    def from_api(cls, item: dict) -> "GuestView":
        return cls(
            id=item["id"],
            guest_name=item.get("guestName", ""),
            guest_code=item.get("guestCode", ""),
            location=item.get("location", ""),
            person_to_see=item.get("personToSee", ""),
            status=item.get("status", GuestStatus.signed_in.value),
            sign_in_time=_parse_time(item["signInTime"]),
            expected_duration=int(item.get("expectedDuration") or 0),
            sign_out_time=_parse_time(item.get("signOutTime")),
            id_card_assigned=bool(item.get("idCardAssigned")),
            id_card_number=item.get("idCardNumber"),
        )

    @property
    def is_signed_in(self) -> bool:
        return self.status == GuestStatus.signed_in

    def expected_end(self) -> datetime:
        return expected_end_time(self)

    def is_expired(self, now: datetime | None = None) -> bool:
        return is_guest_expired(self, now)

    def badge(self, now: datetime | None = None) -> str:
        return display_status(self, now)

    def time_remaining_label(self, now: datetime | None = None) -> str:
        return format_time_remaining(minutes_remaining(self, now))


@dataclass(frozen=True)
class DashboardSnapshot:
    guests: tuple[GuestView, ...] = ()
    stats: dict = field(default_factory=dict)
    error: str | None = None
    refreshed_at: datetime | None = None

    def signed_in_guests(self) -> list[GuestView]:
        return [guest for guest in self.guests if guest.is_signed_in]


class DashboardState:
    """View-state store shared by the tick and refresh tasks.

    Readers get immutable snapshots; writers go through the lock.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._snapshot = DashboardSnapshot()

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    async def replace_data(self, guests: list[GuestView], stats: dict) -> None:
        async with self._lock:
            self._snapshot = DashboardSnapshot(
                guests=tuple(guests),
                stats=dict(stats),
                error=None,
                refreshed_at=utcnow(),
            )

    async def set_error(self, message: str) -> None:
        async with self._lock:
            self._snapshot = replace(self._snapshot, error=message)

    async def clear_error(self) -> None:
        async with self._lock:
            self._snapshot = replace(self._snapshot, error=None)
