"""Visit timer rules shared by the API and the dashboard client.

Functions that take a ``guest`` accept anything exposing ``status``,
``sign_in_time`` and ``expected_duration``: the ORM ``Guest`` row or the
client's ``GuestView``. All timestamps are naive UTC.
"""
import math
import re
import secrets
from datetime import datetime, timedelta

from guestdesk.core.clock import utcnow
from guestdesk.db.models.guest import GuestStatus

GUEST_CODE_PATTERN = re.compile(r"^\d{6}$")


def generate_guest_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def is_valid_guest_code(code: str | None) -> bool:
    return bool(code) and GUEST_CODE_PATTERN.match(code) is not None


def expected_end_time(guest) -> datetime:
    return guest.sign_in_time + timedelta(minutes=guest.expected_duration)


def is_guest_expired(guest, now: datetime | None = None) -> bool:
    """True only for a signed-in guest whose expected end time has passed."""
    if guest.status != GuestStatus.signed_in:
        return False
    now = now or utcnow()
    return now > expected_end_time(guest)


def display_status(guest, now: datetime | None = None) -> str:
    if is_guest_expired(guest, now):
        return GuestStatus.expired.value
    return GuestStatus(guest.status).value


def minutes_remaining(guest, now: datetime | None = None) -> int:
    now = now or utcnow()
    delta = expected_end_time(guest) - now
    return math.floor(delta.total_seconds() / 60)


def format_time_remaining(minutes: int) -> str:
    if minutes < 0:
        return f"Overdue by {abs(minutes)} min"
    return f"{minutes} min remaining"


def has_minimum_visit_time_passed(sign_in_time: datetime, min_visit_minutes: int, now: datetime | None = None) -> bool:
    now = now or utcnow()
    elapsed_minutes = (now - sign_in_time).total_seconds() / 60
    return elapsed_minutes >= min_visit_minutes


def calculate_visit_duration(sign_in_time: datetime, sign_out_time: datetime | None = None) -> int:
    end_time = sign_out_time or utcnow()
    # Half-up rounding, not banker's rounding.
    return math.floor((end_time - sign_in_time).total_seconds() / 60 + 0.5)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return _plural(minutes, "minute")

    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return _plural(hours, "hour")
    return f"{_plural(hours, 'hour')} {_plural(remaining, 'minute')}"
