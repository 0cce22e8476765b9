import csv
import io
from datetime import datetime

from guestdesk.db.models import Guest, Organization

# Row key -> CSV header, in column order.
EXPORT_COLUMNS = {
    "guestName": "Guest Name",
    "guestPhone": "Phone",
    "guestEmail": "Email",
    "guestCode": "Guest Code",
    "location": "Location",
    "personToSee": "Person to See",
    "purpose": "Purpose",
    "signInTime": "Sign-In Time",
    "signOutTime": "Sign-Out Time",
    "expectedDuration": "Expected Duration",
    "status": "Status",
    "idCardAssigned": "ID Card Assigned",
    "idCardNumber": "ID Card Number",
}

CSV_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def export_row(guest: Guest, organization: Organization | None = None) -> dict:
    status = guest.status.value if guest.status else None
    return {
        "guestName": guest.guest_name or "N/A",
        "guestPhone": guest.guest_phone or "N/A",
        "guestEmail": guest.guest_email or "Not provided",
        "guestCode": guest.guest_code or "N/A",
        "location": guest.location or "N/A",
        "personToSee": guest.person_to_see or "N/A",
        "purpose": guest.purpose or "Not specified",
        "signInTime": guest.sign_in_time.isoformat() if guest.sign_in_time else None,
        "signOutTime": guest.sign_out_time.isoformat() if guest.sign_out_time else None,
        "expectedDuration": guest.expected_duration or 0,
        "status": status or "Unknown",
        "idCardAssigned": bool(guest.id_card_assigned),
        "idCardNumber": guest.id_card_number or "Not assigned",
        "organization": organization.name if organization else "Unknown",
    }


def _csv_time(value: str | None, empty: str) -> str:
    if not value:
        return empty
    return datetime.fromisoformat(value).strftime(CSV_TIME_FORMAT)


def _csv_cell(key: str, row: dict) -> str:
    value = row.get(key)
    if key == "signInTime":
        return _csv_time(value, "N/A")
    if key == "signOutTime":
        return _csv_time(value, "Still signed in")
    if key == "expectedDuration":
        return f"{value} minutes"
    if key == "idCardAssigned":
        return "Yes" if value else "No"
    return "" if value is None else str(value)


def rows_to_csv(rows: list[dict]) -> str:
    """Render export rows (as produced by ``export_row``) as CSV text."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(EXPORT_COLUMNS.values()))
    writer.writeheader()
    for row in rows:
        writer.writerow({header: _csv_cell(key, row) for key, header in EXPORT_COLUMNS.items()})
    return buffer.getvalue()


def export_filename(organization: Organization, start: str | None = None, end: str | None = None) -> str:
    slug = "-".join(organization.name.lower().split()) or "guests"
    parts = [slug, "guests"]
    if start:
        parts.append(start)
    if end:
        parts.append(end)
    return "_".join(parts) + ".csv"
