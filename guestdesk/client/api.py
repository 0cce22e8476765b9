import json
import logging
from datetime import date
from urllib import error, request
from urllib.parse import urlencode

from guestdesk.client.session import SessionContext
from guestdesk.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message: str, status_code: int = 0):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class GuestDeskClient:
    """Blocking HTTP client for the GuestDesk API.

    Authenticated calls take the ``SessionContext`` explicitly; ``login`` and
    ``logout`` are the only methods that change it.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout or settings.CLIENT_REQUEST_TIMEOUT_SECONDS

    def _url(self, path: str, query: dict | None = None) -> str:
        url = f"{self.base_url}{settings.API_PREFIX}{path}"
        params = {key: value for key, value in (query or {}).items() if value is not None}
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    def _send(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        session: SessionContext | None = None,
        query: dict | None = None,
        raw: bool = False,
    ):
        headers = {"Accept": "application/json"}
        if session is not None:
            headers.update(session.auth_headers())
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = request.Request(self._url(path, query), data=data, method=method, headers=headers)
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                payload = resp.read()
        except error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            try:
                message = json.loads(detail).get("message") or detail
            except (json.JSONDecodeError, AttributeError):
                message = detail or exc.reason
            raise ApiError(str(message), status_code=exc.code) from exc
        except error.URLError as exc:
            raise ApiError(f"Unable to reach API: {exc.reason}") from exc

        if raw:
            return payload
        return json.loads(payload.decode("utf-8")) if payload else {}

    # Public endpoints

    def health(self) -> dict:
        return self._send("GET", "/health")

    def register_organization(self, **fields) -> dict:
        return self._send("POST", "/auth/register", body=fields)["data"]

    def login(self, session: SessionContext, email: str, password: str) -> dict:
        data = self._send("POST", "/auth/login", body={"email": email, "password": password})["data"]
        session.load(data["token"], data["organization"])
        return data

    def logout(self, session: SessionContext) -> None:
        session.clear()

    def get_organization(self, organization_id: str) -> dict:
        return self._send("GET", f"/organizations/{organization_id}")["data"]

    def register_guest(self, **fields) -> str:
        return self._send("POST", "/guests/register", body=fields)["data"]["guestCode"]

    def guest_sign_out(self, guest_code: str, organization_id: str) -> dict:
        body = {"guestCode": guest_code, "organizationId": organization_id}
        return self._send("POST", "/guests/signout", body=body)["data"]

    # Authenticated endpoints

    def update_profile(self, session: SessionContext, **fields) -> dict:
        data = self._send("PUT", "/organizations/profile", body=fields, session=session)["data"]
        session.organization = data
        return data

    def list_guests(self, session: SessionContext, page: int = 1, limit: int = 50, status: str | None = None) -> dict:
        query = {"page": page, "limit": limit, "status": status}
        return self._send("GET", "/guests", session=session, query=query)["data"]

    def dashboard_stats(self, session: SessionContext) -> dict:
        return self._send("GET", "/dashboard/stats", session=session)["data"]

    def recent_activity(self, session: SessionContext, limit: int = 10) -> list[dict]:
        data = self._send("GET", "/dashboard/activity", session=session, query={"limit": limit})["data"]
        return data["recentGuests"]

    def export_guests(
        self,
        session: SessionContext,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[dict]:
        query = {
            "startDate": start_date.isoformat() if start_date else None,
            "endDate": end_date.isoformat() if end_date else None,
        }
        return self._send("GET", "/guests/export", session=session, query=query)["data"]

    def export_guests_csv(
        self,
        session: SessionContext,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> str:
        query = {
            "startDate": start_date.isoformat() if start_date else None,
            "endDate": end_date.isoformat() if end_date else None,
            "format": "csv",
        }
        return self._send("GET", "/guests/export", session=session, query=query, raw=True).decode("utf-8")

    def assign_id_card(self, session: SessionContext, guest_id: str, id_card_number: str) -> None:
        self._send("PATCH", f"/guests/{guest_id}/assign-id", body={"idCardNumber": id_card_number}, session=session)

    def sign_out_guest(self, session: SessionContext, guest_id: str) -> None:
        self._send("PATCH", f"/guests/{guest_id}/signout", session=session)

    def extend_visit(self, session: SessionContext, guest_id: str, additional_minutes: int) -> int:
        body = {"additionalMinutes": additional_minutes}
        data = self._send("PATCH", f"/guests/{guest_id}/extend", body=body, session=session)["data"]
        return data["newExpectedDuration"]

    def generate_qr(self, session: SessionContext) -> str:
        data = self._send("POST", "/qr/generate", session=session)["data"]
        session.organization["qrCodeUrl"] = data["qrCodeUrl"]
        return data["qrCodeUrl"]

    def current_qr(self, session: SessionContext) -> str | None:
        return self._send("GET", "/qr/current", session=session)["data"]["qrCodeUrl"]
