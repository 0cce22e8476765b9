import io
import json
from urllib import error

import pytest

from guestdesk.client import api
from guestdesk.client.api import ApiError, GuestDeskClient
from guestdesk.client.session import NotAuthenticated, SessionContext


class _Response(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def _http_error(url: str, code: int, body: bytes) -> error.HTTPError:
    return error.HTTPError(url, code, "error", {}, io.BytesIO(body))


@pytest.fixture
def sent(monkeypatch):
    """Captures outgoing requests; tests queue replies via ``sent.replies``."""

    class Recorder:
        requests = []
        replies = []

    def fake_urlopen(req, timeout=None):
        Recorder.requests.append(req)
        reply = Recorder.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return _Response(json.dumps(reply).encode("utf-8"))

    Recorder.requests = []
    Recorder.replies = []
    monkeypatch.setattr(api.request, "urlopen", fake_urlopen)
    return Recorder


def test_session_context_lifecycle():
    session = SessionContext()
    assert session.is_authenticated is False
    with pytest.raises(NotAuthenticated):
        session.auth_headers()

    session.load("tok", {"id": "org-9", "name": "Acme"})
    assert session.organization_id == "org-9"
    assert session.auth_headers() == {"Authorization": "Bearer tok"}

    session.clear()
    assert session.token is None
    assert session.organization == {}


def test_login_loads_session(sent):
    sent.replies.append(
        {"success": True, "message": "Login successful", "data": {"token": "jwt", "organization": {"id": "o1"}}}
    )
    client = GuestDeskClient(base_url="http://api.local/")
    session = SessionContext()

    client.login(session, "admin@acme.com", "secret123")

    req = sent.requests[0]
    assert req.full_url == "http://api.local/api/auth/login"
    assert req.get_method() == "POST"
    assert json.loads(req.data) == {"email": "admin@acme.com", "password": "secret123"}
    assert session.token == "jwt"
    assert session.organization_id == "o1"


def test_authenticated_call_sends_bearer_and_query(sent):
    sent.replies.append({"success": True, "data": {"guests": [], "pagination": {}}})
    client = GuestDeskClient(base_url="http://api.local")
    session = SessionContext(token="jwt", organization={"id": "o1"})

    client.list_guests(session, page=2, limit=25)

    req = sent.requests[0]
    assert req.full_url == "http://api.local/api/guests?page=2&limit=25"
    assert req.get_header("Authorization") == "Bearer jwt"


def test_error_message_is_taken_from_body(sent):
    url = "http://api.local/api/guests/g1/signout"
    sent.replies.append(_http_error(url, 404, b'{"success": false, "message": "Guest not found"}'))
    client = GuestDeskClient(base_url="http://api.local")

    with pytest.raises(ApiError) as caught:
        client.sign_out_guest(SessionContext(token="jwt"), "g1")

    assert caught.value.status_code == 404
    assert caught.value.message == "Guest not found"
    assert caught.value.is_not_found


def test_non_json_error_body(sent):
    sent.replies.append(_http_error("http://api.local/api/health", 502, b"Bad Gateway"))
    client = GuestDeskClient(base_url="http://api.local")

    with pytest.raises(ApiError) as caught:
        client.health()

    assert caught.value.status_code == 502
    assert caught.value.message == "Bad Gateway"
    assert not caught.value.is_not_found


def test_unreachable_server(sent):
    sent.replies.append(error.URLError("connection refused"))
    client = GuestDeskClient(base_url="http://api.local")

    with pytest.raises(ApiError) as caught:
        client.health()

    assert caught.value.status_code == 0
    assert "connection refused" in caught.value.message


def test_unauthenticated_session_never_hits_network(sent):
    client = GuestDeskClient(base_url="http://api.local")

    with pytest.raises(NotAuthenticated):
        client.dashboard_stats(SessionContext())

    assert sent.requests == []
