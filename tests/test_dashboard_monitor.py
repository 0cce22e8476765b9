import asyncio
import threading
from datetime import datetime, timedelta

from guestdesk.client.api import ApiError
from guestdesk.client.monitor import DashboardMonitor
from guestdesk.client.session import SessionContext
from guestdesk.client.state import GuestView

NOW = datetime(2024, 6, 1, 12, 0, 0)


def _guest(guest_id: str, minutes_ago: int, duration: int, status: str = "signed-in") -> dict:
    return {
        "id": guest_id,
        "guestName": f"Guest {guest_id}",
        "guestCode": "123456",
        "location": "Reception",
        "personToSee": "Dr. Smith",
        "status": status,
        "signInTime": (NOW - timedelta(minutes=minutes_ago)).isoformat(),
        "expectedDuration": duration,
        "idCardAssigned": False,
    }


class FakeClient:
    def __init__(self, guests, sign_out_error=None, gate=None, list_error=None):
        self.guests = {item["id"]: dict(item) for item in guests}
        self.sign_out_error = sign_out_error
        self.list_error = list_error
        self.gate = gate
        self.sign_out_calls = []
        self.list_calls = 0
        self.concurrent = 0
        self.max_concurrent = {}
        self._lock = threading.Lock()

    def list_guests(self, session, page=1, limit=50, status=None):
        self.list_calls += 1
        if self.list_error:
            raise self.list_error
        return {"guests": list(self.guests.values())}

    def dashboard_stats(self, session):
        active = sum(1 for item in self.guests.values() if item["status"] == "signed-in")
        return {"activeGuests": active}

    def sign_out_guest(self, session, guest_id):
        with self._lock:
            self.sign_out_calls.append(guest_id)
            self.concurrent += 1
            self.max_concurrent[guest_id] = max(self.max_concurrent.get(guest_id, 0), self.concurrent)
        try:
            if self.gate is not None:
                self.gate.wait(timeout=5)
            if self.sign_out_error:
                raise self.sign_out_error
            self.guests[guest_id]["status"] = "signed-out"
        finally:
            with self._lock:
                self.concurrent -= 1


def _session():
    session = SessionContext()
    session.load("token-abc", {"id": "org-1", "name": "Acme"})
    return session


def test_only_overdue_signed_in_guests_are_signed_out():
    client = FakeClient(
        [
            _guest("overdue", minutes_ago=45, duration=30),
            _guest("on-time", minutes_ago=10, duration=30),
            _guest("left", minutes_ago=90, duration=30, status="signed-out"),
        ]
    )
    monitor = DashboardMonitor(client, _session(), clock=lambda: NOW)

    async def scenario():
        await monitor.refresh()
        dispatched = await monitor.scan_expired()
        await monitor.drain()
        return dispatched

    assert asyncio.run(scenario()) == ["overdue"]
    assert client.sign_out_calls == ["overdue"]
    assert monitor.in_flight == set()
    assert monitor.state.snapshot.stats == {"activeGuests": 1}
    assert monitor.overdue_guests() == []


def test_in_flight_guard_prevents_duplicate_sign_out():
    gate = threading.Event()
    client = FakeClient([_guest("g1", minutes_ago=60, duration=15)], gate=gate)
    monitor = DashboardMonitor(client, _session(), clock=lambda: NOW)

    async def scenario():
        await monitor.refresh()
        first = await monitor.scan_expired()
        await asyncio.sleep(0.05)
        second = await monitor.scan_expired()
        third = await monitor.scan_expired()
        in_flight_while_blocked = set(monitor.in_flight)
        gate.set()
        await monitor.drain()
        return first, second, third, in_flight_while_blocked

    first, second, third, in_flight_while_blocked = asyncio.run(scenario())

    assert first == ["g1"]
    assert second == [] and third == []
    assert in_flight_while_blocked == {"g1"}
    assert client.sign_out_calls == ["g1"]
    assert client.max_concurrent["g1"] == 1
    assert monitor.in_flight == set()


def test_not_found_counts_as_signed_out():
    client = FakeClient(
        [_guest("gone", minutes_ago=60, duration=15)],
        sign_out_error=ApiError("Guest not found", status_code=404),
    )
    monitor = DashboardMonitor(client, _session(), clock=lambda: NOW)

    async def scenario():
        await monitor.refresh()
        await monitor.scan_expired()
        await monitor.drain()

    asyncio.run(scenario())

    # Initial load plus the refresh after the sign-out attempt.
    assert client.list_calls == 2
    assert monitor.state.snapshot.error is None
    assert monitor.in_flight == set()


def test_other_failures_are_swallowed_and_guard_cleared():
    client = FakeClient(
        [_guest("stuck", minutes_ago=60, duration=15)],
        sign_out_error=ApiError("Internal server error", status_code=500),
    )
    monitor = DashboardMonitor(client, _session(), clock=lambda: NOW)

    async def scenario():
        await monitor.refresh()
        await monitor.scan_expired()
        await monitor.drain()
        # Still overdue, so the next tick tries again.
        retried = await monitor.scan_expired()
        await monitor.drain()
        return retried

    retried = asyncio.run(scenario())

    assert retried == ["stuck"]
    assert client.list_calls == 1
    assert monitor.state.snapshot.error is None


def test_refresh_failure_sets_error_banner():
    client = FakeClient([], list_error=ApiError("Unable to reach API"))
    monitor = DashboardMonitor(client, _session(), clock=lambda: NOW)

    asyncio.run(monitor.refresh())

    assert monitor.state.snapshot.error == "Failed to load dashboard data"


def test_timers_run_until_stopped():
    client = FakeClient(
        [
            _guest("overdue", minutes_ago=45, duration=30),
            _guest("fine", minutes_ago=1, duration=30),
        ]
    )
    monitor = DashboardMonitor(client, _session(), tick_seconds=0.01, refresh_seconds=0.02, clock=lambda: NOW)

    async def scenario():
        await monitor.start()
        assert monitor.running
        await asyncio.sleep(0.2)
        await monitor.stop()
        return monitor.running

    still_running = asyncio.run(scenario())

    assert still_running is False
    assert client.sign_out_calls == ["overdue"]
    # Initial load, the post-sign-out refresh and several periodic refreshes.
    assert client.list_calls >= 4


def test_guest_view_labels():
    view = GuestView.from_api(_guest("v1", minutes_ago=40, duration=30))

    assert view.is_expired(NOW)
    assert view.badge(NOW) == "expired"
    assert view.time_remaining_label(NOW) == "Overdue by 10 min"
    assert view.time_remaining_label(NOW - timedelta(minutes=15)) == "5 min remaining"
