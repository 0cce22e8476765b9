import asyncio
import logging
from typing import Callable

from guestdesk.client.api import ApiError, GuestDeskClient
from guestdesk.client.session import SessionContext
from guestdesk.client.state import DashboardState, GuestView
from guestdesk.core.clock import utcnow
from guestdesk.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class DashboardMonitor:
    """Keeps a dashboard's view state fresh and signs out overdue guests.

    Two independent tasks run between ``start()`` and ``stop()``: a fast tick
    that scans displayed guests for overrun visits, and a slower full refresh
    of the guest list and stats. A guest id stays in ``in_flight`` while its
    sign-out request is outstanding, so a guest is never signed out twice
    concurrently.
    """

    def __init__(
        self,
        client: GuestDeskClient,
        session: SessionContext,
        state: DashboardState | None = None,
        tick_seconds: float | None = None,
        refresh_seconds: float | None = None,
        clock: Callable = utcnow,
        page_size: int = 100,
    ):
        self.client = client
        self.session = session
        self.state = state or DashboardState()
        self.tick_seconds = tick_seconds or settings.DASHBOARD_TICK_SECONDS
        self.refresh_seconds = refresh_seconds or settings.DASHBOARD_REFRESH_SECONDS
        self.clock = clock
        self.page_size = page_size
        self.in_flight: set[str] = set()
        self._loops: list[asyncio.Task] = []
        self._sign_outs: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._loops)

    async def start(self) -> None:
        if self.running:
            return
        await self.refresh()
        self._loops = [
            asyncio.create_task(self._tick_loop(), name="dashboard-tick"),
            asyncio.create_task(self._refresh_loop(), name="dashboard-refresh"),
        ]

    async def stop(self) -> None:
        pending = [*self._loops, *self._sign_outs]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._loops = []
        self._sign_outs.clear()

    async def drain(self) -> None:
        """Wait for outstanding auto sign-outs to finish."""
        if self._sign_outs:
            await asyncio.gather(*list(self._sign_outs), return_exceptions=True)

    async def __aenter__(self) -> "DashboardMonitor":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def refresh(self) -> None:
        try:
            listing = await asyncio.to_thread(self.client.list_guests, self.session, 1, self.page_size)
            stats = await asyncio.to_thread(self.client.dashboard_stats, self.session)
        except ApiError as exc:
            logger.warning("dashboard refresh failed status=%s message=%s", exc.status_code, exc.message)
            await self.state.set_error("Failed to load dashboard data")
            return
        except Exception:
            logger.exception("dashboard refresh failed")
            await self.state.set_error("Failed to load dashboard data")
            return
        guests = [GuestView.from_api(item) for item in listing.get("guests", [])]
        await self.state.replace_data(guests, stats)

    def overdue_guests(self) -> list[GuestView]:
        now = self.clock()
        return [guest for guest in self.state.snapshot.signed_in_guests() if guest.is_expired(now)]

    async def scan_expired(self) -> list[str]:
        """Start one sign-out per newly overdue guest; returns the ids dispatched."""
        dispatched = []
        for guest in self.overdue_guests():
            if guest.id in self.in_flight:
                continue
            self.in_flight.add(guest.id)
            task = asyncio.create_task(self._auto_sign_out(guest.id), name=f"auto-signout-{guest.id}")
            self._sign_outs.add(task)
            task.add_done_callback(self._sign_outs.discard)
            dispatched.append(guest.id)
        return dispatched

    async def _auto_sign_out(self, guest_id: str) -> None:
        try:
            try:
                await asyncio.to_thread(self.client.sign_out_guest, self.session, guest_id)
                logger.info("auto sign-out guest_id=%s", guest_id)
            except ApiError as exc:
                # 404: already signed out elsewhere, just refresh.
                if not exc.is_not_found:
                    raise
            await self.refresh()
        except ApiError as exc:
            logger.warning(
                "auto sign-out failed guest_id=%s status=%s message=%s", guest_id, exc.status_code, exc.message
            )
        except Exception:
            logger.exception("auto sign-out failed guest_id=%s", guest_id)
        finally:
            self.in_flight.discard(guest_id)

    async def _tick_loop(self) -> None:
        while True:
            await self.scan_expired()
            await asyncio.sleep(self.tick_seconds)

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_seconds)
            await self.refresh()
