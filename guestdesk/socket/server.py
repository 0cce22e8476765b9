import socketio

from guestdesk.core.config import get_settings
from guestdesk.socket.events import organization_room, register_socket_events

settings = get_settings()

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*" if settings.DEBUG else settings.cors_origins,
    logger=False,
    engineio_logger=False,
)

register_socket_events(sio)


async def publish_guest_event(organization_id: str, guest_id: str, status: str, event: str) -> None:
    await sio.emit(
        "guest.updated",
        {"guestId": guest_id, "status": status, "event": event},
        room=organization_room(organization_id),
        namespace=settings.DASHBOARD_NAMESPACE,
    )
