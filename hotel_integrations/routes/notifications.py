"""
Guest notification routes: the guest WebSocket and admin push endpoints.

Guests connect to /ws/notifications?token=<jwt>&guestId=<id>. The socket is
closed with 1008 (policy violation) unless the token's subject equals guestId.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from hotel_integrations.dependencies import get_connection_registry
from hotel_integrations.notifications.auth import token_matches_guest
from hotel_integrations.notifications.registry import ConnectionRegistry, connection_envelope
from hotel_integrations.schemas.notifications import (
    BroadcastPayload,
    BulkNotificationPayload,
    GuestNotificationPayload,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.websocket("/ws/notifications")
async def guest_notifications(websocket: WebSocket) -> None:
    token = websocket.query_params.get("token")
    guest_id = websocket.query_params.get("guestId")

    if not token or not guest_id:
        logger.info("guest_socket_rejected", reason="missing_token_or_guest_id")
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Missing token or guestId"
        )
        return

    if not token_matches_guest(token, guest_id):
        logger.info("guest_socket_rejected", reason="invalid_token", guest_id=guest_id)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return

    registry: ConnectionRegistry = websocket.app.state.connections

    await websocket.accept()
    registry.register(guest_id, websocket)
    try:
        await websocket.send_json(connection_envelope(guest_id))
        # Guests do not send anything meaningful; read until the socket closes
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect as e:
        logger.info("guest_socket_disconnected", guest_id=guest_id, code=e.code)
    finally:
        registry.unregister(guest_id, websocket)


@router.post("/notifications/guests/{guest_id}")
async def notify_guest(
    guest_id: str,
    payload: GuestNotificationPayload,
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> dict[str, Any]:
    delivered = await registry.send_to_guest(guest_id, payload.data)
    return {"status": "success", "data": {"delivered": delivered}}


@router.post("/notifications/guests")
async def notify_guests(
    payload: BulkNotificationPayload,
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> dict[str, Any]:
    delivered = await registry.send_to_guests(payload.guest_ids, payload.data)
    return {"status": "success", "data": {"delivered": delivered}}


@router.post("/notifications/broadcast")
async def broadcast(
    payload: BroadcastPayload,
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> dict[str, Any]:
    """Send a system envelope to every connected guest."""
    delivered = await registry.broadcast(payload.message, payload.data)
    return {"status": "success", "data": {"delivered": delivered}}


@router.get("/notifications/stats")
def notification_stats(
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> dict[str, Any]:
    return {"status": "success", "data": registry.stats()}
