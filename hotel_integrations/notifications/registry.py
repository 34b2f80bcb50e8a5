"""
Guest notification fan-out.

ConnectionRegistry maps a guest id to the set of that guest's open sockets
(one per device). It is owned by the application: created on startup, stored on
app.state and closed on shutdown.

Delivery is best-effort and at-most-once per currently open socket. Nothing is
queued for offline guests, and a socket found closed or failing during a send is
pruned from the registry.
"""

from __future__ import annotations

import threading
from typing import Any, Iterable, Optional

import structlog
from starlette.websockets import WebSocket, WebSocketState

from hotel_integrations.metrics import notification_connections, notification_messages
from hotel_integrations.utils.datetime import utc_now_iso

logger = structlog.get_logger(__name__)

CLOSE_GOING_AWAY = 1001


def envelope(message_type: str, data: Any) -> dict[str, Any]:
    """Wire envelope for every message sent to a guest socket."""
    return {"type": message_type, "data": data}


def connection_envelope(guest_id: str) -> dict[str, Any]:
    return envelope(
        "connection",
        {"status": "connected", "guest_id": guest_id, "timestamp": utc_now_iso()},
    )


def is_open(websocket: WebSocket) -> bool:
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


class ConnectionRegistry:
    """
    guest id -> open sockets.

    Bucket mutation happens under a lock that is never held across an await;
    sends iterate over a snapshot of the bucket.
    """

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {}
        self._lock = threading.Lock()

    def _update_gauge(self) -> None:
        notification_connections.set(sum(len(b) for b in self._connections.values()))

    def register(self, guest_id: str, websocket: WebSocket) -> None:
        """Add an already-authenticated socket for a guest."""
        with self._lock:
            self._connections.setdefault(str(guest_id), set()).add(websocket)
            self._update_gauge()
        logger.info("guest_socket_registered", guest_id=str(guest_id))

    def unregister(self, guest_id: str, websocket: WebSocket) -> None:
        """Remove a socket; the guest's bucket is dropped when it becomes empty."""
        guest_id = str(guest_id)
        with self._lock:
            bucket = self._connections.get(guest_id)
            if bucket is None:
                return
            bucket.discard(websocket)
            if not bucket:
                del self._connections[guest_id]
            self._update_gauge()

    def _snapshot(self, guest_id: str) -> list[WebSocket]:
        with self._lock:
            return list(self._connections.get(guest_id, ()))

    async def _deliver(self, guest_id: str, message: dict[str, Any]) -> int:
        delivered = 0
        for websocket in self._snapshot(guest_id):
            if not is_open(websocket):
                self.unregister(guest_id, websocket)
                continue
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning("guest_socket_send_failed", guest_id=guest_id, error=str(e))
                self.unregister(guest_id, websocket)

        if delivered:
            notification_messages.labels(type=message["type"]).inc(delivered)
        return delivered

    async def send_to_guest(self, guest_id: str, notification: Any) -> int:
        """
        Deliver a notification envelope to every open socket of one guest.

        Args:
            guest_id: Guest identifier
            notification: Envelope data

        Returns:
            int: Number of sockets the message was written to
        """
        return await self._deliver(str(guest_id), envelope("notification", notification))

    async def send_to_guests(self, guest_ids: Iterable[str], notification: Any) -> int:
        delivered = 0
        for guest_id in guest_ids:
            delivered += await self.send_to_guest(guest_id, notification)
        return delivered

    async def broadcast(self, message: str, data: Optional[dict[str, Any]] = None) -> int:
        """Send a system envelope to every connected guest."""
        payload = {"message": message, "timestamp": utc_now_iso(), **(data or {})}
        with self._lock:
            guest_ids = list(self._connections)

        delivered = 0
        for guest_id in guest_ids:
            delivered += await self._deliver(guest_id, envelope("system", payload))
        return delivered

    def stats(self) -> dict[str, Any]:
        """
        Connection counts.

        Returns:
            dict: {"total_connections", "unique_guests", "guests": [{"guest_id", "connections"}]}
        """
        with self._lock:
            guests = [
                {"guest_id": guest_id, "connections": len(bucket)}
                for guest_id, bucket in self._connections.items()
            ]
        return {
            "total_connections": sum(g["connections"] for g in guests),
            "unique_guests": len(guests),
            "guests": guests,
        }

    async def close(self) -> None:
        """Close every registered socket and empty the registry."""
        with self._lock:
            sockets = [ws for bucket in self._connections.values() for ws in bucket]
            self._connections.clear()
            self._update_gauge()

        for websocket in sockets:
            if not is_open(websocket):
                continue
            try:
                await websocket.close(code=CLOSE_GOING_AWAY)
            except Exception as e:
                logger.debug("guest_socket_close_failed", error=str(e))

        logger.info("connection_registry_closed", closed=len(sockets))
