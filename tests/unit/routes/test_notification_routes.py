"""Unit tests for the guest notification socket and admin push routes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect, WebSocketState

from hotel_integrations.config import JWT_SECRET


class FakeSocket:
    def __init__(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, message: dict[str, Any]) -> None:
        self.sent.append(message)

    async def close(self, code: int = 1000) -> None:
        self.application_state = WebSocketState.DISCONNECTED


def _token(guest_id: str, secret: str = JWT_SECRET, expires_in: int = 300) -> str:
    claims = {"id": guest_id, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.mark.unit
@pytest.mark.parametrize(
    "query",
    [
        "",
        "?guestId=g-1",
        "?token=abc",
    ],
)
def test_socket_without_credentials_is_closed(client: TestClient, query: str) -> None:
    """Test that sockets missing token or guestId are closed with 1008."""
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws/notifications{query}"):
            pass

    assert exc_info.value.code == 1008


@pytest.mark.unit
def test_token_for_another_guest_is_closed(client: TestClient) -> None:
    """Test that a token issued to another guest is rejected."""
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws/notifications?token={_token('g-2')}&guestId=g-1"):
            pass

    assert exc_info.value.code == 1008


@pytest.mark.unit
def test_expired_token_is_closed(client: TestClient) -> None:
    token = _token("g-1", expires_in=-60)

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws/notifications?token={token}&guestId=g-1"):
            pass

    assert exc_info.value.code == 1008


@pytest.mark.unit
def test_valid_socket_receives_connection_envelope(client: TestClient, app: FastAPI) -> None:
    """Test that an authenticated guest is registered and greeted."""
    with client.websocket_connect(f"/ws/notifications?token={_token('g-1')}&guestId=g-1") as ws:
        message = ws.receive_json()

        assert message["type"] == "connection"
        assert message["data"]["status"] == "connected"
        assert message["data"]["guest_id"] == "g-1"
        assert app.state.connections.stats()["guests"] == [{"guest_id": "g-1", "connections": 1}]


@pytest.mark.unit
def test_notify_guest(client: TestClient, app: FastAPI) -> None:
    """Test that a notification reaches the guest socket."""
    socket = FakeSocket()
    app.state.connections.register("g-1", socket)

    response = client.post("/notifications/guests/g-1", json={"data": {"title": "Order ready"}})

    assert response.status_code == 200
    assert response.json() == {"status": "success", "data": {"delivered": 1}}
    assert socket.sent == [{"type": "notification", "data": {"title": "Order ready"}}]


@pytest.mark.unit
def test_notify_guest_without_sockets_delivers_nothing(client: TestClient) -> None:
    response = client.post("/notifications/guests/nobody", json={"data": {"title": "Hi"}})

    assert response.json()["data"] == {"delivered": 0}


@pytest.mark.unit
def test_notify_guests(client: TestClient, app: FastAPI) -> None:
    """Test that bulk notifications count only delivered sockets."""
    first, second = FakeSocket(), FakeSocket()
    app.state.connections.register("g-1", first)
    app.state.connections.register("g-2", second)

    response = client.post(
        "/notifications/guests", json={"guest_ids": ["g-1", "g-2", "g-3"], "data": {"x": 1}}
    )

    assert response.json()["data"] == {"delivered": 2}
    assert first.sent == second.sent == [{"type": "notification", "data": {"x": 1}}]


@pytest.mark.unit
def test_notify_guests_requires_ids(client: TestClient) -> None:
    response = client.post("/notifications/guests", json={"guest_ids": [], "data": {}})

    assert response.status_code == 422


@pytest.mark.unit
def test_broadcast(client: TestClient, app: FastAPI) -> None:
    """Test that broadcast sends a system envelope with extra data."""
    socket = FakeSocket()
    app.state.connections.register("g-1", socket)

    response = client.post(
        "/notifications/broadcast", json={"message": "Pool closes at 9", "data": {"level": "info"}}
    )

    assert response.json()["data"] == {"delivered": 1}
    [message] = socket.sent
    assert message["type"] == "system"
    assert message["data"]["message"] == "Pool closes at 9"
    assert message["data"]["level"] == "info"
    assert "timestamp" in message["data"]


@pytest.mark.unit
def test_stats(client: TestClient, app: FastAPI) -> None:
    app.state.connections.register("g-1", FakeSocket())
    app.state.connections.register("g-1", FakeSocket())

    response = client.get("/notifications/stats")

    assert response.json()["data"] == {
        "total_connections": 2,
        "unique_guests": 1,
        "guests": [{"guest_id": "g-1", "connections": 2}],
    }
