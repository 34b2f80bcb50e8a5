"""Unit tests for health, readiness and metrics endpoints."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.mark.unit
def test_health_check_returns_ok(client: TestClient) -> None:
    """Test that /health always returns ok."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.unit
def test_ready_with_database(client: TestClient) -> None:
    """Test that /ready returns 200 when the database answers."""
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": "ok"}}


@pytest.mark.unit
@patch("hotel_integrations.routes.health.check_engine_health")
def test_ready_without_database_returns_503(mock_check: Mock, client: TestClient) -> None:
    """Test that /ready returns 503 when the database is unreachable."""
    mock_check.return_value = False

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "not ready", "checks": {"database": "failed"}}


@pytest.mark.unit
def test_metrics_endpoint(client: TestClient) -> None:
    """Test that /metrics exposes the Prometheus text format."""
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "integration_syncs_total" in response.text
    assert "notification_connections" in response.text


@pytest.mark.unit
def test_metrics_reports_open_guest_sockets(client: TestClient, app: FastAPI) -> None:
    """Test that the socket gauge reflects the registry at scrape time."""
    app.state.connections.register("g-1", Mock())
    app.state.connections.register("g-2", Mock())

    response = client.get("/metrics")

    assert "notification_connections 2.0" in response.text
