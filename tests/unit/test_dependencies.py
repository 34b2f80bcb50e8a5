"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from hotel_integrations.dependencies import get_connection_registry, get_db_engine
from hotel_integrations.notifications.registry import ConnectionRegistry


@pytest.mark.unit
def test_get_db_engine_yields_the_shared_engine() -> None:
    """Test that every call yields the same module-level engine."""
    first = next(get_db_engine())
    second = next(get_db_engine())

    assert isinstance(first, Engine)
    assert first is second


@pytest.mark.unit
def test_db_engine_can_be_overridden() -> None:
    """Test that the engine dependency can be swapped for tests."""
    app = FastAPI()

    @app.get("/engine")
    def engine_name(engine: Engine = Depends(get_db_engine)) -> dict[str, str]:
        return {"engine_name": engine.name}

    mock_engine = Mock(spec=Engine)
    mock_engine.name = "mock_engine"
    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/engine")

    assert response.status_code == 200
    assert response.json() == {"engine_name": "mock_engine"}


@pytest.mark.unit
def test_connection_registry_comes_from_app_state() -> None:
    """Test that routes receive the registry stored on app.state."""
    app = FastAPI()
    app.state.connections = ConnectionRegistry()

    @app.get("/registry")
    def registry_id(
        registry: ConnectionRegistry = Depends(get_connection_registry),
    ) -> dict[str, bool]:
        return {"same": registry is app.state.connections}

    response = TestClient(app).get("/registry")

    assert response.json() == {"same": True}
