"""
FastAPI dependency injection providers.

Routes receive the database engine and the notification registry through these
providers so tests can swap them with app.dependency_overrides.
"""

from __future__ import annotations

from typing import Generator

from fastapi import Request
from sqlalchemy.engine import Engine

from hotel_integrations.db.engine import engine
from hotel_integrations.notifications.registry import ConnectionRegistry


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
        >>> client = TestClient(app)
        >>> client.get("/integrations/1")
    """
    yield engine


def get_connection_registry(request: Request) -> ConnectionRegistry:
    """Return the app-owned notification registry."""
    return request.app.state.connections
