"""
Shared fixtures for the hotel_integrations test suite.

Required settings are put in the environment before any hotel_integrations module is
imported. Persistence tests run against a throwaway on-disk SQLite database.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import Mock

os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-hotel-integrations.db")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

import pytest
import requests
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from hotel_integrations.db.readers.integrations import list_logs
from hotel_integrations.db.writers.integrations import insert_integration
from hotel_integrations.dependencies import get_db_engine
from hotel_integrations.main import app as main_app
from hotel_integrations.models.base import Base
from hotel_integrations.models.guests import Guest  # noqa: F401
from hotel_integrations.models.integrations import Integration, IntegrationLog  # noqa: F401
from hotel_integrations.models.menus import Menu  # noqa: F401
from hotel_integrations.models.rooms import Room  # noqa: F401
from hotel_integrations.security.vault import encrypt_credentials

BASE_URL = "https://provider.example.test"


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Fresh SQLite database with every table created."""
    engine = create_engine(f"sqlite:///{tmp_path / 'integrations.db'}", future=True)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def create_integration(db_engine: Engine) -> Callable[..., int]:
    """
    Factory inserting an integration and returning its id.

    Defaults to an active Simpra POS integration; `credentials` is given in plaintext
    and encrypted before insert.
    """

    def _create(**overrides: Any) -> int:
        credentials = overrides.pop(
            "credentials",
            {"apiUrl": BASE_URL, "accessToken": "health-token", "bearerToken": "api-token"},
        )
        row = {
            "hotel_id": 1,
            "integration_type": "pos",
            "provider": "simpra",
            "provider_name": "Simpra POS",
            "status": "active",
            "config": {"baseUrl": BASE_URL},
            "webhook_secret": None,
        }
        row.update(overrides)
        row["credentials"] = encrypt_credentials(credentials)
        with db_engine.begin() as conn:
            return insert_integration(conn, row)

    return _create


@pytest.fixture
def activity_log(db_engine: Engine) -> Callable[[int], list[dict[str, Any]]]:
    """Return an integration's activity log, oldest entry first."""

    def _read(integration_id: int) -> list[dict[str, Any]]:
        with db_engine.connect() as conn:
            logs, _ = list_logs(conn, integration_id, limit=500)
        return list(reversed(logs))

    return _read


def build_response(status_code: int = 200, body: Any = None, reason: str = "OK") -> requests.Response:
    """Real requests.Response carrying a JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = b"" if body is None else json.dumps(body).encode("utf-8")
    response.headers["Content-Type"] = "application/json"
    return response


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    return build_response


@pytest.fixture
def transport() -> Mock:
    """Mock transport standing in for requests.Session."""
    return Mock(spec=requests.Session)


@pytest.fixture
def app(db_engine: Engine) -> Generator[FastAPI, None, None]:
    """The application wired to the test database."""
    main_app.dependency_overrides[get_db_engine] = lambda: db_engine
    yield main_app
    main_app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Client running the app lifespan, so each test gets a fresh notification registry."""
    with TestClient(app) as test_client:
        yield test_client
