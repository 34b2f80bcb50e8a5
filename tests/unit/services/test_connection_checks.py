"""Unit tests for provider connection tests and category integration tests."""

from __future__ import annotations

from typing import Any, Callable
from unittest.mock import Mock

import pytest
import requests
from sqlalchemy.engine import Engine

from hotel_integrations.errors import NotFoundError
from hotel_integrations.providers.base import REDACTED
from hotel_integrations.services import connection_test


@pytest.mark.unit
def test_successful_connection_test(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
    activity_log: Callable[[int], list[dict[str, Any]]],
) -> None:
    """Test that a reachable provider reports a successful connection."""
    transport.request.return_value = make_response(200, {"status": "up"})
    integration_id = create_integration()

    result = connection_test.test_connection(db_engine, integration_id, transport)

    assert result["success"] is True
    assert result["connection"] == "successful"
    assert result["details"] == {"status": 200, "status_text": "OK", "data": {"status": "up"}}
    assert isinstance(result["processing_time"], int)

    method, url = transport.request.call_args.args
    assert (method, url) == ("GET", "https://provider.example.test/health")
    assert transport.request.call_args.kwargs["headers"]["Authorization"] == "Bearer health-token"

    logs = activity_log(integration_id)
    assert len(logs) == 1
    assert (logs[0]["operation_type"], logs[0]["operation_name"], logs[0]["status"]) == (
        "test",
        "connection_test",
        "success",
    )
    assert logs[0]["request_data"]["headers"]["Authorization"] == f"Bearer {REDACTED}"


@pytest.mark.unit
def test_failed_connection_test_is_reported_not_raised(
    db_engine: Engine,
    transport: Mock,
    create_integration: Callable[..., int],
    activity_log: Callable[[int], list[dict[str, Any]]],
) -> None:
    """Test that provider failures are returned in the result instead of raised."""
    transport.request.side_effect = requests.ConnectionError("refused")
    integration_id = create_integration()

    result = connection_test.test_connection(db_engine, integration_id, transport)

    assert result["success"] is False
    assert result["connection"] == "failed"
    assert result["details"]["code"] == "CONNECTION_ERROR"
    assert activity_log(integration_id)[0]["status"] == "failed"


@pytest.mark.unit
def test_inactive_integration_can_be_tested(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    """Test that credentials can be validated before activation."""
    transport.request.return_value = make_response(200, {})
    integration_id = create_integration(status="testing")

    assert connection_test.test_connection(db_engine, integration_id, transport)["success"]


@pytest.mark.unit
def test_connection_test_unknown_integration(db_engine: Engine, transport: Mock) -> None:
    with pytest.raises(NotFoundError):
        connection_test.test_connection(db_engine, 404, transport)


@pytest.mark.unit
def test_pos_integration_test_runs_menu_read(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    transport.request.side_effect = [
        make_response(200, {"status": "up"}),
        make_response(200, [{"id": "m1"}, {"id": "m2"}]),
    ]
    integration_id = create_integration(status="inactive")

    result = connection_test.test_integration(db_engine, integration_id, transport)

    assert result == {"success": True, "connection": "OK", "menu_sync": "OK", "menu_count": 2}


@pytest.mark.unit
def test_pms_integration_test_stops_on_failed_connection(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    """Test that sample reads are skipped when the connection test fails."""
    transport.request.return_value = make_response(401, {"error": "bad token"}, "Unauthorized")
    integration_id = create_integration(integration_type="pms", provider="opera_cloud")

    result = connection_test.test_integration(db_engine, integration_id, transport)

    assert result["success"] is False
    assert result["details"]["code"] == "HTTP_401"
    assert transport.request.call_count == 1


@pytest.mark.unit
def test_guest_management_integration_test_reads_samples(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    transport.request.side_effect = [
        make_response(200, {"status": "up"}),
        make_response(200, [{"id": "f1"}]),
        make_response(200, []),
        make_response(200, [{"id": "n1"}]),
    ]
    integration_id = create_integration(integration_type="guest_management", provider="generic")

    result = connection_test.test_integration(db_engine, integration_id, transport)

    assert result["success"] is True
    assert (result["feedback_count"], result["chat_count"], result["notification_count"]) == (
        1,
        0,
        1,
    )
    assert transport.request.call_args.kwargs["params"] == {"limit": 1}
