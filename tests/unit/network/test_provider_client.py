"""Unit tests for outbound provider requests."""

from __future__ import annotations

from typing import Callable
from unittest.mock import Mock, patch

import pytest
import requests

from hotel_integrations.errors import ProviderRequestError
from hotel_integrations.network.client import execute_request, should_retry

URL = "https://provider.example.test/api/menus"


@pytest.mark.unit
def test_success_returns_parsed_body(
    transport: Mock, make_response: Callable[..., requests.Response]
) -> None:
    """Test that a 2xx response body is parsed as JSON."""
    transport.request.return_value = make_response(200, [{"id": 1}])

    response = execute_request(
        transport, "get", URL, provider="simpra", headers={"Accept": "application/json"}
    )

    assert response.status_code == 200
    assert response.reason == "OK"
    assert response.data == [{"id": 1}]
    transport.request.assert_called_once_with(
        "GET",
        URL,
        headers={"Accept": "application/json"},
        json=None,
        params=None,
        timeout=30.0,
    )


@pytest.mark.unit
def test_empty_body_is_none(
    transport: Mock, make_response: Callable[..., requests.Response]
) -> None:
    transport.request.return_value = make_response(204, None, reason="No Content")

    assert execute_request(transport, "HEAD", URL, provider="simpra").data is None


@pytest.mark.unit
def test_zero_timeout_disables_timeout(
    transport: Mock, make_response: Callable[..., requests.Response]
) -> None:
    transport.request.return_value = make_response(200, {})

    execute_request(transport, "GET", URL, provider="simpra", timeout=0)

    assert transport.request.call_args.kwargs["timeout"] is None


@pytest.mark.unit
def test_error_status_raises_with_provider_status(
    transport: Mock, make_response: Callable[..., requests.Response]
) -> None:
    """Test that non-2xx responses raise ProviderRequestError carrying the status."""
    transport.request.return_value = make_response(404, {"error": "no such menu"}, "Not Found")

    with pytest.raises(ProviderRequestError) as exc_info:
        execute_request(transport, "GET", URL, provider="simpra")

    error = exc_info.value
    assert error.provider_status == 404
    assert error.error_code == "HTTP_404"
    assert error.response_data == {"error": "no such menu"}
    assert error.status_code == 502
    assert error.to_dict()["provider_status"] == 404


@pytest.mark.unit
def test_timeout_maps_to_timeout_code(transport: Mock) -> None:
    """Test that a timeout is reported with the TIMEOUT code."""
    transport.request.side_effect = requests.Timeout("read timed out")

    with pytest.raises(ProviderRequestError) as exc_info:
        execute_request(transport, "GET", URL, provider="simpra")

    assert exc_info.value.error_code == "TIMEOUT"
    assert exc_info.value.provider_status is None


@pytest.mark.unit
def test_connection_error_code(transport: Mock) -> None:
    transport.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(ProviderRequestError) as exc_info:
        execute_request(transport, "GET", URL, provider="simpra")

    assert exc_info.value.error_code == "CONNECTION_ERROR"


@pytest.mark.unit
def test_no_retry_by_default(
    transport: Mock, make_response: Callable[..., requests.Response]
) -> None:
    """Test that requests are sent once when retries are disabled."""
    transport.request.return_value = make_response(503, None, "Service Unavailable")

    with pytest.raises(ProviderRequestError):
        execute_request(transport, "GET", URL, provider="simpra")

    assert transport.request.call_count == 1


@pytest.mark.unit
@patch("hotel_integrations.network.client.time.sleep")
def test_retry_on_server_error_when_enabled(
    mock_sleep: Mock, transport: Mock, make_response: Callable[..., requests.Response]
) -> None:
    """Test that 5xx responses are retried when retries are enabled."""
    transport.request.side_effect = [
        make_response(503, None, "Service Unavailable"),
        make_response(200, {"ok": True}),
    ]

    response = execute_request(transport, "GET", URL, provider="simpra", max_retries=2)

    assert response.data == {"ok": True}
    assert transport.request.call_count == 2
    mock_sleep.assert_called_once()


@pytest.mark.unit
@patch("hotel_integrations.network.client.time.sleep")
def test_client_error_is_not_retried(
    mock_sleep: Mock, transport: Mock, make_response: Callable[..., requests.Response]
) -> None:
    """Test that 4xx responses are never retried."""
    transport.request.return_value = make_response(401, {"error": "bad token"}, "Unauthorized")

    with pytest.raises(ProviderRequestError):
        execute_request(transport, "GET", URL, provider="simpra", max_retries=3)

    assert transport.request.call_count == 1
    mock_sleep.assert_not_called()


@pytest.mark.unit
def test_should_retry() -> None:
    assert should_retry(Mock(status_code=429), None)
    assert should_retry(Mock(status_code=502), None)
    assert should_retry(None, requests.Timeout())
    assert not should_retry(Mock(status_code=400), None)
    assert not should_retry(None, requests.ConnectionError())
