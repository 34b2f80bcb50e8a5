"""Unit tests for the POS adapter."""

from __future__ import annotations

from typing import Any, Callable
from unittest.mock import Mock, patch

import pytest
import requests
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from hotel_integrations.db.readers.integrations import get_integration
from hotel_integrations.db.writers.integrations import record_failure, update_integration
from hotel_integrations.errors import (
    DecryptionError,
    InactiveIntegrationError,
    InvalidPayloadError,
    NotFoundError,
    ProviderRequestError,
)
from hotel_integrations.models.menus import Menu
from hotel_integrations.services import pos

menus = Menu.__table__


def _menu_rows(engine: Engine) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        return [dict(r._mapping) for r in conn.execute(select(menus).order_by(menus.c.id))]


@pytest.mark.unit
def test_transform_menu_defaults() -> None:
    """Test that missing menu fields get their defaults."""
    data = pos.transform_menu({"title": "Club Sandwich", "image": "https://img.test/1.png"})

    assert data["name"] == "Club Sandwich"
    assert data["category"] == "main"
    assert data["price"] == 0
    assert data["currency"] == "USD"
    assert data["is_available"] is True
    assert data["image_url"] == "https://img.test/1.png"
    assert data["allergens"] == []


@pytest.mark.unit
def test_transform_menu_requires_name() -> None:
    with pytest.raises(ValueError):
        pos.transform_menu({"id": "m1", "price": 4})


@pytest.mark.unit
def test_transform_check_maps_items() -> None:
    payload = pos.transform_check(
        {
            "guestId": "g-1",
            "roomNumber": "204",
            "items": [{"menuId": "m1", "quantity": 2, "unitPrice": 5, "totalPrice": 10}],
            "total": 10,
        }
    )

    assert payload["guest_id"] == "g-1"
    assert payload["items"] == [
        {
            "menu_id": "m1",
            "quantity": 2,
            "unit_price": 5,
            "total_price": 10,
            "special_instructions": "",
        }
    ]
    assert payload["timestamp"]


@pytest.mark.unit
def test_sync_menus_upserts_and_counts_partial_batch(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
    activity_log: Callable[[int], list[dict[str, Any]]],
) -> None:
    """Test that a menu sync stores valid items and counts the invalid ones."""
    transport.request.return_value = make_response(
        200,
        [
            {"id": "m1", "name": "Tomato Soup", "price": 6.5, "tags": ["vegan"]},
            {"id": "m2", "title": "Caesar Salad", "category": "starter"},
            {"id": "m3", "price": 3},
        ],
    )
    integration_id = create_integration(provider_name="Lobby POS")

    result = pos.sync_menus(db_engine, integration_id, transport)

    assert result == {"processed": 3, "success": 2, "failed": 1}
    rows = _menu_rows(db_engine)
    assert [(r["external_id"], r["name"]) for r in rows] == [
        ("m1", "Tomato Soup"),
        ("m2", "Caesar Salad"),
    ]
    assert rows[0]["external_source"] == "Lobby POS"
    assert rows[0]["tags"] == '["vegan"]'

    with db_engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    assert integration["sync_status"] == "success"
    assert integration["last_sync"] is not None

    sync_entry = activity_log(integration_id)[-1]
    assert (sync_entry["operation_type"], sync_entry["operation_name"]) == ("sync", "sync_menus")
    assert sync_entry["status"] == "partial"
    assert sync_entry["records_failed"] == 1


@pytest.mark.unit
def test_second_sync_updates_existing_menu(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    """Test that re-syncing a menu item updates the existing row."""
    integration_id = create_integration()
    transport.request.side_effect = [
        make_response(200, [{"id": "m1", "name": "Soup", "price": 5}]),
        make_response(200, [{"id": "m1", "name": "Soup of the day", "price": 7}]),
    ]

    pos.sync_menus(db_engine, integration_id, transport)
    pos.sync_menus(db_engine, integration_id, transport)

    rows = _menu_rows(db_engine)
    assert len(rows) == 1
    assert rows[0]["name"] == "Soup of the day"


@pytest.mark.unit
def test_sync_menus_rejects_non_list_and_records_failure(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
    activity_log: Callable[[int], list[dict[str, Any]]],
) -> None:
    """Test that a non-list menu response fails the sync and bumps the error count."""
    transport.request.return_value = make_response(200, {"menus": []})
    integration_id = create_integration()

    with pytest.raises(InvalidPayloadError, match="Invalid response format from POS system"):
        pos.sync_menus(db_engine, integration_id, transport)

    with db_engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    assert integration["sync_status"] == "failed"
    assert integration["error_count"] == 1
    assert "Invalid response format" in integration["last_error"]
    assert integration["status"] == "active"

    last = activity_log(integration_id)[-1]
    assert (last["operation_type"], last["operation_name"], last["status"]) == (
        "error",
        "sync_menus",
        "failed",
    )


@pytest.mark.unit
def test_successful_sync_clears_error_count(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    """Test that a successful sync resets error_count and last_error."""
    integration_id = create_integration()
    transport.request.side_effect = [
        make_response(503, None, "Service Unavailable"),
        make_response(200, []),
    ]

    with pytest.raises(ProviderRequestError):
        pos.sync_menus(db_engine, integration_id, transport)
    pos.sync_menus(db_engine, integration_id, transport)

    with db_engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    assert integration["error_count"] == 0
    assert integration["last_error"] is None


@pytest.mark.unit
def test_sync_with_corrupt_credentials_records_failure(
    db_engine: Engine,
    transport: Mock,
    create_integration: Callable[..., int],
) -> None:
    """Test that a sync failing before any provider call still bumps the error count."""
    integration_id = create_integration()
    with db_engine.begin() as conn:
        update_integration(
            conn,
            integration_id,
            {"credentials": {"encrypted": "00", "iv": "00" * 12, "salt": "00"}},
        )

    with pytest.raises(DecryptionError):
        pos.sync_menus(db_engine, integration_id, transport)

    transport.request.assert_not_called()
    with db_engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    assert integration["error_count"] == 1
    assert integration["sync_status"] == "failed"
    assert integration["last_error"] == "Credentials could not be decrypted"


@pytest.mark.unit
def test_sync_of_inactive_integration_records_failure(
    db_engine: Engine, transport: Mock, create_integration: Callable[..., int]
) -> None:
    integration_id = create_integration(status="inactive")

    with pytest.raises(InactiveIntegrationError):
        pos.sync_menus(db_engine, integration_id, transport)

    with db_engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    assert integration["error_count"] == 1
    assert integration["sync_status"] == "failed"
    assert integration["status"] == "inactive"


@pytest.mark.unit
@patch("hotel_integrations.services.session.update_sync_info")
def test_bookkeeping_error_does_not_mask_sync_error(
    mock_update: Mock,
    db_engine: Engine,
    transport: Mock,
    create_integration: Callable[..., int],
) -> None:
    """Test that the original error propagates when the failure bookkeeping itself fails."""
    mock_update.side_effect = OperationalError("UPDATE integrations", {}, Exception("locked"))
    integration_id = create_integration(status="inactive")

    with pytest.raises(InactiveIntegrationError):
        pos.sync_menus(db_engine, integration_id, transport)


@pytest.mark.unit
def test_sync_of_unknown_integration_raises_not_found(db_engine: Engine, transport: Mock) -> None:
    with pytest.raises(NotFoundError):
        pos.sync_menus(db_engine, 404, transport)


@pytest.mark.unit
def test_failures_never_disable_by_default(
    db_engine: Engine, create_integration: Callable[..., int]
) -> None:
    """Test that with no threshold configured an integration stays active however often it fails."""
    integration_id = create_integration()

    with db_engine.begin() as conn:
        for _ in range(25):
            record_failure(conn, integration_id, "provider down")

    with db_engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    assert integration["error_count"] == 25
    assert integration["status"] == "active"


@pytest.mark.unit
def test_failure_threshold_moves_integration_to_error(
    db_engine: Engine, create_integration: Callable[..., int]
) -> None:
    """Test that the integration switches to 'error' exactly when the threshold is reached."""
    integration_id = create_integration()
    statuses = []

    for _ in range(3):
        with db_engine.begin() as conn:
            record_failure(conn, integration_id, "provider down", disable_threshold=3)
        with db_engine.connect() as conn:
            statuses.append(get_integration(conn, integration_id)["status"])

    assert statuses == ["active", "active", "error"]


@pytest.mark.unit
@patch("hotel_integrations.db.writers.integrations.ERROR_DISABLE_THRESHOLD", 2)
def test_configured_threshold_applies_to_failed_syncs(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    integration_id = create_integration()
    transport.request.return_value = make_response(503, None, "Service Unavailable")

    for _ in range(2):
        with pytest.raises(ProviderRequestError):
            pos.sync_menus(db_engine, integration_id, transport)

    with db_engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    assert integration["error_count"] == 2
    assert integration["status"] == "error"

    # A disabled integration no longer syncs
    with pytest.raises(InactiveIntegrationError):
        pos.sync_menus(db_engine, integration_id, transport)
    assert transport.request.call_count == 2


@pytest.mark.unit
def test_post_guest_check_returns_pos_check_id(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
    activity_log: Callable[[int], list[dict[str, Any]]],
) -> None:
    """Test that posting a check returns the POS-assigned id."""
    transport.request.return_value = make_response(201, {"id": "chk-77"}, "Created")
    integration_id = create_integration()

    result = pos.post_guest_check(
        db_engine, integration_id, {"guestId": "g-1", "items": [], "total": 0}, transport
    )

    assert result["success"] is True
    assert result["pos_check_id"] == "chk-77"
    method, url = transport.request.call_args.args
    assert (method, url) == ("POST", "https://provider.example.test/api/checks")
    assert transport.request.call_args.kwargs["json"]["guest_id"] == "g-1"
    assert activity_log(integration_id)[-1]["operation_name"] == "post_guest_check"


@pytest.mark.unit
def test_void_check_posts_reason(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    transport.request.return_value = make_response(200, {"status": "voided"})
    integration_id = create_integration()

    pos.void_check(db_engine, integration_id, "chk-77", transport=transport)

    assert transport.request.call_args.args[1].endswith("/api/checks/chk-77/void")
    assert transport.request.call_args.kwargs["json"] == {"reason": "Guest request"}


@pytest.mark.unit
def test_get_check_status(
    db_engine: Engine,
    transport: Mock,
    make_response: Callable[..., requests.Response],
    create_integration: Callable[..., int],
) -> None:
    transport.request.return_value = make_response(200, {"id": "chk-77", "status": "paid"})

    result = pos.get_check_status(db_engine, create_integration(), "chk-77", transport)

    assert result["status"] == "paid"
