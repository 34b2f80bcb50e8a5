"""
POS adapter: menus and guest checks.

Menus are pulled from the POS and upserted into the local menus table keyed by
(hotel_id, external_id, provider_name). Guest checks are pushed to the POS and are
only recorded in the activity log, never persisted locally.
"""

from typing import Any, Optional

import requests
from sqlalchemy.engine import Engine

from hotel_integrations.db.writers.menus import upsert_menu
from hotel_integrations.errors import IntegrationError, InvalidPayloadError
from hotel_integrations.services.connection_test import test_connection
from hotel_integrations.services.session import IntegrationSession, run_operation, run_sync
from hotel_integrations.utils.datetime import utc_now_iso

MENUS_ENDPOINT = "/api/menus"
CHECKS_ENDPOINT = "/api/checks"
CATEGORIES_ENDPOINT = "/api/menu-categories"


def _response_id(data: Any) -> Any:
    return data.get("id") if isinstance(data, dict) else None


def transform_menu(pos_menu: dict[str, Any]) -> dict[str, Any]:
    """Map a POS menu item onto menus columns."""
    name = pos_menu.get("name") or pos_menu.get("title")
    if not name:
        raise ValueError("Menu item has no name")

    return {
        "name": name,
        "description": pos_menu.get("description"),
        "category": pos_menu.get("category") or "main",
        "price": pos_menu.get("price") or 0,
        "currency": pos_menu.get("currency") or "USD",
        "is_available": pos_menu.get("is_available") is not False,
        "image_url": pos_menu.get("image_url") or pos_menu.get("image"),
        "allergens": pos_menu.get("allergens") or [],
        "nutritional_info": pos_menu.get("nutritional_info") or {},
        "preparation_time": pos_menu.get("preparation_time"),
        "tags": pos_menu.get("tags") or [],
    }


def transform_check(check: dict[str, Any]) -> dict[str, Any]:
    """Map an internal guest check onto the POS check payload."""
    return {
        "guest_id": check.get("guestId"),
        "room_number": check.get("roomNumber"),
        "items": [
            {
                "menu_id": item.get("menuId"),
                "quantity": item.get("quantity"),
                "unit_price": item.get("unitPrice"),
                "total_price": item.get("totalPrice"),
                "special_instructions": item.get("specialInstructions") or "",
            }
            for item in check.get("items") or []
        ],
        "subtotal": check.get("subtotal"),
        "tax": check.get("tax"),
        "total": check.get("total"),
        "payment_method": check.get("paymentMethod"),
        "payment_status": check.get("paymentStatus"),
        "timestamp": check.get("timestamp") or utc_now_iso(),
    }


def fetch_menus(session: IntegrationSession) -> list[dict[str, Any]]:
    """
    Fetch menu items from the POS.

    Raises:
        InvalidPayloadError: If the POS does not return a list
    """
    response = session.request("GET", session.endpoint("menus", MENUS_ENDPOINT))
    if not isinstance(response.data, list):
        raise InvalidPayloadError("Invalid response format from POS system")
    return response.data


def _store_menu(session: IntegrationSession, pos_menu: dict[str, Any]) -> None:
    data = transform_menu(pos_menu)
    with session.engine.begin() as conn:
        upsert_menu(conn, session.hotel_id, pos_menu.get("id"), session.provider_name, data)


def sync_menus(
    engine: Engine,
    integration_id: int,
    transport: Optional[requests.Session] = None,
) -> dict[str, int]:
    """
    Pull the POS menu and upsert every item into the menus table.

    Args:
        engine: SQLAlchemy engine
        integration_id: POS integration id
        transport: HTTP transport override

    Returns:
        dict: {"processed", "success", "failed"}
    """
    return run_sync(engine, integration_id, "menus", fetch_menus, _store_menu, transport)


def get_menus(
    engine: Engine,
    integration_id: int,
    transport: Optional[requests.Session] = None,
) -> list[dict[str, Any]]:
    """Fetch the POS menu without persisting it."""
    return run_operation(engine, integration_id, "get_menus", fetch_menus, transport)


def post_guest_check(
    engine: Engine,
    integration_id: int,
    check: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """
    Push a guest check to the POS.

    Args:
        engine: SQLAlchemy engine
        integration_id: POS integration id
        check: Internal check (camelCase keys, items list)
        transport: HTTP transport override

    Returns:
        dict: {"success", "pos_check_id", "response"}
    """
    payload = transform_check(check)

    def action(session: IntegrationSession) -> dict[str, Any]:
        response = session.request("POST", session.endpoint("checks", CHECKS_ENDPOINT), payload)
        return {
            "success": True,
            "pos_check_id": _response_id(response.data),
            "response": response.data,
        }

    return run_operation(
        engine, integration_id, "post_guest_check", action, transport, request_data=payload
    )


def get_check_status(
    engine: Engine,
    integration_id: int,
    check_id: str,
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    def action(session: IntegrationSession) -> dict[str, Any]:
        endpoint = f"{session.endpoint('checks', CHECKS_ENDPOINT)}/{check_id}"
        data = session.request("GET", endpoint).data
        return {
            "success": True,
            "status": data.get("status") if isinstance(data, dict) else None,
            "data": data,
        }

    return run_operation(
        engine,
        integration_id,
        "get_check_status",
        action,
        transport,
        direction="inbound",
        request_data={"check_id": check_id},
    )


def void_check(
    engine: Engine,
    integration_id: int,
    check_id: str,
    reason: str = "Guest request",
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """Void a check in the POS."""
    body = {"reason": reason}

    def action(session: IntegrationSession) -> dict[str, Any]:
        endpoint = f"{session.endpoint('checks', CHECKS_ENDPOINT)}/{check_id}/void"
        return {"success": True, "response": session.request("POST", endpoint, body).data}

    return run_operation(
        engine,
        integration_id,
        "void_check",
        action,
        transport,
        request_data={"check_id": check_id, **body},
    )


def get_menu_categories(
    engine: Engine,
    integration_id: int,
    transport: Optional[requests.Session] = None,
) -> Any:
    def action(session: IntegrationSession) -> Any:
        return session.request("GET", session.endpoint("categories", CATEGORIES_ENDPOINT)).data

    return run_operation(
        engine, integration_id, "get_menu_categories", action, transport, direction="inbound"
    )


def test_pos_integration(
    engine: Engine,
    integration_id: int,
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """
    Connection test followed by a menu fetch.

    Returns:
        dict: The failed connection test result, or
            {"success", "connection", "menu_sync", "menu_count"}
    """
    connection = test_connection(engine, integration_id, transport)
    if not connection["success"]:
        return connection

    try:
        menus = run_operation(
            engine, integration_id, "get_menus", fetch_menus, transport, require_active=False
        )
    except IntegrationError as e:
        return {"success": False, "error": e.message, "code": e.error_code}

    return {"success": True, "connection": "OK", "menu_sync": "OK", "menu_count": len(menus)}
