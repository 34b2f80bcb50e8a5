"""
Guest-management adapter: guest profiles, feedback, chat and notifications.

Outbound payloads are tagged with source "hospient_app". List reads translate
camelCase filters into the provider's snake_case query parameters.
"""

from typing import Any, Mapping, Optional

import requests
from sqlalchemy.engine import Engine

from hotel_integrations.db.writers.guests import upsert_guest
from hotel_integrations.errors import IntegrationError
from hotel_integrations.services.connection_test import test_connection
from hotel_integrations.services.session import IntegrationSession, run_operation, run_sync
from hotel_integrations.utils.datetime import parse_date, utc_now_iso

SOURCE = "hospient_app"

GUESTS_ENDPOINT = "/api/guests"
FEEDBACK_ENDPOINT = "/api/feedback"
CHAT_ENDPOINT = "/api/chat"
NOTIFICATIONS_ENDPOINT = "/api/notifications"

_COMMON_FILTERS = {
    "guestId": "guest_id",
    "hotelId": "hotel_id",
}
_PAGING_FILTERS = {
    "startDate": "start_date",
    "endDate": "end_date",
    "limit": "limit",
    "offset": "offset",
}

FEEDBACK_FILTERS = {**_COMMON_FILTERS, "rating": "rating", "category": "category", **_PAGING_FILTERS}
CHAT_FILTERS = {
    **_COMMON_FILTERS,
    "roomNumber": "room_number",
    "senderType": "sender_type",
    **_PAGING_FILTERS,
}
NOTIFICATION_FILTERS = {
    **_COMMON_FILTERS,
    "category": "category",
    "priority": "priority",
    "notificationType": "notification_type",
    **_PAGING_FILTERS,
}


def build_query_params(
    filters: Optional[Mapping[str, Any]], mapping: Mapping[str, str]
) -> dict[str, Any]:
    """
    Translate camelCase filters into provider query params.

    Unknown keys and empty values (None, "", 0, False) are dropped.

    Example:
        >>> build_query_params({"guestId": "g1", "rating": None}, FEEDBACK_FILTERS)
        {'guest_id': 'g1'}
    """
    params: dict[str, Any] = {}
    for key, param in mapping.items():
        value = (filters or {}).get(key)
        if value:
            params[param] = value
    return params


def transform_guest(external_guest: dict[str, Any]) -> dict[str, Any]:
    """
    Map a provider guest onto guests columns.

    Raises:
        ValueError: If date_of_birth is not an ISO date
    """
    return {
        "first_name": external_guest.get("first_name"),
        "last_name": external_guest.get("last_name"),
        "email": external_guest.get("email"),
        "phone": external_guest.get("phone"),
        "address": external_guest.get("address"),
        "city": external_guest.get("city"),
        "country": external_guest.get("country"),
        "passport_number": external_guest.get("passport_number"),
        "date_of_birth": parse_date(external_guest.get("date_of_birth")),
        "preferences": external_guest.get("preferences") or {},
        "loyalty_points": external_guest.get("loyalty_points") or 0,
        "status": external_guest.get("status") or "active",
    }


def transform_feedback(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "guest_id": data.get("guestId"),
        "hotel_id": data.get("hotelId"),
        "room_number": data.get("roomNumber"),
        "rating": data.get("rating"),
        "category": data.get("category"),
        "title": data.get("title"),
        "message": data.get("message"),
        "is_anonymous": bool(data.get("isAnonymous")),
        "tags": data.get("tags") or [],
        "metadata": data.get("metadata") or {},
        "submitted_at": data.get("submittedAt") or utc_now_iso(),
        "source": SOURCE,
    }


def transform_chat_message(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "guest_id": data.get("guestId"),
        "hotel_id": data.get("hotelId"),
        "room_number": data.get("roomNumber"),
        "message": data.get("message"),
        "message_type": data.get("messageType") or "text",
        "sender_type": data.get("senderType") or "guest",
        "sender_id": data.get("senderId"),
        "sender_name": data.get("senderName"),
        "timestamp": data.get("timestamp") or utc_now_iso(),
        "metadata": data.get("metadata") or {},
        "source": SOURCE,
    }


def transform_notification(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "guest_id": data.get("guestId"),
        "hotel_id": data.get("hotelId"),
        "room_number": data.get("roomNumber"),
        "title": data.get("title"),
        "message": data.get("message"),
        "category": data.get("category"),
        "priority": data.get("priority") or "normal",
        "notification_type": data.get("notificationType") or "push",
        "scheduled_at": data.get("scheduledAt"),
        "expires_at": data.get("expiresAt"),
        "metadata": data.get("metadata") or {},
        "source": SOURCE,
    }


# =============================================================================
# Guest sync
# =============================================================================


def fetch_guests(session: IntegrationSession, guest_id: Optional[str] = None) -> list[Any]:
    """Fetch one guest (as a one-element list) or every guest."""
    endpoint = session.endpoint("guests", GUESTS_ENDPOINT)
    if guest_id:
        endpoint = f"{endpoint}/{guest_id}"
    data = session.request("GET", endpoint).data
    return data if isinstance(data, list) else [data]


def _store_guest(session: IntegrationSession, external_guest: Any) -> None:
    if not isinstance(external_guest, dict):
        raise ValueError("Guest record is not an object")
    data = transform_guest(external_guest)
    with session.engine.begin() as conn:
        upsert_guest(conn, external_guest.get("id"), session.provider_name, data)


def sync_guest_data(
    engine: Engine,
    integration_id: int,
    guest_id: Optional[str] = None,
    transport: Optional[requests.Session] = None,
) -> dict[str, int]:
    """
    Pull one or all guests and upsert them into the guests table.

    Records are processed sequentially; a record that fails to transform or store is
    counted in "failed" and the remaining records are still attempted.

    Args:
        engine: SQLAlchemy engine
        integration_id: Guest-management integration id
        guest_id: Provider guest id to sync alone
        transport: HTTP transport override

    Returns:
        dict: {"processed", "success", "failed"}
    """
    return run_sync(
        engine,
        integration_id,
        "guest_data",
        lambda session: fetch_guests(session, guest_id),
        _store_guest,
        transport,
        request_data={"guest_id": guest_id},
    )


# =============================================================================
# Feedback / chat / notifications
# =============================================================================


def _post(
    engine: Engine,
    integration_id: int,
    operation_name: str,
    endpoint_name: str,
    default_endpoint: str,
    payload: dict[str, Any],
    id_key: str,
    transport: Optional[requests.Session],
) -> dict[str, Any]:
    def action(session: IntegrationSession) -> dict[str, Any]:
        response = session.request(
            "POST", session.endpoint(endpoint_name, default_endpoint), payload
        )
        data = response.data
        return {
            "success": True,
            id_key: data.get("id") if isinstance(data, dict) else None,
            "response": data,
        }

    return run_operation(
        engine, integration_id, operation_name, action, transport, request_data=payload
    )


def _list(
    engine: Engine,
    integration_id: int,
    operation_name: str,
    endpoint_name: str,
    default_endpoint: str,
    params: dict[str, Any],
    result_key: str,
    transport: Optional[requests.Session],
    require_active: bool = True,
) -> dict[str, Any]:
    def action(session: IntegrationSession) -> dict[str, Any]:
        data = session.request(
            "GET", session.endpoint(endpoint_name, default_endpoint), params=params
        ).data
        items = data if isinstance(data, list) else []
        return {"success": True, result_key: data, "total": len(items)}

    return run_operation(
        engine,
        integration_id,
        operation_name,
        action,
        transport,
        direction="inbound",
        request_data=params,
        require_active=require_active,
    )


def post_feedback(
    engine: Engine,
    integration_id: int,
    feedback: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """
    Forward guest feedback to the provider.

    Returns:
        dict: {"success", "external_feedback_id", "response"}
    """
    return _post(
        engine,
        integration_id,
        "post_feedback",
        "feedback",
        FEEDBACK_ENDPOINT,
        transform_feedback(feedback),
        "external_feedback_id",
        transport,
    )


def get_feedback(
    engine: Engine,
    integration_id: int,
    filters: Optional[Mapping[str, Any]] = None,
    transport: Optional[requests.Session] = None,
    require_active: bool = True,
) -> dict[str, Any]:
    """
    List feedback.

    Returns:
        dict: {"success", "feedback", "total"}
    """
    return _list(
        engine,
        integration_id,
        "get_feedback",
        "feedback",
        FEEDBACK_ENDPOINT,
        build_query_params(filters, FEEDBACK_FILTERS),
        "feedback",
        transport,
        require_active,
    )


def post_chat_message(
    engine: Engine,
    integration_id: int,
    message: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    return _post(
        engine,
        integration_id,
        "post_chat",
        "chat",
        CHAT_ENDPOINT,
        transform_chat_message(message),
        "external_chat_id",
        transport,
    )


def get_chat_messages(
    engine: Engine,
    integration_id: int,
    filters: Optional[Mapping[str, Any]] = None,
    transport: Optional[requests.Session] = None,
    require_active: bool = True,
) -> dict[str, Any]:
    """List chat messages: {"success", "messages", "total"}."""
    return _list(
        engine,
        integration_id,
        "get_chat",
        "chat",
        CHAT_ENDPOINT,
        build_query_params(filters, CHAT_FILTERS),
        "messages",
        transport,
        require_active,
    )


def post_notification(
    engine: Engine,
    integration_id: int,
    notification: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    return _post(
        engine,
        integration_id,
        "post_notification",
        "notifications",
        NOTIFICATIONS_ENDPOINT,
        transform_notification(notification),
        "external_notification_id",
        transport,
    )


def get_notifications(
    engine: Engine,
    integration_id: int,
    filters: Optional[Mapping[str, Any]] = None,
    transport: Optional[requests.Session] = None,
    require_active: bool = True,
) -> dict[str, Any]:
    """List notifications: {"success", "notifications", "total"}."""
    return _list(
        engine,
        integration_id,
        "get_notifications",
        "notifications",
        NOTIFICATIONS_ENDPOINT,
        build_query_params(filters, NOTIFICATION_FILTERS),
        "notifications",
        transport,
        require_active,
    )


def update_notification_status(
    engine: Engine,
    integration_id: int,
    notification_id: str,
    status: str,
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    body = {"status": status}

    def action(session: IntegrationSession) -> dict[str, Any]:
        endpoint = (
            f"{session.endpoint('notifications', NOTIFICATIONS_ENDPOINT)}/{notification_id}/status"
        )
        return {"success": True, "response": session.request("PUT", endpoint, body).data}

    return run_operation(
        engine,
        integration_id,
        "update_notification_status",
        action,
        transport,
        request_data={"notification_id": notification_id, **body},
    )


# =============================================================================
# Preferences
# =============================================================================


def get_guest_preferences(
    engine: Engine,
    integration_id: int,
    guest_id: str,
    transport: Optional[requests.Session] = None,
) -> Any:
    def action(session: IntegrationSession) -> Any:
        endpoint = f"{session.endpoint('guests', GUESTS_ENDPOINT)}/{guest_id}/preferences"
        return session.request("GET", endpoint).data

    return run_operation(
        engine,
        integration_id,
        "get_guest_preferences",
        action,
        transport,
        direction="inbound",
        request_data={"guest_id": guest_id},
    )


def update_guest_preferences(
    engine: Engine,
    integration_id: int,
    guest_id: str,
    preferences: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    def action(session: IntegrationSession) -> dict[str, Any]:
        endpoint = f"{session.endpoint('guests', GUESTS_ENDPOINT)}/{guest_id}/preferences"
        return {"success": True, "response": session.request("PUT", endpoint, preferences).data}

    return run_operation(
        engine,
        integration_id,
        "update_guest_preferences",
        action,
        transport,
        request_data={"guest_id": guest_id, "preferences": preferences},
    )


def test_guest_management_integration(
    engine: Engine,
    integration_id: int,
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """Connection test followed by one-item reads of feedback, chat and notifications."""
    connection = test_connection(engine, integration_id, transport)
    if not connection["success"]:
        return connection

    sample = {"limit": 1}
    try:
        feedback = get_feedback(engine, integration_id, sample, transport, require_active=False)
        chat = get_chat_messages(engine, integration_id, sample, transport, require_active=False)
        notifications = get_notifications(
            engine, integration_id, sample, transport, require_active=False
        )
    except IntegrationError as e:
        return {"success": False, "error": e.message, "code": e.error_code}

    return {
        "success": True,
        "connection": "OK",
        "feedback": "OK",
        "chat": "OK",
        "notifications": "OK",
        "feedback_count": feedback["total"],
        "chat_count": chat["total"],
        "notification_count": notifications["total"],
    }
