"""
Inbound webhook dispatcher.

Verifies the HMAC signature of the raw body when the integration has a webhook
secret, then routes the event to a handler keyed by (integration_type, event_type).
Every call writes exactly one webhook entry to the activity log.
"""

import hashlib
import hmac
import json
import time
from typing import Any, Callable, Mapping, Optional

import requests
import structlog
from sqlalchemy.engine import Engine

from hotel_integrations.db.readers.integrations import get_integration
from hotel_integrations.errors import (
    InvalidPayloadError,
    InvalidSignatureError,
    NotFoundError,
    UnsupportedEventError,
)
from hotel_integrations.metrics import webhooks_total
from hotel_integrations.services.activity_log import record_activity
from hotel_integrations.services.guest_management import sync_guest_data
from hotel_integrations.services.pms import sync_reservations
from hotel_integrations.services.pos import sync_menus
from hotel_integrations.services.session import elapsed_ms

logger = structlog.get_logger(__name__)

SIGNATURE_HEADERS = ("x-webhook-signature", "x-signature")

WebhookHandler = Callable[
    [Engine, int, dict[str, Any], Optional[requests.Session]], dict[str, Any]
]


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Lowercase hex HMAC-SHA256 of the raw body."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, raw_body: bytes, signature: Optional[str]) -> bool:
    """
    Constant-time check of a webhook signature.

    Args:
        secret: Integration webhook_secret
        raw_body: Request body exactly as received
        signature: Value of the signature header

    Returns:
        bool: True if the signature matches
    """
    if not signature:
        return False
    expected = compute_signature(secret, raw_body)
    return hmac.compare_digest(expected, signature.strip().lower())


def get_signature(headers: Mapping[str, str]) -> Optional[str]:
    lowered = {name.lower(): value for name, value in headers.items()}
    for name in SIGNATURE_HEADERS:
        if lowered.get(name):
            return lowered[name]
    return None


# =============================================================================
# Event handlers
# =============================================================================


def handle_menu_updated(
    engine: Engine,
    integration_id: int,
    data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    result = sync_menus(engine, integration_id, transport)
    return {"action": "menu_sync_triggered", "result": result}


def handle_check_event(action: str) -> WebhookHandler:
    def handler(
        engine: Engine,
        integration_id: int,
        data: dict[str, Any],
        transport: Optional[requests.Session] = None,
    ) -> dict[str, Any]:
        return {"action": action, "check_id": data.get("check_id")}

    return handler


def handle_reservation_changed(
    engine: Engine,
    integration_id: int,
    data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    result = sync_reservations(engine, integration_id, transport=transport)
    return {"action": "reservation_sync_triggered", "result": result}


def handle_stay_event(action: str) -> WebhookHandler:
    def handler(
        engine: Engine,
        integration_id: int,
        data: dict[str, Any],
        transport: Optional[requests.Session] = None,
    ) -> dict[str, Any]:
        return {"action": action, "reservation_id": data.get("reservation_id")}

    return handler


def handle_room_status_changed(
    engine: Engine,
    integration_id: int,
    data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    return {"action": "room_status_changed", "room_number": data.get("room_number")}


def handle_feedback_submitted(
    engine: Engine,
    integration_id: int,
    data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    return {"action": "feedback_received", "feedback_id": data.get("feedback_id")}


def handle_chat_message_received(
    engine: Engine,
    integration_id: int,
    data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    return {"action": "chat_message_received", "message_id": data.get("message_id")}


def handle_notification_sent(
    engine: Engine,
    integration_id: int,
    data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    return {"action": "notification_sent", "notification_id": data.get("notification_id")}


def handle_guest_updated(
    engine: Engine,
    integration_id: int,
    data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    result = sync_guest_data(engine, integration_id, data.get("guest_id"), transport)
    return {"action": "guest_sync_triggered", "result": result}


EVENT_HANDLERS: dict[str, dict[str, WebhookHandler]] = {
    "pos": {
        "menu_updated": handle_menu_updated,
        "check_created": handle_check_event("check_created"),
        "check_updated": handle_check_event("check_updated"),
        "check_voided": handle_check_event("check_voided"),
    },
    "pms": {
        "reservation_created": handle_reservation_changed,
        "reservation_updated": handle_reservation_changed,
        "check_in": handle_stay_event("check_in"),
        "check_out": handle_stay_event("check_out"),
        "room_status_changed": handle_room_status_changed,
    },
    "guest_management": {
        "feedback_submitted": handle_feedback_submitted,
        "chat_message_received": handle_chat_message_received,
        "notification_sent": handle_notification_sent,
        "guest_updated": handle_guest_updated,
    },
}


# =============================================================================
# Dispatcher
# =============================================================================


def _parse_body(raw_body: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(raw_body.decode("utf-8")) if raw_body else None
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidPayloadError("Webhook body is not valid JSON") from e
    if not isinstance(payload, dict):
        raise InvalidPayloadError("Webhook body must be a JSON object")
    return payload


def handle_webhook(
    engine: Engine,
    integration_id: int,
    headers: Mapping[str, str],
    raw_body: bytes,
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """
    Verify and dispatch one inbound webhook.

    Args:
        engine: SQLAlchemy engine
        integration_id: Integration the provider is calling back
        headers: Request headers
        raw_body: Request body bytes, used verbatim for the signature
        transport: HTTP transport override for syncs triggered by the event

    Returns:
        dict: Handler result, e.g. {"action": "check_created", "check_id": "c-1"}

    Raises:
        NotFoundError: Unknown integration (nothing is logged)
        InvalidSignatureError: Missing or mismatched signature
        InvalidPayloadError: Body is not a JSON object with an event_type
        UnsupportedEventError: No handler for the event in this category
    """
    with engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    if integration is None:
        raise NotFoundError(f"Integration {integration_id} not found")

    integration_type = integration["integration_type"]
    start = time.monotonic()

    secret = integration.get("webhook_secret")
    if secret and not verify_signature(secret, raw_body, get_signature(headers)):
        error = InvalidSignatureError(
            "Missing webhook signature"
            if get_signature(headers) is None
            else "Invalid webhook signature"
        )
        record_activity(
            engine,
            integration_id,
            "webhook",
            "webhook_validation",
            "inbound",
            "failed",
            request_data={"body_length": len(raw_body)},
            error_message=error.message,
            error_code=error.error_code,
            processing_time=elapsed_ms(start),
        )
        webhooks_total.labels(integration_type=integration_type, status="rejected").inc()
        logger.warning(
            "webhook_signature_rejected", integration_id=integration_id, reason=error.message
        )
        raise error

    payload: Any = None
    try:
        payload = _parse_body(raw_body)
        event_type = payload.get("event_type")
        if not event_type:
            raise InvalidPayloadError("Webhook body has no event_type")

        handler = EVENT_HANDLERS.get(integration_type, {}).get(event_type)
        if handler is None:
            raise UnsupportedEventError(
                f"Unsupported {integration_type} webhook event: {event_type}"
            )

        data = payload.get("data")
        result = handler(engine, integration_id, data if isinstance(data, dict) else {}, transport)
    except Exception as e:
        record_activity(
            engine,
            integration_id,
            "webhook",
            "webhook_processing",
            "inbound",
            "failed",
            request_data={"body": payload},
            error_message=str(e),
            error_code=getattr(e, "error_code", None),
            processing_time=elapsed_ms(start),
        )
        webhooks_total.labels(integration_type=integration_type, status="failed").inc()
        logger.error("webhook_processing_failed", integration_id=integration_id, error=str(e))
        raise

    record_activity(
        engine,
        integration_id,
        "webhook",
        "webhook_processing",
        "inbound",
        "success",
        request_data={"body": payload},
        response_data=result,
        processing_time=elapsed_ms(start),
        metadata={"event_type": event_type},
    )
    webhooks_total.labels(integration_type=integration_type, status="success").inc()
    logger.info(
        "webhook_processed",
        integration_id=integration_id,
        event_type=event_type,
        action=result.get("action"),
    )
    return result
