"""Inbound provider webhook routes."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from hotel_integrations.dependencies import get_db_engine
from hotel_integrations.services.webhooks import handle_webhook
from hotel_integrations.utils.datetime import utc_now_iso

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/webhooks/health")
def webhooks_health() -> dict[str, str]:
    return {"status": "ok", "timestamp": utc_now_iso()}


@router.post("/webhooks/{integration_id}")
async def receive_webhook(
    integration_id: int,
    request: Request,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Receive a provider callback for one integration.

    The raw body is read before any parsing so the HMAC signature is checked over
    the exact bytes the provider signed. Dispatch (which may trigger a full sync)
    runs in the threadpool.

    Expected body:
        {"event_type": "check_created", "data": {"check_id": "c-1"}}

    Returns:
        dict: {"status": "success", "data": <handler result>}

    Errors are rendered by the IntegrationError handler: 404 unknown integration,
    401 bad signature, 400 invalid body or unsupported event, 502 provider failure.
    """
    raw_body = await request.body()

    logger.info(
        "webhook_received",
        integration_id=integration_id,
        body_length=len(raw_body),
    )

    result = await run_in_threadpool(
        handle_webhook, engine, integration_id, dict(request.headers), raw_body
    )
    return {"status": "success", "data": result}
