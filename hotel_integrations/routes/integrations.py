from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from hotel_integrations.db.readers.integrations import list_integrations, list_logs
from hotel_integrations.db.writers.integrations import (
    delete_integration,
    insert_integration,
    update_integration,
)
from hotel_integrations.dependencies import get_db_engine
from hotel_integrations.errors import IntegrationError
from hotel_integrations.models.integrations import LOG_STATUSES, OPERATION_TYPES
from hotel_integrations.providers.registry import list_providers
from hotel_integrations.routes._integration_helpers import (
    build_integration_row,
    get_integration_or_404,
    serialize_integration,
)
from hotel_integrations.schemas.integrations import (
    IntegrationCreatePayload,
    IntegrationUpdatePayload,
    SyncPayload,
)
from hotel_integrations.security.vault import encrypt_credentials
from hotel_integrations.services.connection_test import test_integration
from hotel_integrations.services.sync import sync_integration

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/integrations/providers")
def get_providers() -> dict[str, Any]:
    """
    Providers grouped by integration type, with the credential fields each one needs.

    Returns:
        dict: {"status": "success", "data": {"pos": [...], "pms": [...], ...}}
    """
    return {"status": "success", "data": list_providers()}


@router.get("/integrations")
def get_integrations(
    hotel_id: int = Query(..., description="Hotel to list integrations for"),
    integration_type: Optional[str] = Query(None, description="Filter by category"),
    integration_status: Optional[str] = Query(
        None, alias="status", description="Filter by status"
    ),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """List a hotel's integrations, newest first. Credentials are never returned."""
    with engine.connect() as conn:
        rows = list_integrations(conn, hotel_id, integration_type, integration_status)
    return {"status": "success", "data": [serialize_integration(row) for row in rows]}


@router.get("/integrations/{integration_id}")
def get_integration_endpoint(
    integration_id: int,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with engine.connect() as conn:
        integration = get_integration_or_404(conn, integration_id)
    return {"status": "success", "data": serialize_integration(integration)}


@router.post("/integrations", status_code=status.HTTP_201_CREATED)
def create_integration(
    payload: IntegrationCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create an integration.

    The provider must serve the requested category; credentials are encrypted
    before they are stored and the integration starts out inactive.

    Args:
        payload: Integration fields with plaintext credentials
        engine: Database engine

    Returns:
        dict: The created integration without secrets
    """
    try:
        row = build_integration_row(payload)

        with engine.begin() as conn:
            integration_id = insert_integration(conn, row)
            integration = get_integration_or_404(conn, integration_id)

        logger.info(
            "integration_created",
            integration_id=integration_id,
            hotel_id=payload.hotel_id,
            integration_type=payload.integration_type,
            provider=payload.provider,
        )
        return {"status": "success", "data": serialize_integration(integration)}

    except (HTTPException, IntegrationError):
        raise
    except Exception as e:
        logger.exception("integration_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/integrations/{integration_id}")
def update_integration_endpoint(
    integration_id: int,
    payload: IntegrationUpdatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Update an integration. New credentials are re-encrypted before storage.

    Args:
        integration_id: Integration to update
        payload: Fields to update (only the ones provided are changed)
        engine: Database engine

    Returns:
        dict: The updated integration without secrets
    """
    try:
        update_data = payload.model_dump(exclude_unset=True)
        if update_data.get("credentials") is not None:
            update_data["credentials"] = encrypt_credentials(update_data["credentials"])

        with engine.begin() as conn:
            get_integration_or_404(conn, integration_id)
            if update_data:
                update_integration(conn, integration_id, update_data)
            integration = get_integration_or_404(conn, integration_id)

        logger.info(
            "integration_updated",
            integration_id=integration_id,
            updated_fields=sorted(update_data),
        )
        return {"status": "success", "data": serialize_integration(integration)}

    except (HTTPException, IntegrationError):
        raise
    except Exception as e:
        logger.exception("integration_update_failed", integration_id=integration_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/integrations/{integration_id}/test")
def test_integration_endpoint(
    integration_id: int,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Run the provider connection test plus category sample reads.

    A failed test is reported in the body ("success": false), not as an HTTP error.
    """
    result = test_integration(engine, integration_id)
    return {"status": "success", "data": result}


@router.post("/integrations/{integration_id}/sync")
def trigger_sync(
    integration_id: int,
    payload: Optional[SyncPayload] = None,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Run the integration's sync and return its record counts.

    Args:
        integration_id: Integration to sync (must be active)
        payload: sync_type (menus, reservations or guest_data) and optional date window
        engine: Database engine

    Returns:
        dict: {"status": "success", "data": {"processed", "success", "failed"}}
    """
    payload = payload or SyncPayload()
    result = sync_integration(
        engine,
        integration_id,
        payload.sync_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return {"status": "success", "data": result}


@router.get("/integrations/{integration_id}/logs")
def get_integration_logs(
    integration_id: int,
    operation_type: Optional[str] = Query(
        None, description=f"One of {', '.join(OPERATION_TYPES)}"
    ),
    log_status: Optional[str] = Query(
        None, alias="status", description=f"One of {', '.join(LOG_STATUSES)}"
    ),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Page through an integration's activity log, newest first."""
    with engine.connect() as conn:
        get_integration_or_404(conn, integration_id)
        logs, total = list_logs(conn, integration_id, operation_type, log_status, limit, offset)

    return {
        "status": "success",
        "data": {"logs": logs, "total": total, "limit": limit, "offset": offset},
    }


@router.delete("/integrations/{integration_id}")
def delete_integration_endpoint(
    integration_id: int,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    """Permanently delete an integration and its activity log."""
    with engine.begin() as conn:
        get_integration_or_404(conn, integration_id)
        delete_integration(conn, integration_id)

    logger.info("integration_deleted", integration_id=integration_id)
    return {"status": "success", "message": f"Integration {integration_id} deleted"}
