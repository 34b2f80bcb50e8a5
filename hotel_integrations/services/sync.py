"""Integration sync orchestrator: one sync per call, or every active integration."""

from typing import Any, Optional

import requests
import structlog
from sqlalchemy.engine import Engine

from hotel_integrations.db.readers.integrations import get_integration, list_active_integrations
from hotel_integrations.errors import NotFoundError, UnsupportedProviderError
from hotel_integrations.services.guest_management import sync_guest_data
from hotel_integrations.services.pms import sync_reservations
from hotel_integrations.services.pos import sync_menus

logger = structlog.get_logger(__name__)

# integration_type -> the only sync_type it supports
SYNC_TYPES = {
    "pos": "menus",
    "pms": "reservations",
    "guest_management": "guest_data",
}


def sync_integration(
    engine: Engine,
    integration_id: int,
    sync_type: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """
    Run the sync matching an integration's category.

    Args:
        engine: SQLAlchemy engine
        integration_id: Integration primary key
        sync_type: Requested sync; defaults to the category's sync
        start_date: Reservation window start (PMS only)
        end_date: Reservation window end (PMS only)
        transport: HTTP transport override

    Returns:
        dict: {"processed", "success", "failed"}

    Raises:
        NotFoundError: If the integration does not exist
        UnsupportedProviderError: If sync_type does not match the category
        InactiveIntegrationError: If the integration is not active
    """
    with engine.connect() as conn:
        integration = get_integration(conn, integration_id)
    if integration is None:
        raise NotFoundError(f"Integration {integration_id} not found")

    integration_type = integration["integration_type"]
    expected = SYNC_TYPES.get(integration_type)
    if expected is None:
        raise UnsupportedProviderError(f"Unsupported integration type '{integration_type}'")
    if sync_type and sync_type != expected:
        raise UnsupportedProviderError(
            f"Invalid sync_type '{sync_type}' for {integration_type} integration. Use: {expected}"
        )

    if integration_type == "pos":
        return sync_menus(engine, integration_id, transport)
    if integration_type == "pms":
        return sync_reservations(engine, integration_id, start_date, end_date, transport)
    return sync_guest_data(engine, integration_id, transport=transport)


def sync_all_integrations(engine: Engine, dry_run: bool = False) -> None:
    """
    Run sync_integration() for all active integrations.

    A failing integration is logged and skipped; the remaining ones still run.

    Args:
        engine: SQLAlchemy engine
        dry_run (bool): If True, only log what would be synced.
    """
    logger.info("sync_all_integrations_started")

    with engine.connect() as conn:
        active = list_active_integrations(conn)

    logger.info("active_integrations_found", count=len(active))

    for integration in active:
        if dry_run:
            logger.info(
                "sync_skipped_dry_run",
                integration_id=integration["id"],
                sync_type=SYNC_TYPES.get(integration["integration_type"]),
            )
            continue
        try:
            sync_integration(engine, integration["id"])
        except Exception as e:
            logger.exception(
                "integration_sync_failed", integration_id=integration["id"], error=str(e)
            )

    logger.info("sync_all_integrations_completed", total_integrations=len(active))
