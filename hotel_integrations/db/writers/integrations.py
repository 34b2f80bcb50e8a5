import json
from typing import Any, Optional

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from hotel_integrations.config import ERROR_DISABLE_THRESHOLD
from hotel_integrations.models.integrations import Integration, IntegrationLog
from hotel_integrations.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

integrations = Integration.__table__
integration_logs = IntegrationLog.__table__

JSON_COLUMNS = ("config", "credentials", "sync_settings")


def _encode_json_columns(data: dict[str, Any]) -> dict[str, Any]:
    encoded = dict(data)
    for column in JSON_COLUMNS:
        value = encoded.get(column)
        if value is not None and not isinstance(value, str):
            encoded[column] = json.dumps(value)
    return encoded


def insert_integration(conn: Connection, data: dict[str, Any]) -> int:
    """
    Insert a new integration row.

    The caller must already have replaced plaintext credentials with the vault envelope.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        data (dict): Column values.

    Returns:
        int: New integration id.
    """
    now = utc_now()
    row = _encode_json_columns(data)
    row.setdefault("status", "inactive")
    row.setdefault("error_count", 0)
    row["created_at"] = now
    row["updated_at"] = now

    result = conn.execute(insert(integrations).values(**row))
    integration_id = int(result.inserted_primary_key[0])

    logger.info(
        "integration_inserted",
        integration_id=integration_id,
        integration_type=row.get("integration_type"),
        provider=row.get("provider"),
    )
    return integration_id


def update_integration(conn: Connection, integration_id: int, data: dict[str, Any]) -> None:
    """
    Update integration fields.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        integration_id (int): Integration primary key.
        data (dict): Fields to update.
    """
    values = _encode_json_columns(data)
    values["updated_at"] = utc_now()

    conn.execute(update(integrations).where(integrations.c.id == integration_id).values(**values))


def delete_integration(conn: Connection, integration_id: int) -> None:
    """
    Permanently delete an integration and its activity log history.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        integration_id (int): Integration primary key.
    """
    conn.execute(delete(integration_logs).where(integration_logs.c.integration_id == integration_id))
    conn.execute(delete(integrations).where(integrations.c.id == integration_id))


def record_success(conn: Connection, integration_id: int) -> None:
    """
    Clear error bookkeeping after a successful operation.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        integration_id (int): Integration primary key.
    """
    conn.execute(
        update(integrations)
        .where(integrations.c.id == integration_id)
        .values(error_count=0, last_error=None, updated_at=utc_now())
    )


def record_failure(
    conn: Connection,
    integration_id: int,
    error_message: str,
    disable_threshold: Optional[int] = None,
) -> None:
    """
    Increment error_count and store the last error.

    When a positive disable threshold is configured and the integration reaches it,
    the integration is moved to status 'error'. The default (0) never disables.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        integration_id (int): Integration primary key.
        error_message (str): Error to store in last_error.
        disable_threshold (Optional[int]): Override for ERROR_DISABLE_THRESHOLD.
    """
    threshold = ERROR_DISABLE_THRESHOLD if disable_threshold is None else disable_threshold
    now = utc_now()

    conn.execute(
        update(integrations)
        .where(integrations.c.id == integration_id)
        .values(
            error_count=integrations.c.error_count + 1,
            last_error=error_message,
            updated_at=now,
        )
    )

    if threshold > 0:
        result = conn.execute(
            update(integrations)
            .where(
                integrations.c.id == integration_id,
                integrations.c.status == "active",
                integrations.c.error_count >= threshold,
            )
            .values(status="error", updated_at=now)
        )
        if result.rowcount:
            logger.warning(
                "integration_auto_disabled",
                integration_id=integration_id,
                threshold=threshold,
            )


def update_sync_info(conn: Connection, integration_id: int, sync_status: str) -> None:
    """
    Stamp last_sync and the outcome of the latest sync.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        integration_id (int): Integration primary key.
        sync_status (str): success, failed or in_progress.
    """
    now = utc_now()
    conn.execute(
        update(integrations)
        .where(integrations.c.id == integration_id)
        .values(last_sync=now, sync_status=sync_status, updated_at=now)
    )
