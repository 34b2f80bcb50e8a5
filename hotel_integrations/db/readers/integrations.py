import json
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from hotel_integrations.models.integrations import Integration, IntegrationLog

integrations = Integration.__table__
integration_logs = IntegrationLog.__table__

JSON_COLUMNS = ("config", "credentials", "sync_settings")
LOG_JSON_COLUMNS = ("request_data", "response_data", "metadata")


def _decode_json(value: Any) -> Any:
    if value is None or not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _row_to_integration(row: Any) -> dict[str, Any]:
    data = dict(row._mapping)
    for column in JSON_COLUMNS:
        data[column] = _decode_json(data.get(column))
    return data


def integration_exists(conn: Connection, integration_id: int) -> bool:
    """
    Check if an integration exists.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        integration_id (int): Integration primary key.

    Returns:
        bool: True if the integration exists, False otherwise.
    """
    result = conn.execute(
        select(integrations.c.id).where(integrations.c.id == integration_id)
    )
    return result.fetchone() is not None


def get_integration(conn: Connection, integration_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch one integration with its JSON columns decoded.

    The credentials value is still the encrypted vault envelope.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        integration_id (int): Integration primary key.

    Returns:
        Optional[dict]: Integration row as a dict, or None if not found.
    """
    result = conn.execute(select(integrations).where(integrations.c.id == integration_id))
    row = result.fetchone()
    return _row_to_integration(row) if row else None


def list_integrations(
    conn: Connection,
    hotel_id: int,
    integration_type: Optional[str] = None,
    status: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    List a hotel's integrations, newest first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        hotel_id (int): Hotel to list integrations for.
        integration_type (Optional[str]): Filter by category.
        status (Optional[str]): Filter by lifecycle status.

    Returns:
        list[dict]: Integration rows.
    """
    stmt = select(integrations).where(integrations.c.hotel_id == hotel_id)
    if integration_type:
        stmt = stmt.where(integrations.c.integration_type == integration_type)
    if status:
        stmt = stmt.where(integrations.c.status == status)
    stmt = stmt.order_by(integrations.c.created_at.desc(), integrations.c.id.desc())

    return [_row_to_integration(row) for row in conn.execute(stmt)]


def list_active_integrations(conn: Connection) -> list[dict[str, Any]]:
    """Return (id, integration_type) for every active integration, ordered by id."""
    result = conn.execute(
        select(integrations.c.id, integrations.c.integration_type)
        .where(integrations.c.status == "active")
        .order_by(integrations.c.id)
    )
    return [dict(row._mapping) for row in result]


def list_logs(
    conn: Connection,
    integration_id: int,
    operation_type: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    """
    Page through an integration's activity log, newest first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        integration_id (int): Parent integration.
        operation_type (Optional[str]): Filter by operation category.
        status (Optional[str]): Filter by outcome.
        limit (int): Page size.
        offset (int): Rows to skip.

    Returns:
        tuple: (rows, total matching rows)
    """
    conditions = [integration_logs.c.integration_id == integration_id]
    if operation_type:
        conditions.append(integration_logs.c.operation_type == operation_type)
    if status:
        conditions.append(integration_logs.c.status == status)

    rows = conn.execute(
        select(integration_logs)
        .where(*conditions)
        .order_by(integration_logs.c.created_at.desc(), integration_logs.c.id.desc())
        .limit(limit)
        .offset(offset)
    )
    logs = []
    for row in rows:
        data = dict(row._mapping)
        for column in LOG_JSON_COLUMNS:
            data[column] = _decode_json(data.get(column))
        logs.append(data)

    total = conn.execute(
        select(func.count()).select_from(integration_logs).where(*conditions)
    ).scalar_one()

    return logs, int(total)
