from typing import Any

from sqlalchemy.engine import Connection

from hotel_integrations.db.writers._upsert import (
    UpsertOutcome,
    encode_json_fields,
    upsert_by_identity,
)
from hotel_integrations.models.guests import Guest


def upsert_guest(
    conn: Connection,
    external_id: Any,
    external_source: str,
    data: dict[str, Any],
) -> UpsertOutcome:
    """
    Create or update a local guest keyed by (external_id, external_source).

    Args:
        conn (Connection): SQLAlchemy DB connection.
        external_id (Any): Guest id in the provider system.
        external_source (str): Integration provider_name.
        data (dict): Transformed guest fields.

    Returns:
        "created" or "updated"
    """
    if external_id is None or external_id == "":
        raise ValueError("Guest record has no external id")

    return upsert_by_identity(
        conn,
        Guest.__table__,
        identity={"external_id": str(external_id), "external_source": external_source},
        values=encode_json_fields(data, ("preferences",)),
    )
