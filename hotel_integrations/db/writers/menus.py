from typing import Any

from sqlalchemy.engine import Connection

from hotel_integrations.db.writers._upsert import (
    UpsertOutcome,
    encode_json_fields,
    upsert_by_identity,
)
from hotel_integrations.models.menus import Menu


def upsert_menu(
    conn: Connection,
    hotel_id: int,
    external_id: Any,
    external_source: str,
    data: dict[str, Any],
) -> UpsertOutcome:
    """
    Create or update a hotel's menu item keyed by its POS id.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        hotel_id (int): Hotel owning the integration.
        external_id (Any): Menu id in the POS.
        external_source (str): Integration provider_name.
        data (dict): Transformed menu fields.

    Returns:
        "created" or "updated"
    """
    if external_id is None or external_id == "":
        raise ValueError("Menu record has no external id")

    return upsert_by_identity(
        conn,
        Menu.__table__,
        identity={
            "hotel_id": hotel_id,
            "external_id": str(external_id),
            "external_source": external_source,
        },
        values=encode_json_fields(data, ("allergens", "nutritional_info", "tags")),
    )
