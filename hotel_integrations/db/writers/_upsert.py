"""
Conflict-safe upsert keyed by an external identity.

Provider records (guests, menu items) are matched on the identity the provider gives
them plus the provider they came from, never on our own primary keys. The identity
columns carry a unique constraint, so the write is a single INSERT ... ON CONFLICT
DO UPDATE and two workers writing the same record cannot collide.
"""

import json
from typing import Any, Literal, Optional

from sqlalchemy import Table, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection

from hotel_integrations.utils.datetime import utc_now

UpsertOutcome = Literal["created", "updated"]

DIALECT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def encode_json_fields(row: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """Return a copy of row with list/dict values in `fields` serialised to JSON text."""
    encoded = dict(row)
    for field in fields:
        value = encoded.get(field)
        if value is not None and not isinstance(value, str):
            encoded[field] = json.dumps(value, default=str)
    return encoded


def find_existing_id(conn: Connection, table: Table, identity: dict[str, Any]) -> Optional[int]:
    conditions = [table.c[column] == value for column, value in identity.items()]
    row = conn.execute(select(table.c.id).where(*conditions)).fetchone()
    return row[0] if row else None


def upsert_by_identity(
    conn: Connection,
    table: Table,
    identity: dict[str, Any],
    values: dict[str, Any],
) -> UpsertOutcome:
    """
    Insert identity + values, or update the row already holding `identity`.

    Args:
        conn: Active database connection (within transaction)
        table: Core table (e.g. Guest.__table__)
        identity: Column values covered by the table's unique constraint, e.g.
            {"external_id": "g-1", "external_source": "Opera Cloud"}
        values: Column values to write

    Returns:
        "created" or "updated" (as seen before the write)

    Raises:
        ValueError: If the connection's dialect has no ON CONFLICT support here
    """
    dialect_insert = DIALECT_INSERTS.get(conn.dialect.name)
    if dialect_insert is None:
        raise ValueError(f"Upsert is not supported on dialect '{conn.dialect.name}'")

    outcome: UpsertOutcome = (
        "updated" if find_existing_id(conn, table, identity) is not None else "created"
    )

    stmt = dialect_insert(table).values(**identity, **values)
    set_dict = {column: stmt.excluded[column] for column in values}
    if "updated_at" in table.c:
        set_dict["updated_at"] = utc_now()

    if set_dict:
        stmt = stmt.on_conflict_do_update(index_elements=list(identity), set_=set_dict)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(identity))

    conn.execute(stmt)
    return outcome
