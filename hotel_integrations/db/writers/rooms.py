from typing import Any, Optional

import structlog
from sqlalchemy import update
from sqlalchemy.engine import Connection

from hotel_integrations.models.rooms import Room
from hotel_integrations.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

rooms = Room.__table__


def update_room_occupancy(
    conn: Connection,
    hotel_id: int,
    room_number: str,
    status: Optional[str],
    guest_external_id: Optional[Any] = None,
) -> bool:
    """
    Refresh occupancy for an existing room. Unknown rooms are left alone.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        hotel_id (int): Hotel owning the room.
        room_number (str): Room number as reported by the PMS.
        status (Optional[str]): PMS reservation/room status; "occupied" marks the room taken.
        guest_external_id (Optional[Any]): PMS guest id of the occupant.

    Returns:
        bool: True if a room row was updated.
    """
    occupied = status == "occupied"
    result = conn.execute(
        update(rooms)
        .where(rooms.c.hotel_id == hotel_id, rooms.c.room_number == str(room_number))
        .values(
            is_occupied=occupied,
            current_guest_id=str(guest_external_id) if occupied and guest_external_id else None,
            last_updated=utc_now(),
        )
    )
    if not result.rowcount:
        logger.debug("room_not_found", hotel_id=hotel_id, room_number=room_number)
        return False
    return True
