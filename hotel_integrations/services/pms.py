"""
PMS adapter: reservations, check-in/out, service requests, rooms and guests.

Reservation sync upserts the reservation's guest into the local guests table, keyed
by (guest_id, provider_name), and refreshes the occupancy of the reserved room.
"""

from typing import Any, Optional

import requests
from sqlalchemy.engine import Engine

from hotel_integrations.db.writers.guests import upsert_guest
from hotel_integrations.db.writers.rooms import update_room_occupancy
from hotel_integrations.errors import IntegrationError, InvalidPayloadError
from hotel_integrations.services.connection_test import test_connection
from hotel_integrations.services.session import IntegrationSession, run_operation, run_sync
from hotel_integrations.utils.datetime import parse_date, utc_now_iso

RESERVATIONS_ENDPOINT = "/api/reservations"
CHECKINS_ENDPOINT = "/api/checkins"
CHECKOUTS_ENDPOINT = "/api/checkouts"
REQUESTS_ENDPOINT = "/api/requests"
ROOMS_ENDPOINT = "/api/rooms"
GUESTS_ENDPOINT = "/api/guests"

GUEST_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "city",
    "country",
    "passport_number",
    "special_requests",
)


def _response_id(data: Any) -> Any:
    return data.get("id") if isinstance(data, dict) else None


def transform_reservation(reservation: dict[str, Any]) -> dict[str, Any]:
    """
    Split a PMS reservation into guest columns and room occupancy data.

    Raises:
        ValueError: If the reservation has no guest object or an invalid date_of_birth
    """
    guest = reservation.get("guest")
    if not isinstance(guest, dict):
        raise ValueError("Reservation has no guest")

    guest_data = {field: guest.get(field) for field in GUEST_FIELDS}
    guest_data["date_of_birth"] = parse_date(guest.get("date_of_birth"))

    return {
        "guest": guest_data,
        "room": {
            "room_number": reservation.get("room_number"),
            "room_type": reservation.get("room_type"),
            "check_in_date": reservation.get("check_in_date"),
            "check_out_date": reservation.get("check_out_date"),
            "status": reservation.get("status"),
        },
    }


def transform_check_in(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "reservation_id": data.get("reservationId"),
        "guest_id": data.get("guestId"),
        "room_number": data.get("roomNumber"),
        "check_in_time": data.get("checkInTime") or utc_now_iso(),
        "check_in_by": data.get("checkInBy"),
        "special_requests": data.get("specialRequests"),
        "payment_method": data.get("paymentMethod"),
        "deposit_amount": data.get("depositAmount"),
        "notes": data.get("notes"),
    }


def transform_check_out(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "reservation_id": data.get("reservationId"),
        "guest_id": data.get("guestId"),
        "room_number": data.get("roomNumber"),
        "check_out_time": data.get("checkOutTime") or utc_now_iso(),
        "check_out_by": data.get("checkOutBy"),
        "final_bill_amount": data.get("finalBillAmount"),
        "payment_status": data.get("paymentStatus"),
        "feedback_rating": data.get("feedbackRating"),
        "feedback_comments": data.get("feedbackComments"),
        "notes": data.get("notes"),
    }


def transform_service_request(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "guest_id": data.get("guestId"),
        "room_number": data.get("roomNumber"),
        "request_type": data.get("requestType"),
        "category": data.get("category"),
        "title": data.get("title"),
        "description": data.get("description"),
        "priority": data.get("priority") or "normal",
        "requested_time": data.get("requestedTime") or utc_now_iso(),
        "status": data.get("status") or "pending",
    }


def fetch_reservations(
    session: IntegrationSession,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    Fetch reservations, optionally bounded by start/end date.

    Raises:
        InvalidPayloadError: If the PMS does not return a list
    """
    params = {}
    if start_date:
        params["start_date"] = start_date
    if end_date:
        params["end_date"] = end_date

    response = session.request(
        "GET", session.endpoint("reservations", RESERVATIONS_ENDPOINT), params=params
    )
    if not isinstance(response.data, list):
        raise InvalidPayloadError("Invalid response format from PMS")
    return response.data


def _store_reservation(session: IntegrationSession, reservation: dict[str, Any]) -> None:
    data = transform_reservation(reservation)
    room = data["room"]
    with session.engine.begin() as conn:
        upsert_guest(conn, reservation.get("guest_id"), session.provider_name, data["guest"])
        if room["room_number"]:
            update_room_occupancy(
                conn,
                session.hotel_id,
                room["room_number"],
                room["status"],
                guest_external_id=reservation.get("guest_id"),
            )


def sync_reservations(
    engine: Engine,
    integration_id: int,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    transport: Optional[requests.Session] = None,
) -> dict[str, int]:
    """
    Pull reservations and upsert their guests and room occupancy.

    Args:
        engine: SQLAlchemy engine
        integration_id: PMS integration id
        start_date: Optional ISO date lower bound
        end_date: Optional ISO date upper bound
        transport: HTTP transport override

    Returns:
        dict: {"processed", "success", "failed"}
    """
    return run_sync(
        engine,
        integration_id,
        "reservations",
        lambda session: fetch_reservations(session, start_date, end_date),
        _store_reservation,
        transport,
        request_data={"start_date": start_date, "end_date": end_date},
    )


def get_reservations(
    engine: Engine,
    integration_id: int,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    transport: Optional[requests.Session] = None,
) -> list[dict[str, Any]]:
    """Fetch reservations without persisting them."""
    return run_operation(
        engine,
        integration_id,
        "get_reservations",
        lambda session: fetch_reservations(session, start_date, end_date),
        transport,
        direction="inbound",
        request_data={"start_date": start_date, "end_date": end_date},
    )


def _post(
    engine: Engine,
    integration_id: int,
    operation_name: str,
    endpoint_name: str,
    default_endpoint: str,
    payload: dict[str, Any],
    id_key: str,
    transport: Optional[requests.Session],
) -> dict[str, Any]:
    def action(session: IntegrationSession) -> dict[str, Any]:
        endpoint = session.endpoint(endpoint_name, default_endpoint)
        response = session.request("POST", endpoint, payload)
        return {"success": True, id_key: _response_id(response.data), "response": response.data}

    return run_operation(
        engine, integration_id, operation_name, action, transport, request_data=payload
    )


def post_check_in(
    engine: Engine,
    integration_id: int,
    check_in: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """
    Push a check-in to the PMS.

    Returns:
        dict: {"success", "pms_check_in_id", "response"}
    """
    return _post(
        engine,
        integration_id,
        "post_checkin",
        "checkins",
        CHECKINS_ENDPOINT,
        transform_check_in(check_in),
        "pms_check_in_id",
        transport,
    )


def post_check_out(
    engine: Engine,
    integration_id: int,
    check_out: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """
    Push a check-out to the PMS.

    Returns:
        dict: {"success", "pms_check_out_id", "response"}
    """
    return _post(
        engine,
        integration_id,
        "post_checkout",
        "checkouts",
        CHECKOUTS_ENDPOINT,
        transform_check_out(check_out),
        "pms_check_out_id",
        transport,
    )


def send_request(
    engine: Engine,
    integration_id: int,
    request: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """Create a guest service request (housekeeping, maintenance, ...) in the PMS."""
    return _post(
        engine,
        integration_id,
        "send_request",
        "requests",
        REQUESTS_ENDPOINT,
        transform_service_request(request),
        "pms_request_id",
        transport,
    )


def fetch_room_status(session: IntegrationSession, room_number: Optional[str] = None) -> Any:
    endpoint = session.endpoint("rooms", ROOMS_ENDPOINT)
    if room_number:
        endpoint = f"{endpoint}/{room_number}"
    return session.request("GET", endpoint).data


def get_room_status(
    engine: Engine,
    integration_id: int,
    room_number: Optional[str] = None,
    transport: Optional[requests.Session] = None,
) -> Any:
    """Status of one room, or of every room when room_number is omitted."""
    return run_operation(
        engine,
        integration_id,
        "get_room_status",
        lambda session: fetch_room_status(session, room_number),
        transport,
        direction="inbound",
        request_data={"room_number": room_number},
    )


def get_guest_info(
    engine: Engine,
    integration_id: int,
    guest_id: str,
    transport: Optional[requests.Session] = None,
) -> Any:
    def action(session: IntegrationSession) -> Any:
        endpoint = f"{session.endpoint('guests', GUESTS_ENDPOINT)}/{guest_id}"
        return session.request("GET", endpoint).data

    return run_operation(
        engine,
        integration_id,
        "get_guest_info",
        action,
        transport,
        direction="inbound",
        request_data={"guest_id": guest_id},
    )


def update_guest_info(
    engine: Engine,
    integration_id: int,
    guest_id: str,
    guest_data: dict[str, Any],
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    def action(session: IntegrationSession) -> dict[str, Any]:
        endpoint = f"{session.endpoint('guests', GUESTS_ENDPOINT)}/{guest_id}"
        return {"success": True, "response": session.request("PUT", endpoint, guest_data).data}

    return run_operation(
        engine,
        integration_id,
        "update_guest_info",
        action,
        transport,
        request_data={"guest_id": guest_id, "guest_data": guest_data},
    )


def test_pms_integration(
    engine: Engine,
    integration_id: int,
    transport: Optional[requests.Session] = None,
) -> dict[str, Any]:
    """Connection test followed by a reservation fetch and a room status read."""
    connection = test_connection(engine, integration_id, transport)
    if not connection["success"]:
        return connection

    try:
        reservations = run_operation(
            engine,
            integration_id,
            "get_reservations",
            fetch_reservations,
            transport,
            direction="inbound",
            require_active=False,
        )
        rooms = run_operation(
            engine,
            integration_id,
            "get_room_status",
            fetch_room_status,
            transport,
            direction="inbound",
            require_active=False,
        )
    except IntegrationError as e:
        return {"success": False, "error": e.message, "code": e.error_code}

    return {
        "success": True,
        "connection": "OK",
        "reservation_sync": "OK",
        "room_status": "OK",
        "reservation_count": len(reservations),
        "room_count": len(rooms) if isinstance(rooms, list) else None,
    }
