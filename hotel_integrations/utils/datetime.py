"""UTC datetime utilities."""

from datetime import date, datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Use this instead of datetime.now() or datetime.utcnow() so every timestamp
    written to integrations, integration_logs and the notification envelopes is UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return utc_now().isoformat()


def parse_date(value: Any) -> Optional[date]:
    """
    Coerce a provider date value to a date.

    Accepts None/empty (-> None), date/datetime objects and ISO-8601 strings
    ("1990-04-01" or "1990-04-01T00:00:00Z").

    Raises:
        ValueError: If a string is not an ISO-8601 date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
