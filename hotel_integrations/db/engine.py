"""
SQLAlchemy engine singleton shared by the API process and the scheduled sync entrypoint.

Adapter operations run in Starlette's worker threads, so the PostgreSQL pool is
sized for several concurrent syncs plus the request handlers that trigger them.
SQLite (local runs) gets no pool sizing and may be used from any thread.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from hotel_integrations.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")


def engine_options(url: str) -> dict[str, Any]:
    """Keyword arguments for create_engine() appropriate to the database backend."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,  # Number of connections to maintain in the pool
        "max_overflow": 20,  # Additional connections when pool is exhausted
        "pool_pre_ping": True,  # Detect connections dropped by the server
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }


engine: Engine = create_engine(
    DATABASE_URL, future=True, echo=False, **engine_options(DATABASE_URL)
)


def check_engine_health(db_engine: Engine | None = None) -> bool:
    """
    Check that the database answers a trivial query.

    Used by the /ready endpoint before the service receives traffic.

    Args:
        db_engine: Engine to probe (defaults to the module singleton)

    Returns:
        bool: True if database is reachable and healthy, False otherwise
    """
    try:
        with (db_engine or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
