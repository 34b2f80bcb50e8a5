import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse

import structlog

from hotel_integrations.db.engine import engine
from hotel_integrations.logging_config import setup_logging
from hotel_integrations.services.sync import sync_integration

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Run one sync for a single integration from the command line.

    Example:
        python scripts/sync_one_integration.py 12 --sync-type reservations --start 2026-01-01
    """
    parser = argparse.ArgumentParser(description="Sync one integration")
    parser.add_argument("integration_id", type=int)
    parser.add_argument("--sync-type", choices=["menus", "reservations", "guest_data"])
    parser.add_argument("--start", dest="start_date")
    parser.add_argument("--end", dest="end_date")
    args = parser.parse_args()

    logger.info("manual_sync_started", integration_id=args.integration_id)

    try:
        result = sync_integration(
            engine,
            args.integration_id,
            sync_type=args.sync_type,
            start_date=args.start_date,
            end_date=args.end_date,
        )
        logger.info("manual_sync_completed", integration_id=args.integration_id, **result)
    except Exception:
        logger.exception("manual_sync_failed", integration_id=args.integration_id)
        raise


if __name__ == "__main__":
    main()
