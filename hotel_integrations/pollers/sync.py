import structlog

from hotel_integrations.config import DRY_RUN
from hotel_integrations.db.engine import engine
from hotel_integrations.logging_config import setup_logging
from hotel_integrations.services.sync import sync_all_integrations

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    # Run the default sync for every active integration
    logger.info("scheduled_sync_started", dry_run=DRY_RUN)
    sync_all_integrations(engine, dry_run=DRY_RUN)


if __name__ == "__main__":
    main()
