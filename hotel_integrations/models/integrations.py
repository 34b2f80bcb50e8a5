"""SQLAlchemy models for configured third-party integrations and their audit log."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.sql import func

from hotel_integrations.models.base import Base

INTEGRATION_TYPES = ("pos", "pms", "guest_management")
INTEGRATION_STATUSES = ("active", "inactive", "error", "testing")
SYNC_STATUSES = ("success", "failed", "in_progress")

OPERATION_TYPES = ("sync", "webhook", "api_call", "error", "test")
DIRECTIONS = ("inbound", "outbound", "bidirectional")
LOG_STATUSES = ("success", "failed", "partial", "pending")


class Integration(Base):
    """
    ORM model for one configured connection between a hotel and a provider.

    config, credentials and sync_settings hold JSON text. credentials is always the
    vault envelope ({"encrypted", "iv", "salt"}), never the plaintext bundle.
    """

    __tablename__ = "integrations"
    __table_args__ = (
        Index("ix_integrations_hotel_type", "hotel_id", "integration_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    hotel_id = Column(Integer, nullable=False)
    integration_type = Column(String(32), nullable=False)
    provider = Column(String(100), nullable=False, index=True)
    provider_name = Column(String(100), nullable=False)
    provider_version = Column(String(50), nullable=True)
    status = Column(String(16), nullable=False, default="inactive", index=True)
    config = Column(Text, nullable=False)
    credentials = Column(Text, nullable=False)
    webhook_url = Column(String(500), nullable=True)
    webhook_secret = Column(String(255), nullable=True)
    sync_settings = Column(Text, nullable=True)
    last_sync = Column(DateTime(timezone=True), nullable=True)
    sync_status = Column(String(16), nullable=True)
    error_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class IntegrationLog(Base):
    """
    Append-only audit record of one operation against or from a provider.

    Rows are written once by services.activity_log.record_activity and never updated.
    Payload columns hold JSON text.
    """

    __tablename__ = "integration_logs"
    __table_args__ = (
        Index("ix_integration_logs_integration_created", "integration_id", "created_at"),
        Index("ix_integration_logs_type_status", "operation_type", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    integration_id = Column(
        Integer,
        ForeignKey("integrations.id", ondelete="CASCADE"),
        nullable=False,
    )
    operation_type = Column(String(16), nullable=False)
    operation_name = Column(String(100), nullable=False)
    direction = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False)
    request_data = Column(Text, nullable=True)
    response_data = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    error_code = Column(String(50), nullable=True)
    processing_time = Column(Integer, nullable=True)  # milliseconds
    records_processed = Column(Integer, nullable=True)
    records_success = Column(Integer, nullable=True)
    records_failed = Column(Integer, nullable=True)
    log_metadata = Column("metadata", Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
