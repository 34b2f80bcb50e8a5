from sqlalchemy import Column, Date, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from hotel_integrations.models.base import Base


class Guest(Base):
    """
    ORM model for guests known to the hotel.

    Guests imported from a PMS or guest-management provider are identified by
    (external_id, external_source), where external_source is the integration's
    provider_name.
    """

    __tablename__ = "guests"
    __table_args__ = (
        UniqueConstraint("external_id", "external_source", name="uq_guests_external"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(100), nullable=True)
    external_source = Column(String(100), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    passport_number = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    special_requests = Column(Text, nullable=True)
    preferences = Column(Text, nullable=True)  # JSON text
    loyalty_points = Column(Integer, nullable=False, default=0)
    status = Column(String(32), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
