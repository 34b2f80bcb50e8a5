from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from hotel_integrations.models.base import Base


class Menu(Base):
    """
    ORM model for menu items imported from a POS provider.

    Keyed by (hotel_id, external_id, external_source). List/dict fields
    (allergens, nutritional_info, tags) are stored as JSON text.
    """

    __tablename__ = "menus"
    __table_args__ = (
        UniqueConstraint("hotel_id", "external_id", "external_source", name="uq_menus_external"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    hotel_id = Column(Integer, nullable=False, index=True)
    external_id = Column(String(100), nullable=True)
    external_source = Column(String(100), nullable=True)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, default="main")
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    is_available = Column(Boolean, nullable=False, default=True)
    image_url = Column(String(500), nullable=True)
    allergens = Column(Text, nullable=True)
    nutritional_info = Column(Text, nullable=True)
    preparation_time = Column(Integer, nullable=True)
    tags = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
