"""Room pricing state. The pricing engine only ever writes base_price; everything else is owned by room management."""
from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from hotel_pricing.db.base import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(64), primary_key=True)
    name = Column(String(256), nullable=False)
    base_price = Column(Numeric(14, 2), nullable=True)
    price_per_night = Column(Numeric(14, 2), nullable=True)  # legacy display price; base when base_price is unset
    min_auto_price = Column(Numeric(14, 2), nullable=True)  # NULL = no floor
    max_auto_price = Column(Numeric(14, 2), nullable=True)  # NULL = no ceiling
    auto_pricing_enabled = Column(Boolean, nullable=False, default=False)
    allotment = Column(Integer, nullable=True)  # sellable units per night
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
