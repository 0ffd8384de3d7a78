"""Persisted secondary price cache: one row per (room_id, cache_date), upserted by the engine."""
from sqlalchemy import Column, Date, DateTime, Float, Integer, Numeric, String, UniqueConstraint

from hotel_pricing.db.base import Base


class PriceCacheEntry(Base):
    __tablename__ = "price_cache"
    __table_args__ = (UniqueConstraint("room_id", "cache_date", name="uq_price_cache_room_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(64), nullable=False, index=True)
    cache_date = Column(Date, nullable=False)
    cached_price = Column(Numeric(14, 2), nullable=False)
    occupancy_rate = Column(Float, nullable=True)
    demand_score = Column(Float, nullable=True)
    cached_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
