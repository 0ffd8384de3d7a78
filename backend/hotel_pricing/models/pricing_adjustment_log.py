"""Append-only audit of applied price changes (auto = engine, manual = approved by a human)."""
from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from hotel_pricing.db.base import Base

ADJUSTMENT_AUTO = "auto"
ADJUSTMENT_MANUAL = "manual"


class PricingAdjustmentLog(Base):
    __tablename__ = "pricing_adjustment_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(64), nullable=False, index=True)
    previous_price = Column(Numeric(14, 2), nullable=False)
    new_price = Column(Numeric(14, 2), nullable=False)
    adjustment_reason = Column(Text, nullable=False)
    adjustment_type = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
