"""
Pricing event queue. Append-only: rows are never deleted, the log doubles as an audit trail.

status: pending -> processing -> completed | failed. Failed (retry_count reached the budget) is terminal
and excluded by the retry_count filter; processed stays false for those rows.
"""
from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from hotel_pricing.db.base import Base

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


class PricingEvent(Base):
    __tablename__ = "pricing_events"
    __table_args__ = (
        Index("ix_pricing_events_queue", "processed", "priority", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(32), nullable=False)  # booking_change | occupancy_update | manual_trigger
    room_id = Column(String(64), nullable=False, index=True)
    priority = Column(Integer, nullable=False, default=0)  # higher = more urgent
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    processed = Column(Boolean, nullable=False, default=False)
    processing_started_at = Column(DateTime(timezone=True), nullable=True)
    processing_completed_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(16), nullable=False, default=STATUS_PENDING, index=True)
    retry_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
