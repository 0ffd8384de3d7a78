"""Bookings as seen by the occupancy calculator: a stay holds `units` from check_in until (not including) check_out."""
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from hotel_pricing.db.base import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(64), ForeignKey("rooms.id"), nullable=False, index=True)
    check_in = Column(Date, nullable=False, index=True)
    check_out = Column(Date, nullable=False)
    units = Column(Integer, nullable=False, default=1)
    status = Column(String(32), nullable=False, default="confirmed")  # cancelled / rejected hold no inventory
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
