"""Price changes above the auto-approve threshold wait here for a human decision.

A pending row past expires_at is logically expired; readers check at read time
(see services.pricing.approvals.effective_status). The expiry sweep only makes it explicit.
"""
from sqlalchemy import Column, DateTime, Float, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from hotel_pricing.db.base import Base, JSONType

APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"
APPROVAL_EXPIRED = "expired"


class PriceApproval(Base):
    __tablename__ = "price_approvals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(64), nullable=False, index=True)
    old_price = Column(Numeric(14, 2), nullable=False)
    new_price = Column(Numeric(14, 2), nullable=False)
    price_change_percentage = Column(Float, nullable=False)
    status = Column(String(16), nullable=False, default=APPROVAL_PENDING, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    pricing_factors = Column(JSONType, nullable=False, default=dict)  # occupancy_rate, demand_score, multiplier, trigger
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resolved_by = Column(String(128), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
