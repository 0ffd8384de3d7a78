"""
Pricing event kinds and enqueueing.

Stored event_type is a plain string; parse_event_type maps unknown or future kinds to None so the
processor can complete them as no-ops instead of failing.
"""
import logging
from enum import Enum

from sqlalchemy.orm import Session

from hotel_pricing.models.pricing_event import STATUS_PENDING, PricingEvent

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    BOOKING_CHANGE = "booking_change"
    OCCUPANCY_UPDATE = "occupancy_update"
    MANUAL_TRIGGER = "manual_trigger"


# Event kinds that can move a room price (handled by the adjustment engine)
OCCUPANCY_EVENT_TYPES = frozenset({EventType.BOOKING_CHANGE, EventType.OCCUPANCY_UPDATE})


def parse_event_type(raw: str | None) -> EventType | None:
    try:
        return EventType((raw or "").strip())
    except ValueError:
        return None


def enqueue_event(db: Session, room_id: str, event_type: EventType | str, priority: int = 0) -> PricingEvent:
    """Insert a pending event. Upstream booking/occupancy writers normally do this themselves."""
    kind = event_type.value if isinstance(event_type, EventType) else str(event_type)
    row = PricingEvent(
        event_type=kind,
        room_id=room_id,
        priority=priority,
        processed=False,
        status=STATUS_PENDING,
        retry_count=0,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.debug("Enqueued pricing event %s (%s, room %s, priority %s)", row.id, kind, room_id, priority)
    return row
