"""
Occupancy for one room and night, from active bookings against the room allotment.

calculate_occupancy always recomputes (the engine needs fresh numbers per event) and refreshes the
occupancy cache record; get_occupancy is the read-through variant for API reads.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotel_pricing.core.constants import (
    DEMAND_SCORE_RECENT_BONUS,
    DEMAND_SCORE_RECENT_HOURS,
    INACTIVE_BOOKING_STATUSES,
)
from hotel_pricing.models.booking import Booking
from hotel_pricing.models.room import Room
from hotel_pricing.services.cache import CacheKind, PriceCache

logger = logging.getLogger(__name__)


@dataclass
class OccupancySnapshot:
    room_id: str
    date: str
    total_allotment: int
    booked_units: int
    available_units: int
    occupancy_rate: float
    demand_score: float
    calculated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OccupancySnapshot":
        return cls(**{k: data[k] for k in cls.__dataclass_fields__})


def _booked_units(db: Session, room_id: str, day: date, created_after: datetime | None = None) -> int:
    q = db.query(func.coalesce(func.sum(Booking.units), 0)).filter(
        Booking.room_id == room_id,
        Booking.status.notin_(INACTIVE_BOOKING_STATUSES),
        Booking.check_in <= day,
        Booking.check_out > day,
    )
    if created_after is not None:
        q = q.filter(Booking.created_at >= created_after)
    return int(q.scalar() or 0)


def demand_score(occupancy_rate: float, recent_units: int, total_allotment: int) -> float:
    """Occupancy plus up to DEMAND_SCORE_RECENT_BONUS points for booking momentum, capped at 100."""
    momentum = min(1.0, recent_units / total_allotment) if total_allotment > 0 else 0.0
    return min(100.0, occupancy_rate + DEMAND_SCORE_RECENT_BONUS * momentum)


def calculate_occupancy(
    db: Session,
    room_id: str,
    day: date,
    *,
    cache: PriceCache | None = None,
    now: datetime | None = None,
) -> OccupancySnapshot | None:
    """
    Fresh occupancy for room_id on day. Returns None when the room is unknown or has no allotment
    (nothing to price against). Query errors propagate.
    """
    room = db.query(Room).filter(Room.id == room_id).first()
    if room is None or not room.allotment or room.allotment <= 0:
        logger.debug("No allotment for room %s; occupancy unavailable", room_id)
        return None
    now = now or datetime.now(timezone.utc)
    total = int(room.allotment)
    booked = _booked_units(db, room_id, day)
    recent = _booked_units(db, room_id, day, created_after=now - timedelta(hours=DEMAND_SCORE_RECENT_HOURS))
    rate = booked * 100 / total
    snapshot = OccupancySnapshot(
        room_id=room_id,
        date=day.isoformat(),
        total_allotment=total,
        booked_units=booked,
        available_units=max(0, total - booked),
        occupancy_rate=rate,
        demand_score=demand_score(rate, recent, total),
        calculated_at=now.isoformat(),
    )
    if cache is not None:
        cache.set(CacheKind.OCCUPANCY, room_id, day, snapshot.to_dict())
    return snapshot


def get_occupancy(db: Session, cache: PriceCache, room_id: str, day: date) -> OccupancySnapshot | None:
    """Cached occupancy if present (5 min TTL), else compute and cache."""
    cached = cache.get(CacheKind.OCCUPANCY, room_id, day)
    if cached:
        try:
            return OccupancySnapshot.from_dict(cached)
        except (KeyError, TypeError):
            logger.warning("Malformed occupancy cache record for room %s on %s; recomputing", room_id, day)
    return calculate_occupancy(db, room_id, day, cache=cache)
