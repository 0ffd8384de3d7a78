"""
Real-time price quotes for (room, date): read through the Redis price cache, compute on a miss.

A quote never changes the room. It is the occupancy-adjusted price a guest would see right now:
base x demand multiplier, rounded, clamped to the room's auto-pricing bounds. Rooms with auto
pricing off quote their base price. Misses are written back in one batch together with a
metrics record per computed quote.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from hotel_pricing.core.constants import PRICE_CACHE_VALID_MINUTES
from hotel_pricing.models.room import Room
from hotel_pricing.services.cache import CacheEntry, CacheKind, PriceCache
from hotel_pricing.services.pricing.occupancy import OccupancySnapshot, calculate_occupancy
from hotel_pricing.services.pricing.rules import clamp_price, round_to_increment, select_demand_multiplier

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_COMPUTED = "computed"


def price_record(
    room_id: str,
    day: date,
    base_price: float,
    price: float,
    multiplier: float,
    occupancy: OccupancySnapshot,
    now: datetime,
) -> dict[str, Any]:
    """Shape of a price cache record; the engine writes the same one after an auto-update."""
    return {
        "room_id": room_id,
        "date": day.isoformat(),
        "price_per_night": price,
        "base_price": base_price,
        "occupancy_rate": occupancy.occupancy_rate,
        "demand_score": occupancy.demand_score,
        "demand_multiplier": multiplier,
        "calculated_at": now.isoformat(),
        "expires_at": (now + timedelta(minutes=PRICE_CACHE_VALID_MINUTES)).isoformat(),
    }


def _metrics_record(quote: dict[str, Any]) -> dict[str, Any]:
    base = quote["base_price"]
    return {
        "room_id": quote["room_id"],
        "date": quote["date"],
        "metric_type": "calculated_price",
        "metric_value": quote["price_per_night"],
        "base_price": base,
        "change_percentage": (quote["price_per_night"] - base) * 100 / base,
        "occupancy_rate": quote["occupancy_rate"],
        "recorded_at": quote["calculated_at"],
    }


def _compute_quote(
    db: Session,
    cache: PriceCache,
    room: Room | None,
    day: date,
    now: datetime,
) -> dict[str, Any] | None:
    if room is None:
        return None
    base_price = float(room.base_price or room.price_per_night or 0)
    if base_price <= 0:
        return None
    occupancy = calculate_occupancy(db, room.id, day, cache=cache, now=now)
    if occupancy is None:
        return None
    if not room.auto_pricing_enabled:
        return price_record(room.id, day, base_price, base_price, 1.0, occupancy, now)
    multiplier = select_demand_multiplier(occupancy.occupancy_rate)
    price = clamp_price(
        round_to_increment(base_price * multiplier),
        float(room.min_auto_price) if room.min_auto_price is not None else None,
        float(room.max_auto_price) if room.max_auto_price is not None else None,
    )
    return price_record(room.id, day, base_price, price, multiplier, occupancy, now)


def quote_prices(
    db: Session,
    cache: PriceCache,
    room_ids: list[str],
    day: date,
    *,
    force_recalculate: bool = False,
    now: datetime | None = None,
) -> dict[str, dict[str, Any] | None]:
    """
    Quote for each room id (None when the room is unknown, has no base price or no allotment).
    One MGET for cached quotes unless force_recalculate; computed quotes go back in one pipeline.
    """
    now = now or datetime.now(timezone.utc)
    room_ids = list(dict.fromkeys(room_ids))
    if not room_ids:
        return {}
    cached = {} if force_recalculate else cache.get_batch(CacheKind.PRICE, room_ids, day)

    quotes: dict[str, dict[str, Any] | None] = {}
    misses: list[str] = []
    for room_id in room_ids:
        hit = cached.get(room_id)
        if isinstance(hit, dict):
            quotes[room_id] = {**hit, "source": SOURCE_CACHE}
        else:
            misses.append(room_id)
    if not misses:
        return quotes

    rooms = {r.id: r for r in db.query(Room).filter(Room.id.in_(misses)).all()}
    entries: list[CacheEntry] = []
    for room_id in misses:
        quote = _compute_quote(db, cache, rooms.get(room_id), day, now)
        if quote is None:
            logger.debug("No quote for room %s on %s", room_id, day)
            quotes[room_id] = None
            continue
        entries.append(CacheEntry(CacheKind.PRICE, room_id, day, quote))
        entries.append(CacheEntry(CacheKind.METRICS, room_id, day, _metrics_record(quote)))
        quotes[room_id] = {**quote, "source": SOURCE_COMPUTED}
    cache.set_batch(entries)
    logger.info("Quoted %s rooms for %s (%s computed)", len(room_ids), day, len(entries) // 2)
    return {room_id: quotes[room_id] for room_id in room_ids}


def quote_price(
    db: Session,
    cache: PriceCache,
    room_id: str,
    day: date,
    *,
    force_recalculate: bool = False,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    return quote_prices(db, cache, [room_id], day, force_recalculate=force_recalculate, now=now)[room_id]
