"""
Price adjustment engine: one occupancy-relevant event in, at most one price decision out.

Flow: room -> occupancy -> demand multiplier -> rounded candidate -> bounds -> change %.
Changes above APPROVAL_THRESHOLD_PERCENT become a pending PriceApproval (plus a WhatsApp message);
smaller ones are applied directly, logged, and written to both price caches.

Skips (auto pricing off, unknown room, no occupancy, unchanged price) return NO_CHANGE.
Exceptions propagate; retry bookkeeping belongs to the processor.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session

from hotel_pricing.config import Settings
from hotel_pricing.core.constants import (
    APPROVAL_EXPIRY_MINUTES,
    APPROVAL_THRESHOLD_PERCENT,
    PRICE_CACHE_VALID_MINUTES,
)
from hotel_pricing.models.price_approval import APPROVAL_PENDING, PriceApproval
from hotel_pricing.models.price_cache_entry import PriceCacheEntry
from hotel_pricing.models.pricing_adjustment_log import ADJUSTMENT_AUTO, PricingAdjustmentLog
from hotel_pricing.models.pricing_event import PricingEvent
from hotel_pricing.models.room import Room
from hotel_pricing.services.cache import CacheKind, PriceCache
from hotel_pricing.services.notify import Notifier, NullNotifier, build_approval_message
from hotel_pricing.services.pricing.occupancy import OccupancySnapshot, calculate_occupancy
from hotel_pricing.services.pricing.quotes import price_record
from hotel_pricing.services.pricing.rules import (
    change_percentage,
    clamp_price,
    round_to_increment,
    select_demand_multiplier,
)

logger = logging.getLogger(__name__)


class AdjustmentOutcome(str, Enum):
    NO_CHANGE = "no_change"
    APPROVAL_CREATED = "approval_created"
    PRICE_UPDATED = "price_updated"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_float(value) -> float | None:
    return float(value) if value is not None else None


def price_cache_upsert_stmt(values: dict):
    """INSERT ... ON CONFLICT (room_id, cache_date) DO UPDATE for Postgres."""
    stmt = pg_insert(PriceCacheEntry).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=["room_id", "cache_date"],
        set_={k: stmt.excluded[k] for k in values if k not in ("room_id", "cache_date")},
    )


def upsert_price_cache_entry(
    db: Session,
    room_id: str,
    day: date,
    price: float,
    occupancy: OccupancySnapshot,
    now: datetime,
) -> None:
    """One row per (room_id, date); later writes overwrite. Caller commits."""
    values = {
        "room_id": room_id,
        "cache_date": day,
        "cached_price": price,
        "occupancy_rate": occupancy.occupancy_rate,
        "demand_score": occupancy.demand_score,
        "cached_at": now,
        "expires_at": now + timedelta(minutes=PRICE_CACHE_VALID_MINUTES),
    }
    if db.get_bind().dialect.name == "postgresql":
        db.execute(price_cache_upsert_stmt(values))
        return
    # SQLite (tests): plain ORM upsert
    row = (
        db.query(PriceCacheEntry)
        .filter(PriceCacheEntry.room_id == room_id, PriceCacheEntry.cache_date == day)
        .first()
    )
    if row is None:
        db.add(PriceCacheEntry(**values))
        return
    for key, value in values.items():
        setattr(row, key, value)


class PriceAdjustmentEngine:
    """Occupancy-driven price decisions for single events. Collaborators are injected."""

    def __init__(
        self,
        cache: PriceCache,
        notifier: Notifier | None = None,
        *,
        hotel_name: str = "Hotel",
        approval_phone: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cache = cache
        self.notifier = notifier or NullNotifier()
        self.hotel_name = hotel_name
        self.approval_phone = approval_phone
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, cache: PriceCache, notifier: Notifier | None = None) -> "PriceAdjustmentEngine":
        return cls(
            cache,
            notifier,
            hotel_name=settings.hotel_name,
            approval_phone=settings.approval_whatsapp_number,
        )

    def process_occupancy_event(self, db: Session, event: PricingEvent) -> AdjustmentOutcome:
        now = self._clock()
        today = now.date()
        room_id = event.room_id

        room = db.query(Room).filter(Room.id == room_id).first()
        if room is None:
            logger.info("Room %s not found; skipping event %s", room_id, event.id)
            return AdjustmentOutcome.NO_CHANGE
        if not room.auto_pricing_enabled:
            logger.debug("Auto-pricing disabled for room %s", room.name)
            return AdjustmentOutcome.NO_CHANGE

        base_price = _as_float(room.base_price) or _as_float(room.price_per_night)
        if not base_price or base_price <= 0:
            logger.info("Room %s has no base price; skipping event %s", room.name, event.id)
            return AdjustmentOutcome.NO_CHANGE

        occupancy = calculate_occupancy(db, room_id, today, cache=self.cache, now=now)
        if occupancy is None:
            logger.info("Occupancy unavailable for room %s on %s; skipping event %s", room.name, today, event.id)
            return AdjustmentOutcome.NO_CHANGE

        multiplier = select_demand_multiplier(occupancy.occupancy_rate)
        candidate = round_to_increment(base_price * multiplier)
        logger.debug(
            "Room %s: occupancy %.1f%% (%s/%s), %s x %s -> %s",
            room.name,
            occupancy.occupancy_rate,
            occupancy.booked_units,
            occupancy.total_allotment,
            base_price,
            multiplier,
            candidate,
        )
        if candidate == base_price:
            return AdjustmentOutcome.NO_CHANGE

        final_price = clamp_price(candidate, _as_float(room.min_auto_price), _as_float(room.max_auto_price))
        if final_price != candidate:
            logger.debug("Room %s: candidate %s constrained to %s", room.name, candidate, final_price)
        change = change_percentage(base_price, final_price)

        if change > APPROVAL_THRESHOLD_PERCENT:
            self._create_approval(db, room, event, base_price, final_price, change, multiplier, occupancy, now)
            return AdjustmentOutcome.APPROVAL_CREATED

        self._apply_price(db, room, event, base_price, final_price, change, multiplier, occupancy, now)
        return AdjustmentOutcome.PRICE_UPDATED

    def _create_approval(
        self,
        db: Session,
        room: Room,
        event: PricingEvent,
        base_price: float,
        final_price: float,
        change: float,
        multiplier: float,
        occupancy: OccupancySnapshot,
        now: datetime,
    ) -> PriceApproval:
        approval = PriceApproval(
            room_id=room.id,
            old_price=base_price,
            new_price=final_price,
            price_change_percentage=change,
            status=APPROVAL_PENDING,
            expires_at=now + timedelta(minutes=APPROVAL_EXPIRY_MINUTES),
            pricing_factors={
                "occupancy_rate": occupancy.occupancy_rate,
                "demand_score": occupancy.demand_score,
                "multiplier": multiplier,
                "trigger": event.event_type,
            },
        )
        db.add(approval)
        db.commit()
        logger.info(
            "Approval %s created for room %s: %s -> %s (%.1f%% > %s%%)",
            approval.id,
            room.name,
            base_price,
            final_price,
            change,
            APPROVAL_THRESHOLD_PERCENT,
        )
        self._notify_approval(room, base_price, final_price, occupancy)
        return approval

    def _notify_approval(self, room: Room, base_price: float, final_price: float, occupancy: OccupancySnapshot) -> None:
        """Best effort: the approval row is already committed, a failed message changes nothing."""
        message = build_approval_message(
            hotel_name=self.hotel_name,
            room_id=room.id,
            room_name=room.name,
            old_price=base_price,
            new_price=final_price,
            occupancy_rate=occupancy.occupancy_rate,
            booked_units=occupancy.booked_units,
            total_allotment=occupancy.total_allotment,
        )
        try:
            self.notifier.notify({"phone": self.approval_phone, "message": message, "type": "admin"})
        except Exception as e:
            logger.warning("Approval notification for room %s failed: %s", room.id, e, exc_info=True)

    def _apply_price(
        self,
        db: Session,
        room: Room,
        event: PricingEvent,
        base_price: float,
        final_price: float,
        change: float,
        multiplier: float,
        occupancy: OccupancySnapshot,
        now: datetime,
    ) -> None:
        today = now.date()
        room.base_price = final_price
        db.add(
            PricingAdjustmentLog(
                room_id=room.id,
                previous_price=base_price,
                new_price=final_price,
                adjustment_reason=(
                    f"Occupancy-based ({event.event_type}): {occupancy.occupancy_rate:.1f}% occupancy, "
                    f"{change:.1f}% change, auto-approved"
                ),
                adjustment_type=ADJUSTMENT_AUTO,
            )
        )
        upsert_price_cache_entry(db, room.id, today, final_price, occupancy, now)
        db.commit()
        self.cache.set(
            CacheKind.PRICE,
            room.id,
            today,
            price_record(room.id, today, base_price, final_price, multiplier, occupancy, now),
        )
        logger.info("Room %s price auto-updated %s -> %s (%.1f%%)", room.name, base_price, final_price, change)
