"""
Pytest configuration for the pricing engine.

Provides fixtures for:
- An in-memory SQLite database with all pricing tables (one connection, shared across threads)
- Redis doubles (working in-memory client, always-failing client) behind a real PriceCache
- Recording / failing notifiers
- Row factories for rooms, bookings and pricing events
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Generator

import pytest
import redis
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hotel_pricing.db.base import Base
from hotel_pricing.models import Booking, PricingEvent, Room
from hotel_pricing.models.pricing_event import STATUS_PENDING
from hotel_pricing.services.cache import PriceCache
from hotel_pricing.services.pricing import PriceAdjustmentEngine

FIXED_NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()


# --------------------------------------------------------------------------- #
# Redis doubles
# --------------------------------------------------------------------------- #
class _FakePipeline:
    def __init__(self, client: "FakeRedis") -> None:
        self._client = client
        self._ops: list[tuple[str, int, str]] = []

    def __enter__(self) -> "_FakePipeline":
        return self

    def __exit__(self, *exc: Any) -> None:
        self._ops.clear()

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._ops.append((key, ttl, value))

    def execute(self) -> list[bool]:
        for key, ttl, value in self._ops:
            self._client.setex(key, ttl, value)
        return [True] * len(self._ops)


class FakeRedis:
    """Just enough of redis.Redis (decode_responses=True) for PriceCache. TTLs are recorded, not enforced."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.closed = False

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def setex(self, key: str, ttl: int, value: str) -> bool:
        return self.set(key, value, ex=ttl)

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def mget(self, keys: list[str]) -> list[str | None]:
        return [self.store.get(k) for k in keys]

    def pipeline(self, transaction: bool = True) -> _FakePipeline:
        return _FakePipeline(self)

    def info(self, section: str | None = None) -> dict[str, Any]:
        if section == "memory":
            return {"used_memory": 1024, "used_memory_human": "1K"}
        return {"db0": {"keys": len(self.store), "expires": len(self.store)}}

    def close(self) -> None:
        self.closed = True


class FailingRedis:
    """Every call raises like an unreachable server."""

    def __getattr__(self, name: str):
        def _fail(*args: Any, **kwargs: Any):
            raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

        return _fail


# --------------------------------------------------------------------------- #
# Notifier doubles
# --------------------------------------------------------------------------- #
class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    def notify(self, payload: dict[str, Any]) -> None:
        self.sent.append(payload)


class FailingNotifier:
    def __init__(self) -> None:
        self.attempts = 0

    def notify(self, payload: dict[str, Any]) -> None:
        self.attempts += 1
        raise RuntimeError("gateway down")


# --------------------------------------------------------------------------- #
# Database
# --------------------------------------------------------------------------- #
@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# --------------------------------------------------------------------------- #
# Cache / notifier / engine
# --------------------------------------------------------------------------- #
@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> PriceCache:
    return PriceCache(fake_redis)


@pytest.fixture
def failing_cache() -> PriceCache:
    return PriceCache(FailingRedis())


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def pricing_engine(cache: PriceCache, notifier: RecordingNotifier) -> PriceAdjustmentEngine:
    return PriceAdjustmentEngine(
        cache,
        notifier,
        hotel_name="Test Hotel",
        approval_phone="+6281200000000",
        clock=lambda: FIXED_NOW,
    )


# --------------------------------------------------------------------------- #
# Factories
# --------------------------------------------------------------------------- #
@pytest.fixture
def make_room(db: Session):
    def _make(
        room_id: str = "room-1",
        *,
        name: str = "Deluxe King",
        base_price: float | None = 500000,
        price_per_night: float | None = None,
        min_auto_price: float | None = None,
        max_auto_price: float | None = None,
        auto_pricing_enabled: bool = True,
        allotment: int | None = 10,
    ) -> Room:
        room = Room(
            id=room_id,
            name=name,
            base_price=base_price,
            price_per_night=price_per_night,
            min_auto_price=min_auto_price,
            max_auto_price=max_auto_price,
            auto_pricing_enabled=auto_pricing_enabled,
            allotment=allotment,
        )
        db.add(room)
        db.commit()
        return room

    return _make


@pytest.fixture
def make_booking(db: Session):
    def _make(
        room_id: str = "room-1",
        *,
        units: int = 1,
        check_in: date = TODAY,
        nights: int = 1,
        status: str = "confirmed",
        created_at: datetime | None = None,
    ) -> Booking:
        booking = Booking(
            room_id=room_id,
            check_in=check_in,
            check_out=check_in + timedelta(days=nights),
            units=units,
            status=status,
            created_at=created_at or FIXED_NOW - timedelta(days=3),
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def make_event(db: Session):
    def _make(
        room_id: str = "room-1",
        *,
        event_type: str = "booking_change",
        priority: int = 0,
        created_at: datetime | None = None,
        status: str = STATUS_PENDING,
        retry_count: int = 0,
        processed: bool = False,
    ) -> PricingEvent:
        event = PricingEvent(
            room_id=room_id,
            event_type=event_type,
            priority=priority,
            created_at=created_at or FIXED_NOW - timedelta(minutes=10),
            status=status,
            retry_count=retry_count,
            processed=processed,
        )
        db.add(event)
        db.commit()
        return event

    return _make
