from datetime import timedelta

from hotel_pricing.services.cache import CacheKind
from hotel_pricing.services.pricing.occupancy import (
    OccupancySnapshot,
    calculate_occupancy,
    demand_score,
    get_occupancy,
)
from tests.conftest import FIXED_NOW, TODAY


def test_counts_active_bookings_covering_the_night(db, make_room, make_booking):
    make_room(allotment=10)
    make_booking(units=2)
    make_booking(units=1, check_in=TODAY - timedelta(days=1), nights=2)  # still in house tonight
    make_booking(units=4, check_in=TODAY - timedelta(days=1), nights=1)  # checks out today
    make_booking(units=3, status="cancelled")
    make_booking(units=3, status="rejected")

    snapshot = calculate_occupancy(db, "room-1", TODAY, now=FIXED_NOW)

    assert snapshot.booked_units == 3
    assert snapshot.total_allotment == 10
    assert snapshot.available_units == 7
    assert snapshot.occupancy_rate == 30.0
    assert snapshot.date == TODAY.isoformat()


def test_unknown_room_or_missing_allotment_is_unavailable(db, make_room):
    assert calculate_occupancy(db, "nope", TODAY, now=FIXED_NOW) is None
    make_room("no-allotment", allotment=None)
    make_room("zero-allotment", allotment=0)
    assert calculate_occupancy(db, "no-allotment", TODAY, now=FIXED_NOW) is None
    assert calculate_occupancy(db, "zero-allotment", TODAY, now=FIXED_NOW) is None


def test_demand_score_adds_recent_booking_momentum(db, make_room, make_booking):
    make_room(allotment=10)
    make_booking(units=2, created_at=FIXED_NOW - timedelta(hours=1))
    make_booking(units=3, created_at=FIXED_NOW - timedelta(days=2))

    snapshot = calculate_occupancy(db, "room-1", TODAY, now=FIXED_NOW)

    assert snapshot.occupancy_rate == 50.0
    assert snapshot.demand_score == 52.0


def test_demand_score_is_capped():
    assert demand_score(100.0, 10, 10) == 100.0
    assert demand_score(40.0, 0, 10) == 40.0
    assert demand_score(40.0, 50, 10) == 50.0


def test_calculate_refreshes_occupancy_cache(db, cache, make_room, make_booking):
    make_room(allotment=4)
    make_booking(units=3)

    calculate_occupancy(db, "room-1", TODAY, cache=cache, now=FIXED_NOW)

    cached = cache.get(CacheKind.OCCUPANCY, "room-1", TODAY)
    assert cached["booked_units"] == 3
    assert cached["occupancy_rate"] == 75.0


def test_get_occupancy_reads_through_cache(db, cache, make_room):
    cached = OccupancySnapshot(
        room_id="room-1",
        date=TODAY.isoformat(),
        total_allotment=10,
        booked_units=9,
        available_units=1,
        occupancy_rate=90.0,
        demand_score=90.0,
        calculated_at=FIXED_NOW.isoformat(),
    )
    cache.set(CacheKind.OCCUPANCY, "room-1", TODAY, cached.to_dict())

    # No room row at all: the cached record is served
    assert get_occupancy(db, cache, "room-1", TODAY) == cached


def test_get_occupancy_computes_on_miss(db, cache, make_room, make_booking):
    make_room(allotment=10)
    make_booking(units=1)
    snapshot = get_occupancy(db, cache, "room-1", TODAY)
    assert snapshot.booked_units == 1
    assert cache.get(CacheKind.OCCUPANCY, "room-1", TODAY)["booked_units"] == 1
