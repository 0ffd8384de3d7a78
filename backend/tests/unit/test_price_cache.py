import json
from datetime import date

from hotel_pricing.services.cache import CacheEntry, CacheKind, PriceCache
from tests.conftest import FailingRedis

DAY = date(2026, 3, 10)


def test_key_format(cache):
    assert cache.build_key(CacheKind.PRICE, "room-1", DAY) == "pricing:price:room-1:2026-03-10"
    assert cache.build_key("occupancy", "room-1", "2026-03-10") == "pricing:occupancy:room-1:2026-03-10"


def test_set_writes_json_with_kind_ttl(cache, fake_redis):
    cache.set(CacheKind.PRICE, "room-1", DAY, {"price_per_night": 550000})
    cache.set(CacheKind.OCCUPANCY, "room-1", DAY, {"occupancy_rate": 70.0})

    key = "pricing:price:room-1:2026-03-10"
    assert json.loads(fake_redis.store[key]) == {"price_per_night": 550000}
    assert fake_redis.ttls[key] == 900
    assert fake_redis.ttls["pricing:occupancy:room-1:2026-03-10"] == 300
    assert cache.get(CacheKind.PRICE, "room-1", DAY) == {"price_per_night": 550000}


def test_primary_miss_does_not_consult_fallback(cache, fake_redis):
    cache.set(CacheKind.PRICE, "room-1", DAY, {"price_per_night": 1})
    fake_redis.store.clear()
    assert cache.get(CacheKind.PRICE, "room-1", DAY) is None


def test_undecodable_value_is_a_miss(cache, fake_redis):
    fake_redis.store["pricing:price:room-1:2026-03-10"] = "{not json"
    assert cache.get(CacheKind.PRICE, "room-1", DAY) is None


def test_redis_down_reads_and_writes_use_fallback(failing_cache):
    failing_cache.set(CacheKind.PRICE, "room-1", DAY, {"price_per_night": 550000})
    assert failing_cache.get(CacheKind.PRICE, "room-1", DAY) == {"price_per_night": 550000}
    assert failing_cache.get(CacheKind.PRICE, "room-2", DAY) is None


def test_fallback_capacity_while_redis_down():
    cache = PriceCache(FailingRedis(), fallback_max_entries=1000)
    for i in range(1001):
        cache.set(CacheKind.PRICE, f"room-{i}", DAY, i)
    assert len(cache.fallback) == 1000
    assert cache.get(CacheKind.PRICE, "room-0", DAY) is None
    assert cache.get(CacheKind.PRICE, "room-1000", DAY) == 1000


def test_invalidate_removes_both_layers(cache, fake_redis):
    cache.set(CacheKind.PRICE, "room-1", DAY, {"price_per_night": 1})
    cache.invalidate(CacheKind.PRICE, "room-1", DAY)
    assert "pricing:price:room-1:2026-03-10" not in fake_redis.store
    assert "pricing:price:room-1:2026-03-10" not in cache.fallback


def test_get_batch(cache):
    cache.set(CacheKind.PRICE, "a", DAY, 1)
    cache.set(CacheKind.PRICE, "b", DAY, 2)
    assert cache.get_batch(CacheKind.PRICE, ["a", "b", "c"], DAY) == {"a": 1, "b": 2, "c": None}
    assert cache.get_batch(CacheKind.PRICE, [], DAY) == {}


def test_get_batch_falls_back_per_room(failing_cache):
    failing_cache.set(CacheKind.PRICE, "a", DAY, 1)
    assert failing_cache.get_batch(CacheKind.PRICE, ["a", "b"], DAY) == {"a": 1, "b": None}


def test_set_batch_pipeline(cache, fake_redis):
    cache.set_batch(
        [
            CacheEntry(CacheKind.PRICE, "a", DAY, 1),
            CacheEntry(CacheKind.COMPETITOR, "b", DAY, {"avg": 2}),
        ]
    )
    assert json.loads(fake_redis.store["pricing:price:a:2026-03-10"]) == 1
    assert fake_redis.ttls["pricing:competitor:b:2026-03-10"] == 3600
    assert cache.fallback.get("pricing:competitor:b:2026-03-10") == {"avg": 2}


def test_set_batch_falls_back_to_sequential_writes(failing_cache):
    failing_cache.set_batch([CacheEntry(CacheKind.METRICS, "a", DAY, 1), CacheEntry(CacheKind.METRICS, "b", DAY, 2)])
    assert failing_cache.get(CacheKind.METRICS, "a", DAY) == 1
    assert failing_cache.get(CacheKind.METRICS, "b", DAY) == 2


def test_health_check(cache, failing_cache, fake_redis):
    assert cache.health_check() is True
    assert "pricing:health_check" not in fake_redis.store
    assert failing_cache.health_check() is False


def test_stats(cache, failing_cache):
    cache.set(CacheKind.PRICE, "a", DAY, 1)
    stats = cache.stats()
    assert stats["fallback_cache_size"] == 1
    assert stats["memory_info"]["used_memory"] == 1024
    assert "error" not in stats

    down = failing_cache.stats()
    assert down["fallback_cache_size"] == 0
    assert "Connection refused" in down["error"]


def test_close_clears_fallback(cache, fake_redis):
    cache.set(CacheKind.PRICE, "a", DAY, 1)
    cache.close()
    assert fake_redis.closed
    assert len(cache.fallback) == 0


def test_unencodable_value_is_kept_in_fallback_only(cache, fake_redis):
    value = {(1, 2): "tuple keys are not JSON"}

    cache.set(CacheKind.PRICE, "room-1", DAY, value)

    assert "pricing:price:room-1:2026-03-10" not in fake_redis.store
    assert cache.fallback.get("pricing:price:room-1:2026-03-10") == value


def test_set_batch_with_unencodable_entry_writes_the_rest(cache, fake_redis):
    bad = {(1, 2): "x"}

    cache.set_batch([CacheEntry(CacheKind.PRICE, "a", DAY, bad), CacheEntry(CacheKind.PRICE, "b", DAY, 2)])

    assert json.loads(fake_redis.store["pricing:price:b:2026-03-10"]) == 2
    assert "pricing:price:a:2026-03-10" not in fake_redis.store
    assert cache.fallback.get("pricing:price:a:2026-03-10") == bad
