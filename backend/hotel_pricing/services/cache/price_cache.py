"""
Real-time pricing cache: Redis in front of the rooms / price tables, with an in-process
fallback store for when Redis is unreachable.

Caching is an optimization only. Nothing in this module raises to the caller: every Redis
failure is logged and degraded to the fallback store (reads and writes) or to a no-op.
"""
import json
import logging
from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable, NamedTuple

from redis import Redis

from hotel_pricing.config import Settings
from hotel_pricing.services.cache.fallback import DEFAULT_MAX_ENTRIES, FallbackStore

logger = logging.getLogger(__name__)

HEALTH_CHECK_KEY = "health_check"
HEALTH_CHECK_VALUE = "ok"


class CacheKind(str, Enum):
    PRICE = "price"
    OCCUPANCY = "occupancy"
    COMPETITOR = "competitor"
    METRICS = "metrics"


DEFAULT_TTLS: dict[CacheKind, int] = {
    CacheKind.PRICE: 900,  # 15 minutes
    CacheKind.OCCUPANCY: 300,  # 5 minutes
    CacheKind.COMPETITOR: 3600,  # 1 hour
    CacheKind.METRICS: 86400,  # 24 hours
}


class CacheEntry(NamedTuple):
    """One record for set_batch."""

    kind: CacheKind
    room_id: str
    date: date | str
    value: Any


class _PrimaryResult(NamedTuple):
    ok: bool
    value: Any = None
    error: Exception | None = None


def _date_str(day: date | str) -> str:
    return day.isoformat() if isinstance(day, date) else str(day)


class PriceCache:
    """Cache for price / occupancy / competitor / metrics records keyed by room and date."""

    def __init__(
        self,
        client: Redis,
        *,
        key_prefix: str = "pricing",
        ttls: dict[CacheKind, int] | None = None,
        fallback_max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self._client = client
        self.key_prefix = key_prefix
        self.ttls = {**DEFAULT_TTLS, **(ttls or {})}
        self.fallback = FallbackStore(fallback_max_entries)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PriceCache":
        client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password or None,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
            decode_responses=True,
        )
        return cls(
            client,
            key_prefix=settings.cache_key_prefix,
            ttls={
                CacheKind.PRICE: settings.cache_ttl_price,
                CacheKind.OCCUPANCY: settings.cache_ttl_occupancy,
                CacheKind.COMPETITOR: settings.cache_ttl_competitor,
                CacheKind.METRICS: settings.cache_ttl_metrics,
            },
            fallback_max_entries=settings.fallback_cache_max_entries,
        )

    # ------------------------------------------------------------------ #
    # Keys and primary calls
    # ------------------------------------------------------------------ #
    def build_key(self, kind: CacheKind | str, room_id: str, day: date | str) -> str:
        kind_value = CacheKind(kind).value
        return f"{self.key_prefix}:{kind_value}:{room_id}:{_date_str(day)}"

    def ttl_for(self, kind: CacheKind | str) -> int:
        return self.ttls[CacheKind(kind)]

    def _primary(self, op: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> _PrimaryResult:
        try:
            return _PrimaryResult(True, fn(*args, **kwargs))
        except Exception as e:
            logger.warning("Redis %s failed: %s", op, e)
            return _PrimaryResult(False, error=e)

    @staticmethod
    def _decode(raw: Any, key: str) -> Any:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning("Discarding undecodable cache value for %s", key)
            return None

    # ------------------------------------------------------------------ #
    # Single-key operations
    # ------------------------------------------------------------------ #
    def get(self, kind: CacheKind | str, room_id: str, day: date | str) -> Any:
        """Return the cached value or None. Served from the fallback store when Redis fails."""
        key = self.build_key(kind, room_id, day)
        res = self._primary("get", self._client.get, key)
        if not res.ok:
            return self.fallback.get(key)
        return self._decode(res.value, key)

    def set(self, kind: CacheKind | str, room_id: str, day: date | str, value: Any) -> None:
        """Write with the kind TTL. Always mirrored into the fallback store, even when Redis fails."""
        key = self.build_key(kind, room_id, day)
        ttl = self.ttl_for(kind)
        # Encoding errors count as a failed write too
        self._primary("setex", lambda: self._client.setex(key, ttl, json.dumps(value, default=str)))
        self.fallback.set(key, value, ttl)

    def invalidate(self, kind: CacheKind | str, room_id: str, day: date | str) -> None:
        key = self.build_key(kind, room_id, day)
        self._primary("delete", self._client.delete, key)
        self.fallback.delete(key)

    # ------------------------------------------------------------------ #
    # Batch operations
    # ------------------------------------------------------------------ #
    def get_batch(self, kind: CacheKind | str, room_ids: list[str], day: date | str) -> dict[str, Any]:
        """One MGET for all rooms; on failure fall back to a get per room (slower, never fails)."""
        if not room_ids:
            return {}
        keys = [self.build_key(kind, rid, day) for rid in room_ids]
        res = self._primary("mget", self._client.mget, keys)
        if not res.ok:
            return {rid: self.get(kind, rid, day) for rid in room_ids}
        values = res.value or [None] * len(keys)
        return {rid: self._decode(raw, key) for rid, key, raw in zip(room_ids, keys, values)}

    def set_batch(self, entries: Iterable[CacheEntry]) -> None:
        """Write all entries in one pipeline; on failure write them one by one so none is dropped."""
        entries = list(entries)
        if not entries:
            return

        def _write_pipeline() -> None:
            with self._client.pipeline(transaction=False) as pipe:
                for e in entries:
                    key = self.build_key(e.kind, e.room_id, e.date)
                    pipe.setex(key, self.ttl_for(e.kind), json.dumps(e.value, default=str))
                pipe.execute()

        res = self._primary("pipeline setex", _write_pipeline)
        if not res.ok:
            for e in entries:
                self.set(e.kind, e.room_id, e.date, e.value)
            return
        for e in entries:
            self.fallback.set(self.build_key(e.kind, e.room_id, e.date), e.value, self.ttl_for(e.kind))

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #
    def health_check(self) -> bool:
        """Round-trip a synthetic key through Redis. Any exception means unhealthy."""
        key = f"{self.key_prefix}:{HEALTH_CHECK_KEY}"
        try:
            self._client.set(key, HEALTH_CHECK_VALUE, ex=30)
            result = self._client.get(key)
            self._client.delete(key)
            return result == HEALTH_CHECK_VALUE
        except Exception as e:
            logger.warning("Redis health check failed: %s", e)
            return False

    def cleanup_expired(self) -> int:
        """Redis expires keys itself; only the fallback store needs purging."""
        removed = self.fallback.purge_expired()
        if removed:
            logger.debug("Purged %s expired fallback cache entries", removed)
        return removed

    def stats(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "fallback_cache_size": len(self.fallback),
            "fallback_cache_max_entries": self.fallback.max_entries,
            "key_prefix": self.key_prefix,
            "ttls": {k.value: v for k, v in self.ttls.items()},
        }
        memory = self._primary("info memory", self._client.info, "memory")
        keyspace = self._primary("info keyspace", self._client.info, "keyspace")
        if memory.ok and keyspace.ok:
            out["memory_info"] = memory.value
            out["keyspace_info"] = keyspace.value
        else:
            out["error"] = str(memory.error or keyspace.error)
        return out

    def close(self) -> None:
        res = self._primary("close", self._client.close)
        if res.ok:
            logger.debug("Redis connection closed")
        self.fallback.clear()
