"""
In-process fallback store used while Redis is unreachable.

Pure insertion-order FIFO with a hard cap: re-setting a live key keeps its slot, a key written
again after eviction is a new insertion. Entries carry an expiry; an expired entry reads as a miss.
"""
import threading
import time
from collections import OrderedDict
from typing import Any

DEFAULT_MAX_ENTRIES = 1000


class FallbackStore:
    """Bounded, lock-guarded map of cache key -> (value, expires_at epoch)."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._data: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        expires_at = time.time() + ttl_seconds if ttl_seconds else None
        with self._lock:
            if key in self._data:
                self._data[key] = (value, expires_at)
                return
            while len(self._data) >= self.max_entries:
                self._data.popitem(last=False)
            self._data[key] = (value, expires_at)

    def get(self, key: str) -> Any:
        with self._lock:
            item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= time.time():
            return None
        return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def purge_expired(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = time.time()
        with self._lock:
            expired = [k for k, (_v, exp) in self._data.items() if exp is not None and exp <= now]
            for k in expired:
                del self._data[k]
        return len(expired)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data.keys())

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
