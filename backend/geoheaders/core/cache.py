from __future__ import annotations

import logging
import threading
import time
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from geoheaders.core.metrics import (
    record_cache_hit,
    record_cache_key_count,
    record_cache_miss,
    record_cache_purge,
    record_cache_set,
)


logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    def get(self, key: str) -> tuple[Any, bool]:
        ...

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def clear(self) -> None:
        ...

    def purge_expired(self) -> int:
        ...

    def __len__(self) -> int:
        ...

    def close(self) -> None:
        ...


@dataclass(frozen=True)
class _CacheEntry:
    expires_at: float
    value: Any


def _run_janitor(
    cache_ref: "weakref.ref[TTLCache]",
    stop: threading.Event,
    interval: float,
) -> None:
    # Weak reference only: the thread ends once the cache is collected.
    while not stop.wait(interval):
        cache = cache_ref()
        if cache is None:
            return
        removed = cache.purge_expired()
        if removed:
            logger.debug(
                "geoip.cache_purged",
                extra={"cache": cache.name, "removed": removed},
            )
        del cache


class TTLCache:
    """
    Thread-safe in-memory cache with per-entry expiry.

    Expired entries are invisible to `get` straight away and are removed
    either on access or by the janitor thread, which sweeps every
    `purge_interval` seconds when that interval is positive. Call `close()`
    to stop the janitor; it also stops once the cache is garbage collected.
    """

    def __init__(
        self,
        default_ttl: float,
        purge_interval: float = 0,
        *,
        name: str = "geoip",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.purge_interval = purge_interval
        self.name = name
        self._clock = clock
        self._store: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._janitor: threading.Thread | None = None
        if purge_interval and purge_interval > 0:
            self._janitor = threading.Thread(
                target=_run_janitor,
                args=(weakref.ref(self), self._stop, purge_interval),
                name=f"{name}-cache-janitor",
                daemon=True,
            )
            weakref.finalize(self, self._stop.set)
            self._janitor.start()

    @property
    def janitor_running(self) -> bool:
        return self._janitor is not None and self._janitor.is_alive()

    def get(self, key: str) -> tuple[Any, bool]:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is not None and now >= entry.expires_at:
                self._store.pop(key, None)
                entry = None
        if entry is None:
            record_cache_miss(self.name)
            return None, False
        record_cache_hit(self.name)
        return entry.value, True

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """
        Store `value` for `ttl` seconds (default: `default_ttl`). A TTL of
        zero or less stores nothing and drops any existing entry.
        """
        effective_ttl = self.default_ttl if ttl is None else ttl
        if not effective_ttl or effective_ttl <= 0:
            self.delete(key)
            return None
        expires_at = self._clock() + effective_ttl
        with self._lock:
            self._store[key] = _CacheEntry(expires_at=expires_at, value=value)
            count = len(self._store)
        record_cache_set(self.name)
        record_cache_key_count(self.name, count)
        return None

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
        record_cache_key_count(self.name, 0)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._store.items() if now >= entry.expires_at]
            for key in expired:
                del self._store[key]
            count = len(self._store)
        record_cache_purge(self.name, len(expired))
        record_cache_key_count(self.name, count)
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def close(self) -> None:
        self._stop.set()
        if self._janitor is not None and self._janitor is not threading.current_thread():
            self._janitor.join(timeout=1.0)
        self._janitor = None


class NullCache:
    """Cache stand-in that never stores anything."""

    name = "none"
    janitor_running = False

    def get(self, key: str) -> tuple[Any, bool]:
        return None, False

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def clear(self) -> None:
        return None

    def purge_expired(self) -> int:
        return 0

    def __len__(self) -> int:
        return 0

    def close(self) -> None:
        return None


def build_cache(ttl_seconds: float, purge_seconds: float) -> CacheBackend:
    if not ttl_seconds or ttl_seconds <= 0:
        return NullCache()
    return TTLCache(ttl_seconds, purge_seconds)
