import gc
import threading
import time

from geoheaders.core.cache import NullCache, TTLCache, build_cache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_ttl_cache_get_set_roundtrip():
    cache = TTLCache(30, clock=FakeClock())
    assert cache.get("10.0.0.1") == (None, False)
    cache.set("10.0.0.1", "value")
    assert cache.get("10.0.0.1") == ("value", True)


def test_ttl_cache_expired_entries_are_absent_before_purge():
    clock = FakeClock()
    cache = TTLCache(30, clock=clock)
    cache.set("a", 1)
    clock.now += 29
    assert cache.get("a") == (1, True)
    clock.now += 1
    assert cache.get("a") == (None, False)


def test_ttl_cache_set_replaces_and_refreshes_expiry():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("a", 1)
    clock.now += 8
    cache.set("a", 2)
    clock.now += 8
    assert cache.get("a") == (2, True)


def test_ttl_cache_per_entry_ttl_override():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("short", 1, ttl=1)
    cache.set("long", 2, ttl=1000)
    clock.now += 100
    assert cache.get("short") == (None, False)
    assert cache.get("long") == (2, True)


def test_ttl_cache_non_positive_ttl_stores_nothing():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("a", 1)
    cache.set("a", 2, ttl=0)
    cache.set("b", 3, ttl=-5)
    assert cache.get("a") == (None, False)
    assert cache.get("b") == (None, False)
    assert len(cache) == 0

    disabled = TTLCache(0, clock=clock)
    disabled.set("c", 4)
    assert disabled.get("c") == (None, False)


def test_ttl_cache_purge_expired_removes_only_stale_entries():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("old", 1)
    clock.now += 5
    cache.set("new", 2)
    clock.now += 6
    assert len(cache) == 2
    assert cache.purge_expired() == 1
    assert len(cache) == 1
    assert cache.get("new") == (2, True)


def test_ttl_cache_delete_and_clear():
    cache = TTLCache(10, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    assert cache.get("a") == (None, False)
    cache.clear()
    assert len(cache) == 0


def test_ttl_cache_janitor_sweeps_in_background():
    clock = FakeClock()
    cache = TTLCache(10, purge_interval=0.01, clock=clock)
    try:
        cache.set("a", 1)
        clock.now += 20
        deadline = time.monotonic() + 2.0
        while len(cache) and time.monotonic() < deadline:
            time.sleep(0.01)
        assert len(cache) == 0
    finally:
        cache.close()


def test_ttl_cache_concurrent_writers():
    cache = TTLCache(60, clock=FakeClock())

    def writer(offset):
        for i in range(200):
            key = f"10.0.{offset}.{i % 250}"
            cache.set(key, i)
            cache.get(key)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(cache) == 8 * 200


def test_null_cache_never_stores():
    cache = NullCache()
    cache.set("a", 1)
    assert cache.get("a") == (None, False)
    assert len(cache) == 0
    assert cache.purge_expired() == 0
    assert cache.janitor_running is False
    cache.close()


def test_build_cache_disabled_with_zero_ttl():
    assert isinstance(build_cache(0, 300), NullCache)
    cache = build_cache(30, 0)
    assert isinstance(cache, TTLCache)
    assert cache.default_ttl == 30


def test_ttl_cache_close_stops_janitor():
    cache = TTLCache(10, purge_interval=60)
    thread = cache._janitor
    assert cache.janitor_running
    cache.close()
    assert not cache.janitor_running
    assert not thread.is_alive()


def test_ttl_cache_janitor_exits_when_cache_is_collected():
    cache = TTLCache(10, purge_interval=0.01, name="collected")
    thread = cache._janitor
    assert thread.is_alive()
    del cache
    gc.collect()
    thread.join(timeout=2.0)
    assert not thread.is_alive()
