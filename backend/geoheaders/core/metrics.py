# Prometheus counters for the geo pipeline. Cache counters are labelled by
# cache name so several caches can share one registry; resolutions are
# labelled by which stage produced the record.

from prometheus_client import Counter, Gauge

CACHE_HITS_TOTAL = Counter(
    "geoip_cache_hits_total",
    "Resolution cache hits",
    ["cache"],
)
CACHE_MISSES_TOTAL = Counter(
    "geoip_cache_misses_total",
    "Resolution cache misses",
    ["cache"],
)
CACHE_SETS_TOTAL = Counter(
    "geoip_cache_sets_total",
    "Resolution cache writes",
    ["cache"],
)
CACHE_PURGED_TOTAL = Counter(
    "geoip_cache_purged_total",
    "Expired entries removed by the cache janitor",
    ["cache"],
)
CACHE_KEYS = Gauge(
    "geoip_cache_keys",
    "Entries currently held by the resolution cache",
    ["cache"],
)

RESOLUTIONS_TOTAL = Counter(
    "geoip_resolutions_total",
    "Resolved client addresses grouped by the stage that answered",
    ["source"],
)


def record_cache_hit(cache_name: str) -> None:
    CACHE_HITS_TOTAL.labels(cache=cache_name).inc()


def record_cache_miss(cache_name: str) -> None:
    CACHE_MISSES_TOTAL.labels(cache=cache_name).inc()


def record_cache_set(cache_name: str) -> None:
    CACHE_SETS_TOTAL.labels(cache=cache_name).inc()


def record_cache_purge(cache_name: str, removed: int) -> None:
    if removed:
        CACHE_PURGED_TOTAL.labels(cache=cache_name).inc(removed)


def record_cache_key_count(cache_name: str, count: int) -> None:
    CACHE_KEYS.labels(cache=cache_name).set(count)


def record_resolution(source: str) -> None:
    RESOLUTIONS_TOTAL.labels(source=source).inc()
