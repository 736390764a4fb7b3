"""
Address -> GeoRecord resolution with cache, database and override fallbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from geoheaders.core.cache import CacheBackend, NullCache
from geoheaders.core.ip import normalize_cache_key
from geoheaders.core.metrics import record_resolution
from geoheaders.geo.errors import AddressNotFound
from geoheaders.geo.overrides import OverrideTable
from geoheaders.geo.provider import GeoLookup
from geoheaders.geo.result import UNKNOWN_RECORD, GeoRecord


logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_DATABASE = "database"
SOURCE_OVERRIDE = "override"
SOURCE_UNKNOWN = "unknown"


@dataclass(frozen=True)
class Resolution:
    record: GeoRecord
    source: str


class GeoResolver:
    """
    Runs one address through cache -> database -> overrides -> UNKNOWN.

    Never raises for bad input or missing data. Every composed record,
    including the all-UNKNOWN one, is cached under the normalized address.
    """

    def __init__(
        self,
        lookup: Optional[GeoLookup] = None,
        overrides: Optional[OverrideTable] = None,
        cache: Optional[CacheBackend] = None,
    ) -> None:
        self.lookup = lookup
        self.overrides = overrides if overrides is not None else OverrideTable.disabled()
        self.cache = cache if cache is not None else NullCache()

    def resolve(self, address: str) -> Resolution:
        key = normalize_cache_key(address)
        cached, found = self.cache.get(key)
        if found:
            record_resolution(SOURCE_CACHE)
            return Resolution(cached, SOURCE_CACHE)

        resolution = self._resolve_uncached(key)
        self.cache.set(key, resolution.record)
        record_resolution(resolution.source)
        return resolution

    def _lookup_database(self, address: str) -> Optional[GeoRecord]:
        if self.lookup is None:
            return None
        try:
            return self.lookup.lookup(address)
        except AddressNotFound:
            return None
        except Exception:
            logger.exception("geoip.lookup_failed", extra={"client_ip": address})
            return None

    def _resolve_uncached(self, address: str) -> Resolution:
        record = self._lookup_database(address)
        if record is not None:
            return Resolution(record, SOURCE_DATABASE)
        try:
            return Resolution(self.overrides.match(address), SOURCE_OVERRIDE)
        except AddressNotFound:
            pass
        logger.debug("geoip.lookup_miss", extra={"client_ip": address})
        return Resolution(UNKNOWN_RECORD, SOURCE_UNKNOWN)
