from __future__ import annotations

import logging
import os
from ipaddress import ip_address
from typing import Any, Callable, Optional

import geoip2.database
from geoip2.errors import AddressNotFoundError
from maxminddb import InvalidDatabaseError

from geoheaders.geo.errors import AddressNotFound, DatabaseUnavailable, UnparseableAddress
from geoheaders.geo.result import GeoRecord


logger = logging.getLogger(__name__)

ReaderFactory = Callable[..., Any]

CITY = "city"
COUNTRY = "country"
ENTERPRISE = "enterprise"


def _parse_address(address: str) -> str:
    try:
        return str(ip_address((address or "").strip()))
    except ValueError as exc:
        raise UnparseableAddress(f"not an IP address: {address!r}") from exc


class GeoLookup:
    """
    Read-only view over an opened geo database.

    Instances are safe to share between middleware instances and threads;
    lookups only touch the memory mapped database.
    """

    kind: str = ""

    def __init__(self, reader: Any, path: str = "") -> None:
        self._reader = reader
        self.path = path

    def lookup(self, address: str) -> GeoRecord:
        ip_str = _parse_address(address)
        try:
            response = self._query(ip_str)
        except AddressNotFoundError as exc:
            raise AddressNotFound(f"{ip_str} not in database") from exc
        except ValueError as exc:
            # e.g. an IPv6 address against an IPv4-only database
            raise AddressNotFound(str(exc)) from exc
        return self._to_record(response)

    def _query(self, ip_str: str) -> Any:
        raise NotImplementedError

    def _to_record(self, response: Any) -> GeoRecord:
        raise NotImplementedError

    def close(self) -> None:
        self._reader.close()


class CityLookup(GeoLookup):
    kind = CITY

    def _query(self, ip_str: str) -> Any:
        return self._reader.city(ip_str)

    def _to_record(self, response: Any) -> GeoRecord:
        region = None
        if response.subdivisions:
            region = response.subdivisions[0].iso_code
        return GeoRecord.compose(
            country=response.country.iso_code,
            region=region,
            city=response.city.name,
            latitude=response.location.latitude,
            longitude=response.location.longitude,
        )


class CountryLookup(GeoLookup):
    kind = COUNTRY

    def _query(self, ip_str: str) -> Any:
        return self._reader.country(ip_str)

    def _to_record(self, response: Any) -> GeoRecord:
        return GeoRecord.compose(country=response.country.iso_code)


class EnterpriseLookup(CityLookup):
    kind = ENTERPRISE

    def _query(self, ip_str: str) -> Any:
        return self._reader.enterprise(ip_str)


# geoip2 only allows a query method when its edition name appears in the
# metadata database_type, so match on the same substrings.
_LOOKUP_CLASSES = (
    ("Enterprise", EnterpriseLookup),
    ("City", CityLookup),
    ("Country", CountryLookup),
)


def detect_lookup_class(database_type: str | None) -> type[GeoLookup] | None:
    for marker, lookup_class in _LOOKUP_CLASSES:
        if marker in (database_type or ""):
            return lookup_class
    return None


def open_geo_lookup(
    path: str,
    *,
    reader_factory: ReaderFactory = geoip2.database.Reader,
) -> GeoLookup:
    """
    Open the database at `path` once and wrap it in the matching lookup.

    Raises DatabaseUnavailable when the file is missing, unreadable, not a
    MaxMind database, or of an edition other than City, Country or Enterprise.
    """
    if not path or not os.path.isfile(path):
        raise DatabaseUnavailable(f"database {path!r} not found")
    try:
        reader = reader_factory(path, locales=["en"])
    except (OSError, ValueError, InvalidDatabaseError) as exc:
        raise DatabaseUnavailable(f"database {path!r} could not be opened: {exc}") from exc

    database_type = getattr(reader.metadata(), "database_type", None)
    lookup_class = detect_lookup_class(database_type)
    if lookup_class is None:
        reader.close()
        raise DatabaseUnavailable(
            f"database {path!r} has unsupported type {database_type!r}"
        )
    logger.info(
        "geoip.database_opened",
        extra={
            "db_path": path,
            "database_type": database_type,
            "lookup_kind": lookup_class.kind,
        },
    )
    return lookup_class(reader, path)


def try_open_geo_lookup(
    path: str,
    *,
    reader_factory: ReaderFactory = geoip2.database.Reader,
) -> Optional[GeoLookup]:
    try:
        return open_geo_lookup(path, reader_factory=reader_factory)
    except DatabaseUnavailable as exc:
        logger.error(
            "geoip.database_unavailable",
            extra={"db_path": path, "error": str(exc)},
        )
        return None
