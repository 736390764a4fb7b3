"""
ASGI middleware that attaches client geolocation to inbound requests.
"""

from __future__ import annotations

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp, Scope

from geoheaders.core.cache import CacheBackend, build_cache
from geoheaders.core.config import HeaderNames, Settings, get_settings
from geoheaders.core.ip import extract_request_ip
from geoheaders.geo.overrides import OverrideTable, build_override_table
from geoheaders.geo.provider import GeoLookup, try_open_geo_lookup
from geoheaders.geo.resolver import GeoResolver
from geoheaders.geo.result import UNKNOWN_RECORD, GeoRecord


logger = logging.getLogger(__name__)


def _encode_header_value(value: str) -> bytes:
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


def inject_headers(scope: Scope, record: GeoRecord, header_names: HeaderNames) -> list[str]:
    """
    Write the record into the request headers of `scope`.

    Existing headers with the same name are replaced so a client cannot
    pre-seed them. Fields mapped to an empty name are skipped.

    Values are encoded as latin-1, which is how Starlette decodes request
    headers, so names like "São Paulo" reach downstream handlers intact.
    Values outside latin-1 are sent as UTF-8 bytes.
    """
    values = record.as_dict()
    targets: dict[bytes, bytes] = {}
    written: list[str] = []
    for field, name in header_names.model_dump().items():
        if not name:
            continue
        targets[name.lower().encode("latin-1")] = _encode_header_value(values[field])
        written.append(name)
    if not targets:
        return written
    raw = [(key, value) for key, value in scope.get("headers", []) if key.lower() not in targets]
    raw.extend(targets.items())
    scope["headers"] = raw
    return written


class GeoIPHeadersMiddleware(BaseHTTPMiddleware):
    """
    Resolves the client address and adds geo headers before calling the
    wrapped app. Resolution problems never fail the request.

    `lookup` lets several middleware instances share one opened database;
    when omitted the database at `settings.DB_PATH` is opened here.
    """

    def __init__(
        self,
        app: ASGIApp,
        settings: Optional[Settings] = None,
        lookup: Optional[GeoLookup] = None,
        overrides: Optional[OverrideTable] = None,
        cache: Optional[CacheBackend] = None,
    ) -> None:
        super().__init__(app)
        settings = settings or get_settings()
        self.header_names = settings.HEADERS
        self.real_ip_header = settings.REAL_IP_HEADER
        if lookup is None:
            lookup = try_open_geo_lookup(settings.DB_PATH)
        if overrides is None:
            overrides = build_override_table(settings.LOCATION_REWRITES)
        if cache is None:
            cache = build_cache(settings.CACHE_TTL_SECONDS, settings.CACHE_PURGE_SECONDS)
        self.resolver = GeoResolver(lookup=lookup, overrides=overrides, cache=cache)

    def resolve_request(self, request: Request) -> GeoRecord:
        client_ip = extract_request_ip(request, self.real_ip_header)
        return self.resolver.resolve(client_ip).record

    async def dispatch(self, request: Request, call_next):
        try:
            record = self.resolve_request(request)
        except Exception:
            logger.exception("geoip.resolve_failed", extra={"path": request.url.path})
            record = UNKNOWN_RECORD

        try:
            inject_headers(request.scope, record, self.header_names)
        except Exception:
            logger.exception("geoip.inject_failed", extra={"path": request.url.path})
        request.state.geoip = record

        return await call_next(request)
