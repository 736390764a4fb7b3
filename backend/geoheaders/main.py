# Small FastAPI host for the geo middleware. /ping echoes the geo headers
# the downstream handler received; /metrics exposes the pipeline counters.
# The resolution cache is owned by the app and closed on shutdown.

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from geoheaders.core.cache import CacheBackend, build_cache
from geoheaders.core.config import Settings, get_settings
from geoheaders.core.logging import get_structured_logger
from geoheaders.geo.provider import GeoLookup
from geoheaders.middleware import GeoIPHeadersMiddleware


def create_app(
    settings: Optional[Settings] = None,
    lookup: Optional[GeoLookup] = None,
    cache: Optional[CacheBackend] = None,
) -> FastAPI:
    settings = settings or get_settings()
    get_structured_logger("geoheaders", settings.LOG_LEVEL)

    owns_cache = cache is None
    if cache is None:
        cache = build_cache(settings.CACHE_TTL_SECONDS, settings.CACHE_PURGE_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            if owns_cache:
                app.state.geoip_cache.close()

    app = FastAPI(title="geoip-headers", lifespan=lifespan)
    app.state.geoip_cache = cache
    app.add_middleware(GeoIPHeadersMiddleware, settings=settings, lookup=lookup, cache=cache)

    @app.get("/ping")
    def ping(request: Request):
        names = settings.HEADERS.model_dump()
        return {
            "ok": True,
            "headers": {
                field: request.headers.get(name)
                for field, name in names.items()
                if name
            },
        }

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
