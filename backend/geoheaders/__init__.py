"Client geolocation headers for Starlette/FastAPI request pipelines."

from .geo.result import UNKNOWN, GeoRecord  # noqa: F401
from .middleware import GeoIPHeadersMiddleware, inject_headers  # noqa: F401
