# Central place for the interceptor's settings. We use Pydantic's
# BaseSettings so values can be read from env vars or a .env file.
# Everything here is read once when the middleware is built.

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HeaderNames(BaseModel):
    """Outbound request header per record field. Empty name means skip."""

    model_config = ConfigDict(frozen=True)

    country: str = "Geoip_Country"
    region: str = "Geoip_Region"
    city: str = "Geoip_City"
    latitude: str = "Geoip_Latitude"
    longitude: str = "Geoip_Longitude"


class LocationRewrite(BaseModel):
    """One operator supplied CIDR override, as written in config."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ip_range: str = Field(alias="ipRange")
    country: str = ""
    region: str = ""
    city: str = ""
    latitude: str = ""
    longitude: str = ""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GEOIP_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Path to the MaxMind database. City or Country editions are supported;
    # the edition is read from the file metadata at startup.
    DB_PATH: str = "GeoLite2-Country.mmdb"

    # Names of the request headers we set for downstream handlers.
    HEADERS: HeaderNames = Field(default_factory=HeaderNames)

    # Ordered CIDR overrides, first match wins. Consulted only when the
    # database has no answer for an address.
    LOCATION_REWRITES: List[LocationRewrite] = Field(default_factory=list)

    # Trusted header set by the fronting proxy with the real client address.
    REAL_IP_HEADER: str = "X-Real-IP"

    # Resolution cache: entry lifetime and janitor sweep interval (seconds).
    # A TTL of 0 disables caching.
    CACHE_TTL_SECONDS: float = Field(default=30, ge=0)
    CACHE_PURGE_SECONDS: float = Field(default=300, ge=0)

    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").upper()


def get_settings() -> Settings:
    return Settings()
