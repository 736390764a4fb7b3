from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional, Union

# Placeholder written into any field no source could resolve.
UNKNOWN = "XX"

FIELDS = ("country", "region", "city", "latitude", "longitude")


def _text(value: Optional[str]) -> str:
    if value is None:
        return UNKNOWN
    value = str(value).strip()
    return value or UNKNOWN


def format_coordinate(value: Union[float, str, None]) -> str:
    if value is None:
        return UNKNOWN
    if isinstance(value, str):
        return _text(value)
    return f"{value:f}"


@dataclass(frozen=True)
class GeoRecord:
    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN
    latitude: str = UNKNOWN
    longitude: str = UNKNOWN

    @classmethod
    def compose(
        cls,
        *,
        country: Optional[str] = None,
        region: Optional[str] = None,
        city: Optional[str] = None,
        latitude: Union[float, str, None] = None,
        longitude: Union[float, str, None] = None,
    ) -> "GeoRecord":
        """
        Build a fully populated record. Missing or blank values become UNKNOWN,
        numeric coordinates are rendered with six decimals.
        """
        return cls(
            country=_text(country),
            region=_text(region),
            city=_text(city),
            latitude=format_coordinate(latitude),
            longitude=format_coordinate(longitude),
        )

    @property
    def is_unknown(self) -> bool:
        return all(value == UNKNOWN for value in self.as_dict().values())

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


UNKNOWN_RECORD = GeoRecord()
