from .errors import (  # noqa: F401
    AddressNotFound,
    DatabaseUnavailable,
    GeoIPError,
    InvalidOverrideConfig,
    UnparseableAddress,
)
from .overrides import OverrideRule, OverrideTable, build_override_table  # noqa: F401
from .provider import (  # noqa: F401
    CityLookup,
    CountryLookup,
    EnterpriseLookup,
    GeoLookup,
    open_geo_lookup,
)
from .resolver import GeoResolver, Resolution  # noqa: F401
from .result import UNKNOWN, UNKNOWN_RECORD, GeoRecord  # noqa: F401
