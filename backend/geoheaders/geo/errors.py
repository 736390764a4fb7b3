"""
Exceptions raised between the resolution stages.

None of these reach the HTTP caller: each one selects the next fallback.
"""


class GeoIPError(Exception):
    """Base class for geo resolution failures."""


class DatabaseUnavailable(GeoIPError):
    """Raised when the geo database cannot be opened or has an unsupported type."""


class InvalidOverrideConfig(GeoIPError):
    """Raised when a configured override range fails to parse."""


class AddressNotFound(GeoIPError):
    """Raised when a source has no data for an address."""


class UnparseableAddress(AddressNotFound):
    """Raised when the extracted address is not a valid IP literal."""
