"""Static data exceptions for carfinder.

These are initialization failures: the service must not serve requests
when the catalog or a lookup table cannot be loaded.
"""

from .base import CarFinderError


class CatalogError(CarFinderError):
    """Error in the static vehicle or review datasets."""

    error_code = "CF_CAT_001"


class CatalogLoadError(CatalogError):
    """A catalog source file is missing or malformed."""

    error_code = "CF_CAT_002"


class SalesLookupError(CatalogError):
    """The sales-popularity lookup table is missing or malformed."""

    error_code = "CF_CAT_003"
