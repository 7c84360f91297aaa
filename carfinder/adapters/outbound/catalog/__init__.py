from .json_catalog import JsonCatalogStore
from .sales_lookup import JsonSalesLookup

__all__ = ["JsonCatalogStore", "JsonSalesLookup"]
