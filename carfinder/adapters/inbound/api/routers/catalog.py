"""Catalog statistics endpoint."""

from typing import Any

from fastapi import APIRouter, Depends

from .....core.services import StructuredFilter
from ..deps import get_structured_filter

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


@router.get("/stats")
def catalog_stats(
    structured_filter: StructuredFilter = Depends(get_structured_filter),
) -> dict[str, Any]:
    """Body type, fuel type and price band counts for the loaded catalog."""
    stats = structured_filter.statistics()
    return {
        "success": True,
        "totalVehicles": stats["total_vehicles"],
        "pricedVehicles": stats["priced_vehicles"],
        "bodyTypes": stats["body_types"],
        "fuelTypes": stats["fuel_types"],
        "priceRanges": stats["price_ranges"],
    }
