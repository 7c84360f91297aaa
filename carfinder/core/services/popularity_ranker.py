"""Reorders analyzer output by national sales popularity."""

import logging
from dataclasses import replace

from ..domain import AnalysisResult, PopularityRanking
from ..domain.utils import make_model_key
from ..ports.catalog_port import CatalogPort
from ..ports.sales_lookup_port import SalesLookupPort

logger = logging.getLogger(__name__)

FINAL_RESULT_LIMIT = 5


class PopularityRanker:
    """Trades relevance order for market-popularity order, keeping relevance metadata.

    The sort is stable: vehicles with equal sales volume keep the order the
    requirement analyzer gave them.
    """

    def __init__(
        self,
        catalog: CatalogPort,
        sales_lookup: SalesLookupPort,
        limit: int = FINAL_RESULT_LIMIT,
    ) -> None:
        self.catalog = catalog
        self.sales_lookup = sales_lookup
        self.limit = limit

    def sales_volume_for(self, vehicle_id: str) -> int:
        vehicle = self.catalog.get_by_id(vehicle_id)
        if vehicle is None:
            logger.warning("Vehicle %s not in catalog, treating sales volume as 0", vehicle_id)
            return 0
        return self.sales_lookup.volume_for(make_model_key(vehicle.make, vehicle.model))

    def rank(self, analysis: AnalysisResult) -> PopularityRanking:
        if analysis.is_empty:
            return PopularityRanking()

        with_sales = [
            replace(
                vehicle,
                sales_volume=self.sales_volume_for(vehicle.vehicle_id),
                relevance_rank=position,
            )
            for position, vehicle in enumerate(analysis.ranked_vehicles, start=1)
        ]
        # sorted() is stable, so ties keep analyzer order
        ordered = sorted(with_sales, key=lambda vehicle: vehicle.sales_volume, reverse=True)
        top = ordered[: self.limit]

        for position, vehicle in enumerate(top, start=1):
            logger.debug(
                "%d. %s sales=%d (was #%d)",
                position,
                vehicle.vehicle_id,
                vehicle.sales_volume,
                vehicle.relevance_rank,
            )
        logger.info("Popularity ranking: returning %d of %d", len(top), len(with_sales))
        return PopularityRanking(
            vehicle_ids=[vehicle.vehicle_id for vehicle in top],
            metadata=top,
        )
