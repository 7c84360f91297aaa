"""Turns the final id list into display-ready vehicle records."""

import logging
from datetime import date

from ..domain import HydratedVehicle, PopularityRanking, RankedVehicle, ReviewRecord, VehicleRecord
from ..ports.catalog_port import CatalogPort

logger = logging.getLogger(__name__)


def _recency(review: ReviewRecord) -> date:
    return review.publish_date or date.min


def _most_recent(reviews: list[ReviewRecord]) -> ReviewRecord | None:
    # max() keeps the first of equal dates, matching the review file order
    return max(reviews, key=_recency) if reviews else None


def select_best_review(
    vehicle: VehicleRecord, reviews: list[ReviewRecord]
) -> ReviewRecord | None:
    """Pick the review that best describes this exact variant.

    Order of preference:
    1. Largest overlap between the review's and the vehicle's trim keywords
       (ties broken by most recent).
    2. Most recent review without trim keywords (a model-wide review).
    3. Most recent review overall.
    """
    if not reviews:
        return None

    vehicle_keywords = vehicle.trim_keywords
    if vehicle_keywords:
        overlaps = [(len(review.trim_keywords & vehicle_keywords), review) for review in reviews]
        best_overlap = max(overlap for overlap, _ in overlaps)
        if best_overlap > 0:
            return _most_recent([review for overlap, review in overlaps if overlap == best_overlap])

    general = [review for review in reviews if not review.trim_keywords]
    return _most_recent(general) or _most_recent(reviews)


class ResultHydrator:
    def __init__(self, catalog: CatalogPort) -> None:
        self.catalog = catalog

    def hydrate(self, ranking: PopularityRanking) -> list[HydratedVehicle]:
        """Build display records in ranking order.

        Metadata is paired with ids by position before unknown ids are
        dropped, so the survivors keep their own ranking metadata.
        """
        metadata: list[RankedVehicle | None] = list(ranking.metadata)
        metadata += [None] * (len(ranking.vehicle_ids) - len(metadata))

        results = []
        for vehicle_id, meta in zip(ranking.vehicle_ids, metadata):
            vehicle = self.catalog.get_by_id(vehicle_id)
            if vehicle is None:
                logger.warning("Vehicle %s not found, dropping from results", vehicle_id)
                continue
            results.append(self.to_display(vehicle, meta))

        logger.info("Hydrated %d of %d vehicles", len(results), len(ranking.vehicle_ids))
        return results

    def to_display(self, vehicle: VehicleRecord, meta: RankedVehicle | None = None) -> HydratedVehicle:
        review = select_best_review(vehicle, self.catalog.get_reviews_for(vehicle.make, vehicle.model))
        return HydratedVehicle(
            vehicle_id=vehicle.vehicle_id,
            make=vehicle.make,
            model=vehicle.model,
            variant=vehicle.variant,
            body_type=vehicle.body_type.value if vehicle.body_type else None,
            fuel_type=vehicle.fuel_type.value if vehicle.fuel_type else None,
            seats=vehicle.seats,
            price=vehicle.price or 0.0,
            year=vehicle.year,
            has_review=review is not None,
            review_rating=review.rating if review else None,
            review_url=review.url if review else None,
            match_confidence=meta.match_confidence if meta else 0,
            reasoning=meta.reasoning if meta else "",
            sales_volume=meta.sales_volume if meta else 0,
        )
