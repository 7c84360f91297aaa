"""Structured catalog filter: the first, deterministic stage of the funnel."""

import logging
from collections import Counter
from typing import Any

from ..domain import FilterResult, SearchCriteria, UseCase, UseCaseGroup, VehicleRecord
from ..ports.catalog_port import CatalogPort

logger = logging.getLogger(__name__)

# (label, lower bound inclusive, upper bound exclusive)
PRICE_BANDS: list[tuple[str, float, float]] = [
    ("under30k", 0, 30_000),
    ("30k-50k", 30_000, 50_000),
    ("50k-70k", 50_000, 70_000),
    ("70k-100k", 70_000, 100_000),
    ("over100k", 100_000, float("inf")),
]


def _matches_use_cases(vehicle: VehicleRecord, required: frozenset[UseCase]) -> bool:
    """Grouped tags need any one member present; strict tags need all."""
    groups: dict[UseCaseGroup, set[UseCase]] = {}
    for use_case in required:
        groups.setdefault(use_case.group, set()).add(use_case)

    for group, members in groups.items():
        if group is UseCaseGroup.STRICT:
            if not members <= vehicle.use_cases:
                return False
        elif not members & vehicle.use_cases:
            return False
    return True


def matches_criteria(vehicle: VehicleRecord, criteria: SearchCriteria) -> bool:
    """True when ``vehicle`` passes every constraint in ``criteria``."""
    if not vehicle.has_valid_price or vehicle.price is None:
        return False
    if not criteria.budget.contains(vehicle.price):
        return False
    if criteria.use_cases and not _matches_use_cases(vehicle, criteria.use_cases):
        return False
    if criteria.body_types and vehicle.body_type not in criteria.body_types:
        return False
    if criteria.fuel_types and vehicle.fuel_type not in criteria.fuel_types:
        return False
    return all(vehicle.has_feature(feature) for feature in criteria.features)


def filter_vehicle_ids(vehicles: list[VehicleRecord], criteria: SearchCriteria) -> list[str]:
    """Ids of the vehicles matching ``criteria``, in catalog order."""
    return [vehicle.vehicle_id for vehicle in vehicles if matches_criteria(vehicle, criteria)]


def _format_thousands(amount: float) -> str:
    return f"${round(amount / 1000)}k"


def _describe_budget(criteria: SearchCriteria) -> str:
    low, high = criteria.budget.minimum, criteria.budget.maximum
    if low and high is not None:
        return f"{_format_thousands(low)}-{_format_thousands(high)}"
    if high is not None:
        return f"under {_format_thousands(high)}"
    if low:
        return f"over {_format_thousands(low)}"
    return "any"


def catalog_statistics(vehicles: list[VehicleRecord]) -> dict[str, Any]:
    """Body type, fuel type and price band composition of ``vehicles``."""
    body_types = Counter(v.body_type.value if v.body_type else "unknown" for v in vehicles)
    fuel_types = Counter(v.fuel_type.value if v.fuel_type else "unknown" for v in vehicles)
    price_ranges = {label: 0 for label, _, _ in PRICE_BANDS}
    for vehicle in vehicles:
        if vehicle.price is None:
            continue
        for label, low, high in PRICE_BANDS:
            if low <= vehicle.price < high:
                price_ranges[label] += 1
                break

    return {
        "total_vehicles": len(vehicles),
        "priced_vehicles": sum(1 for v in vehicles if v.has_valid_price),
        "body_types": dict(body_types),
        "fuel_types": dict(fuel_types),
        "price_ranges": price_ranges,
    }


class StructuredFilter:
    """Applies budget, use case, body, fuel and feature constraints to the catalog."""

    def __init__(self, catalog: CatalogPort) -> None:
        self.catalog = catalog

    def apply(self, criteria: SearchCriteria) -> FilterResult:
        vehicles = self.catalog.get_all()
        vehicle_ids = filter_vehicle_ids(vehicles, criteria)
        logger.info(
            "Structured filter: %d of %d vehicles match", len(vehicle_ids), len(vehicles)
        )
        return FilterResult(vehicle_ids=vehicle_ids)

    def describe_no_matches(self, criteria: SearchCriteria) -> str:
        """Explain an empty filter result and suggest what to relax."""
        parts = []
        if criteria.body_types:
            parts.append(" or ".join(sorted(b.value.replace("_", " ") for b in criteria.body_types)))
        else:
            parts.append("vehicles")
        if criteria.fuel_types:
            fuels = " or ".join(sorted(f.value.replace("_", " ") for f in criteria.fuel_types))
            parts.append(f"with {fuels} fuel")
        parts.append(f"{_describe_budget(criteria)} budget")
        if criteria.use_cases:
            uses = ", ".join(sorted(u.value.lower().replace("_", " ") for u in criteria.use_cases))
            parts.append(f"for {uses}")
        if criteria.features:
            features = ", ".join(
                sorted(f.value.removeprefix("has_").replace("_", " ") for f in criteria.features)
            )
            parts.append(f"with {features}")

        suggestions = ["Budget range (expand your price range)"]
        if criteria.body_types:
            suggestions.append("Body type (consider similar options like wagon instead of SUV)")
        if criteria.fuel_types:
            suggestions.append("Fuel type (add more fuel options)")
        if criteria.use_cases:
            suggestions.append("Use cases (reduce specific requirements)")
        if criteria.features:
            suggestions.append("Features (drop the nice-to-haves)")

        bullet_list = "\n".join(f"- {item}" for item in suggestions)
        return (
            f"Sorry, no vehicles matched: {', '.join(parts)}.\n\n"
            f"Try adjusting:\n{bullet_list}"
        )

    def statistics(self) -> dict[str, Any]:
        return catalog_statistics(self.catalog.get_all())
