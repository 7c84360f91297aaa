"""Unit tests for the structured catalog filter."""

import pytest

from carfinder.core.domain import (
    BodyType,
    BudgetRange,
    FeatureKey,
    FuelType,
    SearchCriteria,
    UseCase,
)
from carfinder.core.services import StructuredFilter, filter_vehicle_ids
from tests.conftest import InMemoryCatalog, make_vehicle

pytestmark = pytest.mark.unit


def test_budget_body_and_fuel_scenario():
    """One petrol SUV inside the budget and one cheaper non-SUV: only the SUV matches."""
    catalog = InMemoryCatalog(
        [
            make_vehicle("suv-1", price=40_000, body_type=BodyType.SUV, fuel_type=FuelType.PETROL),
            make_vehicle("hatch-1", price=35_000, body_type=BodyType.HATCHBACK, fuel_type=FuelType.PETROL),
        ]
    )
    criteria = SearchCriteria(
        budget=BudgetRange(30_000, 50_000),
        body_types=frozenset({BodyType.SUV}),
        fuel_types=frozenset({FuelType.PETROL}),
    )

    result = StructuredFilter(catalog).apply(criteria)

    assert result.vehicle_ids == ["suv-1"]
    assert result.match_count == 1


@pytest.mark.parametrize("price", [None, 0, -1, float("inf"), float("nan")])
def test_invalid_price_never_matches(price):
    vehicles = [make_vehicle("v1", price=price)]
    assert filter_vehicle_ids(vehicles, SearchCriteria()) == []


def test_budget_bounds_are_inclusive():
    vehicles = [
        make_vehicle("low", price=30_000),
        make_vehicle("high", price=50_000),
        make_vehicle("over", price=50_001),
    ]
    criteria = SearchCriteria(budget=BudgetRange(30_000, 50_000))
    assert filter_vehicle_ids(vehicles, criteria) == ["low", "high"]


def test_open_budget_keeps_catalog_order(sample_vehicles):
    ids = filter_vehicle_ids(sample_vehicles, SearchCriteria())
    assert ids == ["rav4-gx", "sorento-sport", "ranger-xlt", "i30-active"]


def test_grouped_use_cases_are_alternatives(sample_vehicles):
    criteria = SearchCriteria(
        use_cases=frozenset({UseCase.FAMILY_LIFE_5SEAT, UseCase.FAMILY_LIFE_6PLUS})
    )
    assert filter_vehicle_ids(sample_vehicles, criteria) == ["rav4-gx", "sorento-sport"]


def test_groups_combine_with_and(sample_vehicles):
    criteria = SearchCriteria(
        use_cases=frozenset(
            {UseCase.TOWING_LIGHT, UseCase.TOWING_HEAVY, UseCase.FAMILY_LIFE_6PLUS}
        )
    )
    assert filter_vehicle_ids(sample_vehicles, criteria) == ["sorento-sport"]


def test_strict_use_cases_all_required(sample_vehicles):
    criteria = SearchCriteria(use_cases=frozenset({UseCase.FUEL_EFFICIENT, UseCase.CITY_DRIVING}))
    assert filter_vehicle_ids(sample_vehicles, criteria) == []

    criteria = SearchCriteria(use_cases=frozenset({UseCase.CITY_DRIVING}))
    assert filter_vehicle_ids(sample_vehicles, criteria) == ["i30-active"]


def test_features_must_all_be_true(sample_vehicles):
    criteria = SearchCriteria(features=frozenset({FeatureKey.CARPLAY, FeatureKey.AWD}))
    assert filter_vehicle_ids(sample_vehicles, criteria) == ["sorento-sport"]


def test_describe_no_matches_lists_constraints_and_suggestions():
    criteria = SearchCriteria(
        budget=BudgetRange(None, 20_000),
        body_types=frozenset({BodyType.UTE}),
        fuel_types=frozenset({FuelType.ELECTRIC}),
    )
    message = StructuredFilter(InMemoryCatalog([])).describe_no_matches(criteria)

    assert message.startswith("Sorry, no vehicles matched: ute, with electric fuel, under $20k budget.")
    assert "Try adjusting:" in message
    assert "- Budget range (expand your price range)" in message
    assert "- Fuel type (add more fuel options)" in message
    assert "Use cases" not in message


def test_statistics(catalog):
    stats = StructuredFilter(catalog).statistics()

    assert stats["total_vehicles"] == 5
    assert stats["priced_vehicles"] == 4
    assert stats["body_types"] == {"suv": 2, "ute": 1, "hatchback": 1, "people_mover": 1}
    assert stats["price_ranges"]["under30k"] == 1
    assert stats["price_ranges"]["30k-50k"] == 1
    assert stats["price_ranges"]["50k-70k"] == 2
    assert stats["price_ranges"]["over100k"] == 0
