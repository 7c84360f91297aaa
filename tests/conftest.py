"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path

import pytest

from carfinder.core.domain import (
    IDENTITY_CATEGORY,
    BodyType,
    FuelType,
    ReviewRecord,
    SpecificationChunk,
    UseCase,
    VehicleMatch,
    VehicleRecord,
)
from carfinder.core.ports import CatalogPort, SalesLookupPort

DATA_DIR = Path(__file__).parent.parent / "data"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP surface with fakes)")
    config.addinivalue_line("markers", "slow: Slow tests (network, large data)")


class InMemoryCatalog(CatalogPort):
    """Catalog over a fixed list of records."""

    def __init__(self, vehicles: list[VehicleRecord], reviews: list[ReviewRecord] | None = None):
        self.vehicles = list(vehicles)
        self.reviews = list(reviews or [])

    def load(self) -> list[VehicleRecord]:
        return self.vehicles

    def get_all(self) -> list[VehicleRecord]:
        return self.vehicles

    def get_by_id(self, vehicle_id: str) -> VehicleRecord | None:
        return next((v for v in self.vehicles if v.vehicle_id == vehicle_id), None)

    def get_reviews_for(self, make: str, model: str) -> list[ReviewRecord]:
        return [
            r
            for r in self.reviews
            if r.make.upper() == make.upper() and r.model.upper() == model.upper()
        ]


class InMemorySalesLookup(SalesLookupPort):
    def __init__(self, volumes: dict[str, int]):
        self.volumes = volumes

    def load(self) -> dict[str, int]:
        return self.volumes

    def volume_for(self, key: str | None) -> int:
        return self.volumes.get(key, 0) if key else 0


def make_vehicle(
    vehicle_id: str,
    make: str = "Toyota",
    model: str = "RAV4",
    price: float | None = 40_000,
    body_type: BodyType | None = BodyType.SUV,
    fuel_type: FuelType | None = FuelType.PETROL,
    **kwargs,
) -> VehicleRecord:
    return VehicleRecord(
        vehicle_id=vehicle_id,
        make=make,
        model=model,
        price=price,
        body_type=body_type,
        fuel_type=fuel_type,
        **kwargs,
    )


def make_chunk(
    vehicle_id: str,
    similarity: float | None,
    category: str = "feature_comfort",
    content: str = "Quiet cabin",
) -> SpecificationChunk:
    return SpecificationChunk(
        vehicle_id=vehicle_id, category=category, content=content, similarity=similarity
    )


def make_identity(vehicle_id: str, make: str, model: str, similarity: float = 0.2):
    return SpecificationChunk(
        vehicle_id=vehicle_id,
        category=IDENTITY_CATEGORY,
        content=f"{make}, {model}, Base, 2024, suv, petrol",
        similarity=similarity,
    )


def make_match(vehicle_id: str, make: str = "Toyota", model: str = "RAV4") -> VehicleMatch:
    return VehicleMatch(
        vehicle_id=vehicle_id,
        make=make,
        model=model,
        identity_content=f"{make}, {model}, Base, 2024, suv, petrol",
        avg_similarity=0.5,
        max_similarity=0.6,
        chunks=[make_chunk(vehicle_id, 0.6)],
    )


@pytest.fixture
def sample_vehicles() -> list[VehicleRecord]:
    """A small mixed catalog."""
    return [
        make_vehicle(
            "rav4-gx",
            "Toyota",
            "RAV4",
            price=39_500,
            fuel_type=FuelType.HYBRID,
            variant="GX 2WD Hybrid",
            seating_description="Five seats",
            use_cases=frozenset({UseCase.FAMILY_LIFE_5SEAT, UseCase.FUEL_EFFICIENT}),
            features={"has_carplay": True},
        ),
        make_vehicle(
            "sorento-sport",
            "Kia",
            "Sorento",
            price=52_890,
            fuel_type=FuelType.DIESEL,
            variant="Sport AWD",
            seating_description="Seven seats",
            use_cases=frozenset({UseCase.FAMILY_LIFE_6PLUS, UseCase.TOWING_LIGHT}),
            features={"has_carplay": True, "has_awd": True},
        ),
        make_vehicle(
            "ranger-xlt",
            "Ford",
            "Ranger",
            price=64_930,
            body_type=BodyType.UTE,
            fuel_type=FuelType.DIESEL,
            use_cases=frozenset({UseCase.TOWING_HEAVY, UseCase.OFFROAD_HEAVY}),
        ),
        make_vehicle(
            "i30-active",
            "Hyundai",
            "i30",
            price=26_420,
            body_type=BodyType.HATCHBACK,
            use_cases=frozenset({UseCase.CITY_DRIVING}),
        ),
        make_vehicle("carnival-s", "Kia", "Carnival", price=None, body_type=BodyType.PEOPLE_MOVER),
    ]


@pytest.fixture
def catalog(sample_vehicles) -> InMemoryCatalog:
    return InMemoryCatalog(sample_vehicles)


@pytest.fixture
def sales_lookup() -> InMemorySalesLookup:
    volumes = {"toyota_rav4": 58_856, "kia_sorento": 11_954, "ford_ranger": 62_593}
    return InMemorySalesLookup(volumes)


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Copy of the bundled sample data in a temporary directory."""
    for name in ("vehicles-part1.json", "vehicles-part2.json", "reviews.json", "sales-lookup.json"):
        content = json.loads((DATA_DIR / name).read_text(encoding="utf-8"))
        (tmp_path / name).write_text(json.dumps(content), encoding="utf-8")
    return tmp_path
