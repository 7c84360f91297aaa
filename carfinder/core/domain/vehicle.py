"""Catalog models: vehicles, their specification chunks and reviews."""

import math
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum

from .utils import extract_seat_count, trim_keywords as tokenize_trim

IDENTITY_CATEGORY = "feature_vehicle_identity"


class BodyType(str, Enum):
    """Body style tag on a catalog record."""

    SUV = "suv"
    UTE = "ute"
    PEOPLE_MOVER = "people_mover"
    WAGON = "wagon"
    HATCHBACK = "hatchback"
    SEDAN = "sedan"
    VAN = "van"
    COUPE = "coupe"
    LIGHT_TRUCK = "light_truck"
    CONVERTIBLE = "convertible"


class FuelType(str, Enum):
    """Fuel type tag on a catalog record."""

    PETROL = "petrol"
    DIESEL = "diesel"
    HYBRID = "hybrid"
    PLUG_IN_HYBRID = "plug_in_hybrid"
    ELECTRIC = "electric"


class UseCaseGroup(Enum):
    """How a use-case tag combines with other required tags.

    Tags inside FAMILY, TOWING or OFFROAD are alternatives of each other
    (any one satisfies the group). STRICT tags must all be present.
    """

    FAMILY = "family"
    TOWING = "towing"
    OFFROAD = "offroad"
    STRICT = "strict"


class UseCase(str, Enum):
    """Use-case tag assigned to catalog records."""

    FAMILY_LIFE_5SEAT = "FAMILY_LIFE_5SEAT"
    FAMILY_LIFE_6PLUS = "FAMILY_LIFE_6PLUS"
    TOWING_LIGHT = "TOWING_LIGHT"
    TOWING_HEAVY = "TOWING_HEAVY"
    OFFROAD_LIGHT = "OFFROAD_LIGHT"
    OFFROAD_HEAVY = "OFFROAD_HEAVY"
    CITY_DRIVING = "CITY_DRIVING"
    LONG_TRIPS = "LONG_TRIPS"
    FUEL_EFFICIENT = "FUEL_EFFICIENT"
    CARRYING_GEAR = "CARRYING_GEAR"
    WORKHORSE = "WORKHORSE"
    LUXURY = "LUXURY"
    FUN_PERFORMANCE = "FUN_PERFORMANCE"
    UTE_LIFESTYLE = "UTE_LIFESTYLE"
    UTE_CHASSIS = "UTE_CHASSIS"

    @property
    def group(self) -> UseCaseGroup:
        return _USE_CASE_GROUPS.get(self, UseCaseGroup.STRICT)


_USE_CASE_GROUPS = {
    UseCase.FAMILY_LIFE_5SEAT: UseCaseGroup.FAMILY,
    UseCase.FAMILY_LIFE_6PLUS: UseCaseGroup.FAMILY,
    UseCase.TOWING_LIGHT: UseCaseGroup.TOWING,
    UseCase.TOWING_HEAVY: UseCaseGroup.TOWING,
    UseCase.OFFROAD_LIGHT: UseCaseGroup.OFFROAD,
    UseCase.OFFROAD_HEAVY: UseCaseGroup.OFFROAD,
}


class FeatureKey(str, Enum):
    """Boolean equipment flag stored in a record's feature map."""

    CARPLAY = "has_carplay"
    ANDROID_AUTO = "has_android_auto"
    ADAPTIVE_CRUISE = "has_adaptive_cruise"
    CAMERA_360 = "has_360_camera"
    WIRELESS_CHARGING = "has_wireless_charging"
    HEATED_SEATS = "has_heated_seats"
    SUNROOF = "has_sunroof"
    POWERED_TAILGATE = "has_powered_tailgate"
    AWD = "has_awd"
    SPARE_WHEEL = "has_spare_wheel"


class ReviewRating(str, Enum):
    """Categorical verdict attached to a third-party review."""

    EXCELLENT = "excellent"
    VERY_GOOD = "very_good"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


@dataclass
class SpecificationChunk:
    """A categorized piece of a vehicle's specification text.

    ``similarity`` is only set on chunks returned by a similarity query
    and is cosine-derived, in [0, 1].
    """

    vehicle_id: str
    category: str
    content: str
    similarity: float | None = None
    chunk_id: str | None = None

    @property
    def is_identity(self) -> bool:
        return self.category == IDENTITY_CATEGORY


@dataclass(frozen=True)
class VehicleRecord:
    """One catalog entry. Loaded once and never mutated."""

    vehicle_id: str
    make: str
    model: str
    variant: str = ""
    body_type: BodyType | None = None
    fuel_type: FuelType | None = None
    seating_description: str = ""
    price: float | None = None
    year: int | None = None
    features: dict[str, bool] = field(default_factory=dict, hash=False, compare=False)
    use_cases: frozenset[UseCase] = frozenset()
    chunks: tuple[SpecificationChunk, ...] = field(default=(), hash=False, compare=False)

    @property
    def has_valid_price(self) -> bool:
        return self.price is not None and math.isfinite(self.price) and self.price > 0

    @property
    def seats(self) -> int:
        return extract_seat_count(self.seating_description)

    @property
    def trim_keywords(self) -> frozenset[str]:
        return tokenize_trim(self.variant)

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.make, self.model, self.variant) if part)

    def has_feature(self, key: FeatureKey) -> bool:
        return self.features.get(key.value) is True

    def identity_content(self) -> str:
        """Identity chunk text: comma separated, make and model first."""
        fields = [
            self.make,
            self.model,
            self.variant or "-",
            str(self.year) if self.year else "-",
            self.body_type.value if self.body_type else "-",
            self.fuel_type.value if self.fuel_type else "-",
        ]
        return ", ".join(fields)

    def specification_chunks(self) -> list[SpecificationChunk]:
        """Chunks to index for this vehicle, always including an identity chunk."""
        chunks = list(self.chunks)
        if not any(chunk.is_identity for chunk in chunks):
            chunks.insert(
                0,
                SpecificationChunk(
                    vehicle_id=self.vehicle_id,
                    category=IDENTITY_CATEGORY,
                    content=self.identity_content(),
                ),
            )
        return [
            chunk
            if chunk.chunk_id
            else replace(chunk, chunk_id=f"{self.vehicle_id}:{chunk.category}:{index}")
            for index, chunk in enumerate(chunks)
        ]


@dataclass(frozen=True)
class ReviewRecord:
    """A third-party review, matched to vehicles by make and model."""

    make: str
    model: str
    url: str | None = None
    rating: ReviewRating | None = None
    publish_date: date | None = None
    trim_keywords: frozenset[str] = frozenset()
