"""Value objects flowing through the recommendation pipeline."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .vehicle import BodyType, FeatureKey, FuelType, ReviewRating, SpecificationChunk, UseCase


@dataclass(frozen=True)
class BudgetRange:
    """Inclusive price bounds. A missing bound is open."""

    minimum: float | None = None
    maximum: float | None = None

    @property
    def is_bounded(self) -> bool:
        return self.minimum is not None or self.maximum is not None

    def contains(self, price: float) -> bool:
        low = self.minimum if self.minimum is not None else -math.inf
        high = self.maximum if self.maximum is not None else math.inf
        return low <= price <= high


@dataclass(frozen=True)
class SearchCriteria:
    """Buyer requirements for one request.

    Structured fields drive the catalog filter; ``requirements`` is the
    free text sent to semantic search and the requirement analyzer.
    """

    budget: BudgetRange = field(default_factory=BudgetRange)
    use_cases: frozenset[UseCase] = frozenset()
    body_types: frozenset[BodyType] = frozenset()
    fuel_types: frozenset[FuelType] = frozenset()
    features: frozenset[FeatureKey] = frozenset()
    requirements: tuple[str, ...] = ()


@dataclass
class FilterResult:
    """Output of the structured filter, in catalog order."""

    vehicle_ids: list[str]

    @property
    def match_count(self) -> int:
        return len(self.vehicle_ids)


@dataclass
class VehicleMatch:
    """One deduplicated vehicle returned by embedding search."""

    vehicle_id: str
    make: str
    model: str
    identity_content: str
    avg_similarity: float
    max_similarity: float
    chunks: list[SpecificationChunk]

    @property
    def relevant_chunk_count(self) -> int:
        return len(self.chunks)


@dataclass
class RankedVehicle:
    """A vehicle that survived requirement analysis.

    ``sales_volume`` and ``relevance_rank`` (1-based position in the
    analyzer output) are filled in by the popularity ranker.
    """

    vehicle_id: str
    match_confidence: int
    reasoning: str = ""
    sales_volume: int = 0
    relevance_rank: int = 0


@dataclass
class AnalysisResult:
    """Requirement analyzer output, best match first."""

    ranked_vehicles: list[RankedVehicle] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.ranked_vehicles


@dataclass
class PopularityRanking:
    """Final short-list order with index-aligned ranking metadata."""

    vehicle_ids: list[str] = field(default_factory=list)
    metadata: list[RankedVehicle] = field(default_factory=list)


@dataclass
class HydratedVehicle:
    """A display-ready vehicle with its review and ranking metadata."""

    vehicle_id: str
    make: str
    model: str
    variant: str
    body_type: str | None
    fuel_type: str | None
    seats: int
    price: float
    year: int | None
    has_review: bool = False
    review_rating: ReviewRating | None = None
    review_url: str | None = None
    match_confidence: int = 0
    reasoning: str = ""
    sales_volume: int = 0


class EmptyStage(Enum):
    """Pipeline stage at which a request ran out of candidates."""

    STRUCTURED_FILTER = "structured_filter"
    EMBEDDING_SEARCH = "embedding_search"
    REQUIREMENT_ANALYZER = "requirement_analyzer"
    POPULARITY_RANKER = "popularity_ranker"
    RESULT_HYDRATOR = "result_hydrator"


@dataclass
class PipelineMetadata:
    search_time_ms: int = 0
    input_vehicles: int = 0
    found_vehicles: int = 0
    qualified_vehicles: int = 0
    returned_vehicles: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "searchTime": f"{self.search_time_ms}ms",
            "inputVehicles": self.input_vehicles,
            "foundVehicles": self.found_vehicles,
            "qualifiedVehicles": self.qualified_vehicles,
            "returnedVehicles": self.returned_vehicles,
        }


@dataclass
class RecommendationResult:
    """Outcome of one pipeline run.

    ``success`` is False when no vehicle survived; ``message`` then explains
    why and ``empty_stage`` names the stage that emptied the funnel.
    """

    success: bool
    vehicles: list[HydratedVehicle] = field(default_factory=list)
    message: str = ""
    empty_stage: EmptyStage | None = None
    metadata: PipelineMetadata = field(default_factory=PipelineMetadata)
