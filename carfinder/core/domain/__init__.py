"""Domain models for carfinder.

- vehicle: catalog records, specification chunks, reviews and tag enums
- search: value objects passed between pipeline stages
- conversation: chat messages and assistant replies

All models are re-exported here:

    from carfinder.core.domain import VehicleRecord, SearchCriteria
"""

from .conversation import ChatMessage, ConversationReply, CriteriaSummary, ReplyType
from .search import (
    AnalysisResult,
    BudgetRange,
    EmptyStage,
    FilterResult,
    HydratedVehicle,
    PipelineMetadata,
    PopularityRanking,
    RankedVehicle,
    RecommendationResult,
    SearchCriteria,
    VehicleMatch,
)
from .vehicle import (
    IDENTITY_CATEGORY,
    BodyType,
    FeatureKey,
    FuelType,
    ReviewRating,
    ReviewRecord,
    SpecificationChunk,
    UseCase,
    UseCaseGroup,
    VehicleRecord,
)

__all__ = [
    # Catalog models
    "IDENTITY_CATEGORY",
    "BodyType",
    "FuelType",
    "UseCase",
    "UseCaseGroup",
    "FeatureKey",
    "ReviewRating",
    "SpecificationChunk",
    "VehicleRecord",
    "ReviewRecord",
    # Pipeline models
    "BudgetRange",
    "SearchCriteria",
    "FilterResult",
    "VehicleMatch",
    "RankedVehicle",
    "AnalysisResult",
    "PopularityRanking",
    "HydratedVehicle",
    "EmptyStage",
    "PipelineMetadata",
    "RecommendationResult",
    # Conversation models
    "ChatMessage",
    "CriteriaSummary",
    "ReplyType",
    "ConversationReply",
]
