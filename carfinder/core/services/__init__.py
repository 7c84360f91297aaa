"""Core services: the recommendation pipeline stages and supporting services."""

from .chunk_indexer import ChunkIndexer
from .conversation_service import ConversationService
from .criteria_converter import CriteriaConverter, WizardSelections
from .embedding_search import EmbeddingSearchService
from .popularity_ranker import PopularityRanker
from .recommendation_pipeline import RecommendationPipeline
from .requirement_analyzer import RequirementAnalyzer
from .result_hydrator import ResultHydrator, select_best_review
from .structured_filter import StructuredFilter, catalog_statistics, filter_vehicle_ids

__all__ = [
    "ChunkIndexer",
    "ConversationService",
    "CriteriaConverter",
    "WizardSelections",
    "EmbeddingSearchService",
    "PopularityRanker",
    "RecommendationPipeline",
    "RequirementAnalyzer",
    "ResultHydrator",
    "select_best_review",
    "StructuredFilter",
    "catalog_statistics",
    "filter_vehicle_ids",
]
