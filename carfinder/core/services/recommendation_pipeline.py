"""The five-stage candidate narrowing pipeline."""

import logging
import time

from ..domain import (
    EmptyStage,
    PipelineMetadata,
    RecommendationResult,
    SearchCriteria,
)
from .embedding_search import EmbeddingSearchService
from .popularity_ranker import PopularityRanker
from .requirement_analyzer import RequirementAnalyzer
from .result_hydrator import ResultHydrator
from .structured_filter import StructuredFilter

logger = logging.getLogger(__name__)

ANALYSIS_CANDIDATE_LIMIT = 30

EMPTY_MESSAGES = {
    EmptyStage.EMBEDDING_SEARCH: (
        "None of the candidate vehicles were a close enough match for your requirements. "
        "Try describing what you need differently."
    ),
    EmptyStage.REQUIREMENT_ANALYZER: (
        "No vehicles meet all of your requirements. "
        "Try relaxing a hard constraint such as size, brand or towing capacity."
    ),
    EmptyStage.POPULARITY_RANKER: "No vehicles were left to rank.",
    EmptyStage.RESULT_HYDRATOR: "The matching vehicles are no longer in the catalog.",
}


class RecommendationPipeline:
    """Structured filter -> embedding search -> analysis -> popularity -> hydration.

    Stages run strictly in order within a request. Any stage returning
    nothing ends the run with ``success=False`` and an explanation; that is
    an expected outcome, not an error. Collaborator failures propagate.
    """

    def __init__(
        self,
        structured_filter: StructuredFilter,
        embedding_search: EmbeddingSearchService,
        analyzer: RequirementAnalyzer,
        ranker: PopularityRanker,
        hydrator: ResultHydrator,
        analysis_candidate_limit: int = ANALYSIS_CANDIDATE_LIMIT,
    ) -> None:
        self.structured_filter = structured_filter
        self.embedding_search = embedding_search
        self.analyzer = analyzer
        self.ranker = ranker
        self.hydrator = hydrator
        self.analysis_candidate_limit = analysis_candidate_limit

    def recommend(self, criteria: SearchCriteria) -> RecommendationResult:
        """Run the full funnel from structured criteria."""
        started = time.perf_counter()
        filtered = self.structured_filter.apply(criteria)
        if not filtered.vehicle_ids:
            return RecommendationResult(
                success=False,
                message=self.structured_filter.describe_no_matches(criteria),
                empty_stage=EmptyStage.STRUCTURED_FILTER,
                metadata=PipelineMetadata(search_time_ms=_elapsed_ms(started)),
            )
        return self.run(list(criteria.requirements), filtered.vehicle_ids, started=started)

    def run(
        self,
        requirements: list[str],
        candidate_ids: list[str],
        started: float | None = None,
    ) -> RecommendationResult:
        """Run stages 2 to 5 over an already-filtered candidate id list."""
        started = started if started is not None else time.perf_counter()
        metadata = PipelineMetadata(input_vehicles=len(candidate_ids))

        matches = self.embedding_search.search(
            requirements, candidate_ids, limit=self.analysis_candidate_limit
        )
        metadata.found_vehicles = len(matches)
        if not matches:
            return self._empty(EmptyStage.EMBEDDING_SEARCH, metadata, started)

        analysis = self.analyzer.analyze(matches, requirements)
        metadata.qualified_vehicles = len(analysis.ranked_vehicles)
        if analysis.is_empty:
            return self._empty(EmptyStage.REQUIREMENT_ANALYZER, metadata, started)

        ranking = self.ranker.rank(analysis)
        if not ranking.vehicle_ids:
            return self._empty(EmptyStage.POPULARITY_RANKER, metadata, started)

        vehicles = self.hydrator.hydrate(ranking)
        metadata.returned_vehicles = len(vehicles)
        if not vehicles:
            return self._empty(EmptyStage.RESULT_HYDRATOR, metadata, started)

        metadata.search_time_ms = _elapsed_ms(started)
        logger.info(
            "Pipeline: %d input -> %d found -> %d qualified -> %d returned in %dms",
            metadata.input_vehicles,
            metadata.found_vehicles,
            metadata.qualified_vehicles,
            metadata.returned_vehicles,
            metadata.search_time_ms,
        )
        return RecommendationResult(success=True, vehicles=vehicles, metadata=metadata)

    def _empty(
        self, stage: EmptyStage, metadata: PipelineMetadata, started: float
    ) -> RecommendationResult:
        metadata.search_time_ms = _elapsed_ms(started)
        logger.info("Pipeline ended empty at %s after %dms", stage.value, metadata.search_time_ms)
        return RecommendationResult(
            success=False,
            message=EMPTY_MESSAGES[stage],
            empty_stage=stage,
            metadata=metadata,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
