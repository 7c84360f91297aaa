"""Recommendation endpoints: vector search, full pipeline and filter-only."""

import logging

from fastapi import APIRouter, Depends

from .....core.domain import SearchCriteria
from .....core.domain.exceptions import (
    EmptyCandidateListError,
    EmptyRequirementsError,
    ValidationError,
)
from .....core.services import CriteriaConverter, RecommendationPipeline, StructuredFilter
from ..deps import get_converter, get_pipeline, get_structured_filter
from ..models import CriteriaRequest, FilterResponse, RecommendationResponse, VectorSearchRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["recommend"])


def _to_criteria(request: CriteriaRequest, converter: CriteriaConverter) -> SearchCriteria:
    if request.wizard is not None:
        return converter.from_wizard(request.wizard.to_selections())
    if request.criteria is not None:
        return converter.from_summary(request.criteria.to_summary())
    raise ValidationError("Request must include either 'criteria' or 'wizard'")


@router.post(
    "/vector-search",
    response_model=RecommendationResponse,
    response_model_exclude_none=True,
)
def vector_search(
    request: VectorSearchRequest,
    pipeline: RecommendationPipeline = Depends(get_pipeline),
) -> RecommendationResponse:
    """Semantic search, LLM ranking, popularity ordering and hydration.

    The candidate list is the output of the structured filter, run by the
    caller. A run that ends empty is a normal response with
    ``success: false``, not an error status.

    Raises:
        EmptyRequirementsError: No free-text requirements were given.
        EmptyCandidateListError: ``candidateVehicleIds`` is missing or empty.
    """
    requirements = request.requirement_list()
    if not requirements:
        raise EmptyRequirementsError("freeTextRequirements must be a non-empty string or list")
    if not request.candidate_vehicle_ids:
        raise EmptyCandidateListError("candidateVehicleIds must be a non-empty array")

    logger.info(
        "Vector search request: %d candidates, requirements=%r",
        len(request.candidate_vehicle_ids),
        requirements,
    )
    result = pipeline.run(requirements, request.candidate_vehicle_ids)
    return RecommendationResponse.from_domain(result)


@router.post(
    "/recommend",
    response_model=RecommendationResponse,
    response_model_exclude_none=True,
)
def recommend(
    request: CriteriaRequest,
    pipeline: RecommendationPipeline = Depends(get_pipeline),
    converter: CriteriaConverter = Depends(get_converter),
) -> RecommendationResponse:
    """Full pipeline from structured or natural-language criteria."""
    criteria = _to_criteria(request, converter)
    result = pipeline.recommend(criteria)
    return RecommendationResponse.from_domain(result)


@router.post("/filter", response_model=FilterResponse)
def filter_vehicles(
    request: CriteriaRequest,
    structured_filter: StructuredFilter = Depends(get_structured_filter),
    converter: CriteriaConverter = Depends(get_converter),
) -> FilterResponse:
    """Structured filter only; used by the wizard to show a live match count."""
    criteria = _to_criteria(request, converter)
    result = structured_filter.apply(criteria)
    if result.vehicle_ids:
        message = f"{result.match_count} vehicles match your criteria"
    else:
        message = structured_filter.describe_no_matches(criteria)
    return FilterResponse(
        match_count=result.match_count,
        vehicle_ids=result.vehicle_ids,
        message=message,
    )
