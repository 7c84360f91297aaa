"""Pydantic models for API requests and responses.

Payloads are camelCase on the wire; fields are snake_case in Python.
"""

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ....core.domain import CriteriaSummary, HydratedVehicle, RecommendationResult
from ....core.services import WizardSelections


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VectorSearchRequest(ApiModel):
    """Stages 2 to 5 over an already-filtered candidate list."""

    free_text_requirements: str | list[str] | None = Field(
        None,
        validation_alias=AliasChoices("freeTextRequirements", "vectorRequirements"),
        description="What the buyer wants, as one string or a list of phrases",
        json_schema_extra={"example": "quiet cabin, good on fuel, room for a pram"},
    )
    candidate_vehicle_ids: list[str] | None = Field(
        None,
        validation_alias=AliasChoices("candidateVehicleIds", "vehicleIds"),
        description="Vehicle ids that passed the structured filter",
    )

    def requirement_list(self) -> list[str]:
        raw = self.free_text_requirements
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = [raw]
        return [item.strip() for item in raw if item and item.strip()]


class CriteriaModel(ApiModel):
    """Natural-language criteria, the same shape the assistant produces."""

    budget: str | None = Field(None, json_schema_extra={"example": "under 50k"})
    use_case: list[str] = Field(default_factory=list)
    body_type: list[str] = Field(default_factory=list)
    fuel_type: list[str] = Field(default_factory=list)
    vector_requirements: list[str] = Field(default_factory=list)

    def to_summary(self) -> CriteriaSummary:
        return CriteriaSummary(
            budget=self.budget,
            use_cases=self.use_case,
            body_types=self.body_type,
            fuel_types=self.fuel_type,
            requirements=self.vector_requirements,
        )

    @classmethod
    def from_summary(cls, summary: CriteriaSummary) -> "CriteriaModel":
        return cls(
            budget=summary.budget,
            use_case=summary.use_cases,
            body_type=summary.body_types,
            fuel_type=summary.fuel_types,
            vector_requirements=summary.requirements,
        )


class WizardModel(ApiModel):
    """Raw selections from the step-by-step wizard."""

    budget_bands: list[str] = Field(default_factory=list, json_schema_extra={"example": ["30k-50k"]})
    custom_min: float | None = None
    custom_max: float | None = None
    use_cases: list[str] = Field(default_factory=list)
    family_options: list[str] = Field(default_factory=list)
    towing_options: list[str] = Field(default_factory=list)
    offroad_options: list[str] = Field(default_factory=list)
    body_types: list[str] = Field(default_factory=list)
    fuel_types: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)

    def to_selections(self) -> WizardSelections:
        return WizardSelections(**self.model_dump())


class CriteriaRequest(ApiModel):
    """Structured criteria for ``/recommend`` and ``/filter``.

    Exactly one of ``criteria`` (free-text labels) or ``wizard`` (wizard ids)
    is expected; ``wizard`` wins when both are sent.
    """

    criteria: CriteriaModel | None = None
    wizard: WizardModel | None = None


class ConversationMessage(ApiModel):
    role: str = Field(..., description="user or assistant")
    content: str = Field("", description="Message text")


class ConversationRequest(ApiModel):
    conversation_history: list[ConversationMessage] = Field(default_factory=list)


class VehicleResult(ApiModel):
    """A display-ready vehicle with ranking metadata."""

    vehicle_id: str
    make: str
    model: str
    variant: str
    body_type: str | None = None
    fuel_type: str | None = None
    seats: int
    price: float
    year: int | None = None
    has_review: bool = False
    review_rating: str | None = None
    review_url: str | None = None
    match_confidence: int = 0
    reasoning: str = ""
    sales_volume: int = 0

    @classmethod
    def from_domain(cls, vehicle: HydratedVehicle) -> "VehicleResult":
        return cls(
            vehicle_id=vehicle.vehicle_id,
            make=vehicle.make,
            model=vehicle.model,
            variant=vehicle.variant,
            body_type=vehicle.body_type,
            fuel_type=vehicle.fuel_type,
            seats=vehicle.seats,
            price=vehicle.price,
            year=vehicle.year,
            has_review=vehicle.has_review,
            review_rating=vehicle.review_rating.value if vehicle.review_rating else None,
            review_url=vehicle.review_url,
            match_confidence=vehicle.match_confidence,
            reasoning=vehicle.reasoning,
            sales_volume=vehicle.sales_volume,
        )


class RecommendationResponse(ApiModel):
    """Pipeline outcome. ``error`` is set only when ``success`` is false."""

    success: bool
    results: list[VehicleResult] = Field(default_factory=list)
    error: str | None = None
    empty_stage: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, result: RecommendationResult) -> "RecommendationResponse":
        return cls(
            success=result.success,
            results=[VehicleResult.from_domain(vehicle) for vehicle in result.vehicles],
            error=None if result.success else result.message,
            empty_stage=result.empty_stage.value if result.empty_stage else None,
            metadata=result.metadata.to_dict(),
        )


class FilterResponse(ApiModel):
    match_count: int
    vehicle_ids: list[str]
    message: str


class ConversationResponse(ApiModel):
    success: bool = True
    type: Literal["conversation", "search"]
    message: str
    criteria: CriteriaModel | None = None


class HealthResponse(ApiModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    catalog_vehicles: int | None = Field(None, description="Loaded catalog size")
    vector_store: str = Field(..., description="Chunk store status")
