"""LLM-backed elimination and scoring of embedding-search candidates."""

import logging
import math
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ...common.retry import call_with_retry
from ..domain import AnalysisResult, RankedVehicle, VehicleMatch
from ..domain.exceptions import LLMResponseParseError
from ..ports.llm_port import LLMPort
from .prompts import build_analysis_prompt
from .response_parsing import extract_json_object

logger = logging.getLogger(__name__)

MAX_RANKED_VEHICLES = 10
ANALYSIS_TEMPERATURE = 0.2
ANALYSIS_MAX_TOKENS = 4096

# Decimal points and thousands separators ("4.6m", "30,000") do not end a clause
_CLAUSE_SPLIT_RE = re.compile(r"[;\n]+|[.,](?!\d)|(?<!\d)[.,]")
_NEGATION_CUES = r"no|not|except|avoid|without|anything but|exclude|excluding|never|rather than"

# Makes that are also ordinary words
COMMON_WORD_MAKES = frozenset({"smart", "mini", "ram", "seat", "genesis", "alpine", "lotus"})
_BRAND_BEFORE_RE = re.compile(rf"\b(?:an?|the|brand|make|{_NEGATION_CUES})\s+$", re.IGNORECASE)
_BRAND_AFTER_RE = re.compile(r"\s*(?:brand|only|cars?|vehicles?)\b", re.IGNORECASE)


class RankingEntry(BaseModel):
    """One vehicle in the completion's ``rankedVehicles`` list."""

    model_config = ConfigDict(populate_by_name=True)

    vehicle_id: str = Field(alias="vehicleId")
    match_confidence: float = Field(alias="matchConfidence")
    reasoning: str = ""

    @field_validator("vehicle_id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(int(value))
        return value

    @field_validator("reasoning", mode="before")
    @classmethod
    def default_reasoning(cls, value: Any) -> Any:
        return "" if value is None else value


class RankingPayload(BaseModel):
    ranked_vehicles: list[dict[str, Any]] = Field(alias="rankedVehicles")


def clamp_confidence(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return max(0, min(100, round(value)))


def _make_pattern(makes: set[str]) -> str:
    ordered = sorted(makes, key=len, reverse=True)
    return "|".join(re.escape(make) for make in ordered)


def _is_brand_mention(clause: str, start: int, end: int, make: str) -> bool:
    """Whether a mention of ``make`` refers to the brand.

    Makes that double as everyday words ("Smart", "Mini") count only when
    capitalised and phrased as a brand, e.g. "a Smart" or "Mini brand".
    """
    if make.lower() not in COMMON_WORD_MAKES:
        return True
    if not clause[start].isupper():
        return False
    return bool(
        _BRAND_BEFORE_RE.search(clause[:start]) or _BRAND_AFTER_RE.match(clause[end:])
    )


def detect_brand_constraints(
    requirements: list[str], makes: set[str]
) -> tuple[set[str], set[str]]:
    """Find brands the buyer asked for and brands they ruled out.

    Only makes present among the candidates are considered. A make counts as
    excluded only when a negation cue governs it directly ("no Kia",
    "avoid a Kia or Hyundai", "anything but Kia"); a cue that belongs to some
    other constraint does not exclude a make mentioned later.

    Returns:
        (requested, excluded) as sets of lower-cased make names.
    """
    makes = {make for make in makes if make and make.strip()}
    if not makes:
        return set(), set()

    make_alt = _make_pattern(makes)
    mention_re = re.compile(rf"\b(?:{make_alt})\b", re.IGNORECASE)
    negated_run_re = re.compile(
        rf"\b(?:{_NEGATION_CUES})\s+(?:(?:an?|the|any)\s+)?"
        rf"((?:{make_alt})(?:\s*(?:/|\bor\b|\band\b|\bnor\b)\s*(?:(?:an?|the)\s+)?(?:{make_alt}))*)\b",
        re.IGNORECASE,
    )
    canonical = {make.lower(): make for make in makes}

    requested: set[str] = set()
    excluded: set[str] = set()
    text = " ".join(requirements)
    for clause in _CLAUSE_SPLIT_RE.split(text):
        negated_spans: list[tuple[int, int]] = []
        for run in negated_run_re.finditer(clause):
            negated_spans.append(run.span(1))
        for mention in mention_re.finditer(clause):
            name = mention.group(0).lower()
            if not _is_brand_mention(clause, mention.start(), mention.end(), canonical[name]):
                continue
            if any(lo <= mention.start() < hi for lo, hi in negated_spans):
                excluded.add(name)
            else:
                requested.add(name)
    return requested - excluded, excluded


class RequirementAnalyzer:
    """Asks the LLM to eliminate and score candidates, then sanitizes its answer."""

    def __init__(
        self,
        llm: LLMPort,
        max_ranked: int = MAX_RANKED_VEHICLES,
        max_retries: int = 0,
        enforce_brand_filter: bool = True,
    ) -> None:
        self.llm = llm
        self.max_ranked = max_ranked
        self.max_retries = max_retries
        self.enforce_brand_filter = enforce_brand_filter

    def analyze(self, matches: list[VehicleMatch], requirements: list[str]) -> AnalysisResult:
        """Rank ``matches`` against ``requirements``.

        An empty result means nothing qualified; it is not an error.

        Raises:
            LLMError: The completion call failed.
            LLMResponseParseError: The completion held no usable ranking.
        """
        if not matches:
            return AnalysisResult()

        prompt = build_analysis_prompt(matches, requirements, self.max_ranked)
        logger.info("Analyzing %d candidates against %d requirements", len(matches), len(requirements))
        completion = call_with_retry(
            lambda: self.llm.generate(
                prompt, temperature=ANALYSIS_TEMPERATURE, max_tokens=ANALYSIS_MAX_TOKENS
            ),
            max_retries=self.max_retries,
        )

        ranked = self.parse_ranking(completion, matches)
        if self.enforce_brand_filter:
            ranked = self._apply_brand_filter(ranked, matches, requirements)

        logger.info("Requirement analysis kept %d of %d candidates", len(ranked), len(matches))
        return AnalysisResult(ranked_vehicles=ranked)

    def parse_ranking(self, completion: str, matches: list[VehicleMatch]) -> list[RankedVehicle]:
        """Turn a raw completion into a clean, ordered, bounded ranking."""
        data = extract_json_object(completion)
        try:
            payload = RankingPayload.model_validate(data)
        except PydanticValidationError as e:
            raise LLMResponseParseError(
                "Completion is missing a rankedVehicles list", cause=e
            ) from e

        candidate_ids = {match.vehicle_id for match in matches}
        ranked: list[RankedVehicle] = []
        seen: set[str] = set()
        for raw in payload.ranked_vehicles:
            try:
                entry = RankingEntry.model_validate(raw)
            except PydanticValidationError:
                logger.warning("Skipping malformed ranking entry: %r", raw)
                continue
            if entry.vehicle_id not in candidate_ids or entry.vehicle_id in seen:
                logger.debug("Ignoring ranking for unknown or repeated id %s", entry.vehicle_id)
                continue
            confidence = clamp_confidence(entry.match_confidence)
            if confidence == 0:
                continue
            seen.add(entry.vehicle_id)
            ranked.append(
                RankedVehicle(
                    vehicle_id=entry.vehicle_id,
                    match_confidence=confidence,
                    reasoning=entry.reasoning.strip(),
                )
            )

        ranked.sort(key=lambda vehicle: vehicle.match_confidence, reverse=True)
        return ranked[: self.max_ranked]

    def _apply_brand_filter(
        self,
        ranked: list[RankedVehicle],
        matches: list[VehicleMatch],
        requirements: list[str],
    ) -> list[RankedVehicle]:
        makes_by_id = {match.vehicle_id: match.make for match in matches}
        requested, excluded = detect_brand_constraints(requirements, set(makes_by_id.values()))
        if not requested and not excluded:
            return ranked

        logger.info("Brand constraints: requested=%s excluded=%s", sorted(requested), sorted(excluded))
        kept = []
        for vehicle in ranked:
            make = makes_by_id[vehicle.vehicle_id].lower()
            if make in excluded or (requested and make not in requested):
                continue
            kept.append(vehicle)
        return kept
