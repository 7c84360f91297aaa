"""Maps natural-language and wizard criteria onto catalog labels.

Both entry points (the conversation assistant and the step-by-step wizard)
produce one ``SearchCriteria`` so they share a single structured filter.
"""

import logging
import re
from dataclasses import dataclass, field

from ...common.retry import call_with_retry
from ..domain import (
    BodyType,
    BudgetRange,
    CriteriaSummary,
    FeatureKey,
    FuelType,
    SearchCriteria,
    UseCase,
)
from ..domain.exceptions import CarFinderError
from ..ports.llm_port import LLMPort
from .prompts import build_classification_prompt
from .response_parsing import extract_json_array

logger = logging.getLogger(__name__)

UNBOUNDED = BudgetRange()

_AMOUNT = r"\$?(\d[\d,]*(?:\.\d+)?)\s*(k)?"
_UNDER_RE = re.compile(rf"^(?:under|up to|below|less than|max|maximum)\s*{_AMOUNT}$")
_OVER_RE = re.compile(rf"^(?:over|above|more than|at least|from)\s*{_AMOUNT}\s*\+?$")
_AROUND_RE = re.compile(rf"^(?:around|about|approximately|roughly|~)\s*{_AMOUNT}$")
_RANGE_RE = re.compile(rf"^{_AMOUNT}\s*(?:-|to)\s*{_AMOUNT}(?:\s*range)?$")
_MAX_RE = re.compile(rf"^{_AMOUNT}\s*(?:max|maximum|or less)$")

VAGUE_BUDGETS = {
    "cheap": BudgetRange(0, 35_000),
    "budget": BudgetRange(0, 35_000),
    "affordable": BudgetRange(0, 35_000),
    "mid-range": BudgetRange(35_000, 70_000),
    "moderate": BudgetRange(35_000, 70_000),
    "expensive": BudgetRange(70_000, None),
    "luxury budget": BudgetRange(70_000, None),
    "high-end": BudgetRange(70_000, None),
    "flexible": UNBOUNDED,
    "open budget": UNBOUNDED,
}

WIZARD_BUDGET_BANDS = {
    "under-30k": BudgetRange(0, 30_000),
    "30k-50k": BudgetRange(30_000, 50_000),
    "50k-70k": BudgetRange(50_000, 70_000),
    "70k-100k": BudgetRange(70_000, 100_000),
    "100k-plus": BudgetRange(100_000, None),
}

DIRECT_USE_CASES = {
    "family 5 seats": {UseCase.FAMILY_LIFE_5SEAT},
    "family 6+ seats": {UseCase.FAMILY_LIFE_6PLUS},
    "light towing": {UseCase.TOWING_LIGHT},
    "heavy towing": {UseCase.TOWING_HEAVY},
    "light off-road": {UseCase.OFFROAD_LIGHT},
    "heavy off-road": {UseCase.OFFROAD_HEAVY},
    "lifestyle ute": {UseCase.UTE_LIFESTYLE},
    "chassis ute": {UseCase.UTE_CHASSIS},
}

SMART_USE_CASES = {
    "adventure ute": {UseCase.UTE_LIFESTYLE},
    "cab chassis ute": {UseCase.UTE_CHASSIS},
    "chassis configuration": {UseCase.UTE_CHASSIS},
}

# Generic term -> (default tag, substrings that mark a more specific request)
GENERIC_USE_CASES = {
    "towing": (UseCase.TOWING_LIGHT, ("heavy towing", "light towing")),
    "family": (UseCase.FAMILY_LIFE_5SEAT, ("family 6+", "family 7", "family 5")),
    "off-road": (UseCase.OFFROAD_LIGHT, ("heavy off-road", "light off-road")),
}

# Placeholders the assistant emits while it is still asking a follow-up
SKIPPED_USE_CASES = {"dual cab clarification needed"}

VECTOR_ONLY_TERMS = {
    "reliable",
    "safe",
    "easy to park",
    "comfortable",
    "quiet",
    "practical",
    "tray",
    "carrying gear",
    "performance",
    "fun driving",
    "luxury",
    "workhorse",
    "highway driving",
    "trade work",
    "sports equipment",
    "dogs",
    "pets",
    "bikes",
    "bicycles",
    "city",
    "city driving",
    "commuting",
}

BODY_TYPE_ALIASES = {
    "people mover": {BodyType.PEOPLE_MOVER},
    "light truck": {BodyType.LIGHT_TRUCK},
    "4wd": {BodyType.SUV},
    "pickup": {BodyType.UTE},
    "truck": {BodyType.UTE},
    "dual cab": {BodyType.UTE},
    "crew cab": {BodyType.UTE},
    "hatch": {BodyType.HATCHBACK},
    "station wagon": {BodyType.WAGON},
    "estate": {BodyType.WAGON},
    "mpv": {BodyType.PEOPLE_MOVER},
    "minivan": {BodyType.PEOPLE_MOVER},
    "soft-top": {BodyType.CONVERTIBLE},
    "cabriolet": {BodyType.CONVERTIBLE},
    "commercial vehicle": {BodyType.VAN, BodyType.LIGHT_TRUCK},
    "small car": {BodyType.HATCHBACK, BodyType.SEDAN},
    "compact": {BodyType.HATCHBACK, BodyType.SEDAN},
    "mid-size": {BodyType.SEDAN, BodyType.SUV},
    "large car": {BodyType.SEDAN, BodyType.SUV},
    "family car": {BodyType.SUV, BodyType.SEDAN, BodyType.WAGON},
}

FUEL_TYPE_ALIASES = {
    "plug-in hybrid": {FuelType.PLUG_IN_HYBRID},
    "plug in hybrid": {FuelType.PLUG_IN_HYBRID},
    "phev": {FuelType.PLUG_IN_HYBRID},
    "gasoline": {FuelType.PETROL},
    "gas": {FuelType.PETROL},
    "ev": {FuelType.ELECTRIC},
    "bev": {FuelType.ELECTRIC},
    "battery electric": {FuelType.ELECTRIC},
    "self-charging hybrid": {FuelType.HYBRID},
    "mild hybrid": {FuelType.HYBRID},
    "full hybrid": {FuelType.HYBRID},
    "economical": {FuelType.HYBRID, FuelType.ELECTRIC},
    "environmentally friendly": {FuelType.ELECTRIC, FuelType.HYBRID, FuelType.PLUG_IN_HYBRID},
    "eco": {FuelType.ELECTRIC, FuelType.HYBRID, FuelType.PLUG_IN_HYBRID},
    "long range": {FuelType.DIESEL, FuelType.PETROL, FuelType.HYBRID},
    "quick refueling": {FuelType.PETROL, FuelType.DIESEL},
    "no emissions": {FuelType.ELECTRIC},
}

NO_PREFERENCE = {"any", "no preference", "whatever", "don't mind", "dont mind"}

WIZARD_USE_CASES = {
    "city-driving": UseCase.CITY_DRIVING,
    "long-trips": UseCase.LONG_TRIPS,
    "fuel-efficient": UseCase.FUEL_EFFICIENT,
    "carrying-gear": UseCase.CARRYING_GEAR,
    "workhorse": UseCase.WORKHORSE,
    "luxury": UseCase.LUXURY,
    "enthusiast": UseCase.FUN_PERFORMANCE,
}

WIZARD_FEATURES = {
    "carplay": FeatureKey.CARPLAY,
    "android-auto": FeatureKey.ANDROID_AUTO,
    "adaptive-cruise": FeatureKey.ADAPTIVE_CRUISE,
    "360-camera": FeatureKey.CAMERA_360,
    "wireless-charging": FeatureKey.WIRELESS_CHARGING,
    "heated-seats": FeatureKey.HEATED_SEATS,
    "sunroof": FeatureKey.SUNROOF,
    "powered-tailgate": FeatureKey.POWERED_TAILGATE,
    "awd": FeatureKey.AWD,
    "spare-wheel": FeatureKey.SPARE_WHEEL,
}


@dataclass
class WizardSelections:
    """Raw selections from the step-by-step wizard.

    ``budget_bands`` holds band ids such as ``"30k-50k"``; adjacent bands
    combine into one range. ``custom_min``/``custom_max`` apply when no band
    is chosen.
    """

    budget_bands: list[str] = field(default_factory=list)
    custom_min: float | None = None
    custom_max: float | None = None
    use_cases: list[str] = field(default_factory=list)
    family_options: list[str] = field(default_factory=list)
    towing_options: list[str] = field(default_factory=list)
    offroad_options: list[str] = field(default_factory=list)
    body_types: list[str] = field(default_factory=list)
    fuel_types: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    requirements: list[str] = field(default_factory=list)


def _to_amount(number: str, thousands: str | None) -> float:
    value = float(number.replace(",", ""))
    # "50" in a budget means 50k
    if thousands or value < 1000:
        value *= 1000
    return value


def convert_budget(text: str | None) -> BudgetRange:
    """Parse a budget phrase into a range. Unknown formats are unbounded."""
    if not text:
        return UNBOUNDED
    budget = " ".join(text.lower().split())

    if match := _UNDER_RE.match(budget):
        return BudgetRange(0, _to_amount(*match.groups()))
    if match := _OVER_RE.match(budget):
        return BudgetRange(_to_amount(*match.groups()), None)
    if match := _AROUND_RE.match(budget):
        base = _to_amount(*match.groups())
        return BudgetRange(float(int(base * 0.8)), float(int(base * 1.1)))
    if match := _RANGE_RE.match(budget):
        low_num, low_k, high_num, high_k = match.groups()
        # No k carried across: "30-50k" already scales via the under-1000 rule
        return BudgetRange(_to_amount(low_num, low_k), _to_amount(high_num, high_k))
    if match := _MAX_RE.match(budget):
        return BudgetRange(0, _to_amount(*match.groups()))
    if budget in VAGUE_BUDGETS:
        return VAGUE_BUDGETS[budget]

    logger.warning("Unknown budget format %r, leaving budget open", text)
    return UNBOUNDED


def _normalize_label(term: str) -> str:
    return " ".join(term.lower().strip().split())


def convert_body_types(terms: list[str] | None) -> frozenset[BodyType]:
    """Map body type phrases to catalog labels; unknown phrases fall back to suv."""
    if not terms:
        return frozenset({BodyType.SUV})

    body_types: set[BodyType] = set()
    for term in terms:
        label = _normalize_label(term)
        if label in NO_PREFERENCE:
            continue
        try:
            body_types.add(BodyType(label.replace(" ", "_").replace("-", "_")))
            continue
        except ValueError:
            pass
        if label in BODY_TYPE_ALIASES:
            body_types |= BODY_TYPE_ALIASES[label]
        else:
            logger.warning("Unknown body type %r, using suv", term)
            body_types.add(BodyType.SUV)
    return frozenset(body_types)


def convert_fuel_types(terms: list[str] | None) -> frozenset[FuelType]:
    """Map fuel phrases to catalog labels; unknown phrases fall back to petrol.

    "any" and similar mean no fuel constraint at all.
    """
    if not terms:
        return frozenset({FuelType.PETROL})

    fuel_types: set[FuelType] = set()
    for term in terms:
        label = _normalize_label(term)
        if label in NO_PREFERENCE:
            continue
        try:
            fuel_types.add(FuelType(label.replace(" ", "_").replace("-", "_")))
            continue
        except ValueError:
            pass
        if label in FUEL_TYPE_ALIASES:
            fuel_types |= FUEL_TYPE_ALIASES[label]
        else:
            logger.warning("Unknown fuel type %r, using petrol", term)
            fuel_types.add(FuelType.PETROL)
    return frozenset(fuel_types)


class CriteriaConverter:
    """Builds ``SearchCriteria`` from assistant summaries or wizard selections."""

    def __init__(self, llm: LLMPort | None = None, max_retries: int = 3) -> None:
        self.llm = llm
        self.max_retries = max_retries

    convert_budget = staticmethod(convert_budget)
    convert_body_types = staticmethod(convert_body_types)
    convert_fuel_types = staticmethod(convert_fuel_types)

    def convert_use_cases(self, terms: list[str] | None) -> tuple[frozenset[UseCase], list[str]]:
        """Split use-case phrases into catalog tags and free-text requirements.

        Returns:
            (use case tags, requirement strings for semantic search)
        """
        if not terms:
            return frozenset(), []

        lowered = [_normalize_label(term) for term in terms]
        use_cases: set[UseCase] = set()
        requirements: list[str] = []
        unknown: list[str] = []

        for term, label in zip(terms, lowered):
            if label in DIRECT_USE_CASES:
                use_cases |= DIRECT_USE_CASES[label]
            elif label in SKIPPED_USE_CASES:
                continue
            elif label in GENERIC_USE_CASES:
                default, specific_markers = GENERIC_USE_CASES[label]
                has_specific = any(
                    marker in other for other in lowered for marker in specific_markers
                )
                if not has_specific:
                    use_cases.add(default)
            elif label in SMART_USE_CASES:
                use_cases |= SMART_USE_CASES[label]
            elif label in VECTOR_ONLY_TERMS:
                if label not in requirements:
                    requirements.append(label)
            else:
                unknown.append(term.strip())

        if unknown:
            use_cases |= self.classify_unknown_use_cases(unknown)
            requirements.extend(term for term in unknown if term not in requirements)

        return frozenset(use_cases), requirements

    def classify_unknown_use_cases(self, terms: list[str]) -> set[UseCase]:
        """Ask the LLM to map unrecognized phrases to use-case tags.

        Rate-limited calls are retried with backoff. Any failure yields no
        tags; the phrases still reach semantic search as requirements.
        """
        if not terms or self.llm is None:
            return set()

        prompt = build_classification_prompt(terms)
        try:
            completion = call_with_retry(
                lambda: self.llm.generate(prompt, temperature=0.0, max_tokens=150),
                max_retries=self.max_retries,
            )
            labels = extract_json_array(completion)
        except CarFinderError as e:
            logger.warning("Use case classification failed for %s: %s", terms, e.message)
            return set()

        classified = set()
        for label in labels:
            try:
                classified.add(UseCase(str(label).strip().upper()))
            except ValueError:
                logger.debug("Ignoring unknown use case label %r", label)
        logger.info("Classified %s as %s", terms, sorted(uc.value for uc in classified))
        return classified

    def from_summary(self, summary: CriteriaSummary) -> SearchCriteria:
        """Convert the assistant's natural-language summary."""
        use_cases, use_case_requirements = self.convert_use_cases(summary.use_cases)
        requirements = [r for r in summary.requirements if r and r.strip()]
        requirements += [r for r in use_case_requirements if r not in requirements]
        if not requirements:
            requirements = [term for term in summary.body_types if term and term.strip()]

        return SearchCriteria(
            budget=convert_budget(summary.budget),
            use_cases=use_cases,
            body_types=convert_body_types(summary.body_types),
            fuel_types=convert_fuel_types(summary.fuel_types),
            requirements=tuple(requirements),
        )

    def from_wizard(self, selections: WizardSelections) -> SearchCriteria:
        """Convert wizard selections. Unknown ids are ignored with a warning."""
        body_types = self._wizard_enum(BodyType, selections.body_types)
        requirements = [r for r in selections.requirements if r and r.strip()]
        if not requirements:
            requirements = [body.value.replace("_", " ") for body in sorted(body_types, key=lambda b: b.value)]

        return SearchCriteria(
            budget=self._wizard_budget(selections),
            use_cases=self._wizard_use_cases(selections),
            body_types=body_types,
            fuel_types=self._wizard_enum(FuelType, selections.fuel_types),
            features=frozenset(
                WIZARD_FEATURES[feature]
                for feature in selections.features
                if self._known(feature, WIZARD_FEATURES, "feature")
            ),
            requirements=tuple(requirements),
        )

    @staticmethod
    def _known(key: str, mapping: dict, kind: str) -> bool:
        if key in mapping:
            return True
        logger.warning("Ignoring unknown wizard %s %r", kind, key)
        return False

    def _wizard_budget(self, selections: WizardSelections) -> BudgetRange:
        bands = [
            WIZARD_BUDGET_BANDS[band]
            for band in selections.budget_bands
            if self._known(band, WIZARD_BUDGET_BANDS, "budget band")
        ]
        if bands:
            minimum = min(band.minimum or 0 for band in bands)
            maximum = None if any(band.maximum is None for band in bands) else max(
                band.maximum for band in bands if band.maximum is not None
            )
            return BudgetRange(minimum, maximum)
        return BudgetRange(selections.custom_min or None, selections.custom_max or None)

    def _wizard_use_cases(self, selections: WizardSelections) -> frozenset[UseCase]:
        use_cases: set[UseCase] = set()
        for selected in selections.use_cases:
            if selected == "family-life":
                if "5 seats" in selections.family_options:
                    use_cases.add(UseCase.FAMILY_LIFE_5SEAT)
                if "6+ seats" in selections.family_options:
                    use_cases.add(UseCase.FAMILY_LIFE_6PLUS)
            elif selected == "towing":
                if "Light" in selections.towing_options:
                    use_cases.add(UseCase.TOWING_LIGHT)
                if "Heavy" in selections.towing_options:
                    use_cases.add(UseCase.TOWING_HEAVY)
            elif selected == "off-road":
                if "Light" in selections.offroad_options:
                    use_cases.add(UseCase.OFFROAD_LIGHT)
                if "Heavy" in selections.offroad_options:
                    use_cases.add(UseCase.OFFROAD_HEAVY)
            elif self._known(selected, WIZARD_USE_CASES, "use case"):
                use_cases.add(WIZARD_USE_CASES[selected])
        return frozenset(use_cases)

    @staticmethod
    def _wizard_enum(enum_type, ids: list[str]) -> frozenset:
        values = set()
        for raw in ids:
            try:
                values.add(enum_type(raw.strip().lower().replace("-", "_").replace(" ", "_")))
            except ValueError:
                logger.warning("Ignoring unknown wizard %s %r", enum_type.__name__, raw)
        return frozenset(values)
