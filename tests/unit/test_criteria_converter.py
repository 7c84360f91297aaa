"""Unit tests for natural-language and wizard criteria conversion."""

from unittest.mock import Mock

import pytest

from carfinder.core.domain import (
    BodyType,
    BudgetRange,
    CriteriaSummary,
    FeatureKey,
    FuelType,
    UseCase,
)
from carfinder.core.domain.exceptions import LLMGenerationError, LLMRateLimitError
from carfinder.core.ports import LLMPort
from carfinder.core.services import CriteriaConverter, WizardSelections
from carfinder.core.services.criteria_converter import (
    convert_body_types,
    convert_budget,
    convert_fuel_types,
)

pytestmark = pytest.mark.unit


class TestBudget:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("under 50k", BudgetRange(0, 50_000)),
            ("Up to $45,000", BudgetRange(0, 45_000)),
            ("under 50", BudgetRange(0, 50_000)),
            ("over 70k", BudgetRange(70_000, None)),
            ("around 40k", BudgetRange(32_000, 44_000)),
            ("30-50k", BudgetRange(30_000, 50_000)),
            ("$30,000 - $45,000", BudgetRange(30_000, 45_000)),
            ("$30,000-50k", BudgetRange(30_000, 50_000)),
            ("40k to 60k", BudgetRange(40_000, 60_000)),
            ("60k max", BudgetRange(0, 60_000)),
            ("cheap", BudgetRange(0, 35_000)),
            ("Mid-Range", BudgetRange(35_000, 70_000)),
        ],
    )
    def test_formats(self, text, expected):
        assert convert_budget(text) == expected

    @pytest.mark.parametrize("text", [None, "", "flexible", "whatever the wife says"])
    def test_unbounded(self, text):
        assert not convert_budget(text).is_bounded


class TestBodyAndFuel:
    def test_body_defaults_to_suv(self):
        assert convert_body_types([]) == {BodyType.SUV}
        assert convert_body_types(["spaceship"]) == {BodyType.SUV}

    def test_body_aliases(self):
        assert convert_body_types(["Hatch", "people mover"]) == {
            BodyType.HATCHBACK,
            BodyType.PEOPLE_MOVER,
        }
        assert convert_body_types(["small car"]) == {BodyType.HATCHBACK, BodyType.SEDAN}

    def test_body_any_is_no_constraint(self):
        assert convert_body_types(["any"]) == frozenset()

    def test_fuel_defaults_to_petrol(self):
        assert convert_fuel_types(None) == {FuelType.PETROL}
        assert convert_fuel_types(["hydrogen"]) == {FuelType.PETROL}

    def test_fuel_aliases(self):
        assert convert_fuel_types(["PHEV"]) == {FuelType.PLUG_IN_HYBRID}
        assert convert_fuel_types(["plug-in hybrid", "diesel"]) == {
            FuelType.PLUG_IN_HYBRID,
            FuelType.DIESEL,
        }
        assert convert_fuel_types(["eco"]) == {
            FuelType.ELECTRIC,
            FuelType.HYBRID,
            FuelType.PLUG_IN_HYBRID,
        }

    def test_fuel_no_preference_is_no_constraint(self):
        assert convert_fuel_types(["no preference"]) == frozenset()


class TestUseCases:
    def test_generic_towing_defaults_to_light(self):
        use_cases, requirements = CriteriaConverter().convert_use_cases(["towing"])
        assert use_cases == {UseCase.TOWING_LIGHT}
        assert requirements == []

    def test_specific_variant_suppresses_generic_default(self):
        use_cases, _ = CriteriaConverter().convert_use_cases(["towing", "heavy towing"])
        assert use_cases == {UseCase.TOWING_HEAVY}

        use_cases, _ = CriteriaConverter().convert_use_cases(["family", "family 6+ seats"])
        assert use_cases == {UseCase.FAMILY_LIFE_6PLUS}

    def test_generic_off_road_defaults_to_light(self):
        use_cases, _ = CriteriaConverter().convert_use_cases(["Off-Road"])
        assert use_cases == {UseCase.OFFROAD_LIGHT}

    def test_vector_only_terms_become_requirements(self):
        use_cases, requirements = CriteriaConverter().convert_use_cases(["quiet", "dogs", "quiet"])
        assert use_cases == frozenset()
        assert requirements == ["quiet", "dogs"]

    def test_placeholder_is_skipped(self):
        assert CriteriaConverter().convert_use_cases(["dual cab clarification needed"]) == (
            frozenset(),
            [],
        )

    def test_unknown_terms_are_classified_and_kept(self):
        llm = Mock(spec=LLMPort)
        llm.generate.return_value = '["OFFROAD_LIGHT", "NOT_A_TAG"]'

        use_cases, requirements = CriteriaConverter(llm).convert_use_cases(["weekend camping"])

        assert use_cases == {UseCase.OFFROAD_LIGHT}
        assert requirements == ["weekend camping"]
        assert "weekend camping" in llm.generate.call_args.args[0]

    def test_classification_failure_yields_no_tags(self):
        llm = Mock(spec=LLMPort)
        llm.generate.side_effect = LLMGenerationError("empty completion")

        use_cases, requirements = CriteriaConverter(llm).convert_use_cases(["beach trips"])

        assert use_cases == frozenset()
        assert requirements == ["beach trips"]

    def test_classification_retries_rate_limits(self, monkeypatch):
        monkeypatch.setattr("carfinder.common.retry.backoff_delay", lambda attempt: 0)
        llm = Mock(spec=LLMPort)
        llm.generate.side_effect = [LLMRateLimitError("429"), '["TOWING_HEAVY"]']

        use_cases, _ = CriteriaConverter(llm, max_retries=3).convert_use_cases(["caravan"])

        assert use_cases == {UseCase.TOWING_HEAVY}
        assert llm.generate.call_count == 2

    def test_no_llm_means_no_classification(self):
        use_cases, requirements = CriteriaConverter(None).convert_use_cases(["horse float"])
        assert use_cases == frozenset()
        assert requirements == ["horse float"]


class TestFromSummary:
    def test_full_summary(self):
        summary = CriteriaSummary(
            budget="under 60k",
            use_cases=["family 6+ seats", "dogs"],
            body_types=["suv"],
            fuel_types=["hybrid"],
            requirements=["third row fits adults"],
        )

        criteria = CriteriaConverter().from_summary(summary)

        assert criteria.budget == BudgetRange(0, 60_000)
        assert criteria.use_cases == {UseCase.FAMILY_LIFE_6PLUS}
        assert criteria.body_types == {BodyType.SUV}
        assert criteria.fuel_types == {FuelType.HYBRID}
        assert criteria.requirements == ("third row fits adults", "dogs")

    def test_requirements_default_to_body_types(self):
        criteria = CriteriaConverter().from_summary(
            CriteriaSummary(budget="under 50k", body_types=["ute"])
        )
        assert criteria.requirements == ("ute",)


class TestFromWizard:
    def test_adjacent_bands_merge(self):
        criteria = CriteriaConverter().from_wizard(
            WizardSelections(budget_bands=["30k-50k", "50k-70k"], body_types=["suv"])
        )
        assert criteria.budget == BudgetRange(30_000, 70_000)

    def test_open_top_band(self):
        criteria = CriteriaConverter().from_wizard(WizardSelections(budget_bands=["100k-plus", "70k-100k"]))
        assert criteria.budget == BudgetRange(70_000, None)

    def test_custom_range_without_bands(self):
        criteria = CriteriaConverter().from_wizard(WizardSelections(custom_min=25_000, custom_max=45_000))
        assert criteria.budget == BudgetRange(25_000, 45_000)

    def test_selections(self):
        selections = WizardSelections(
            use_cases=["family-life", "towing", "city-driving", "teleporting"],
            family_options=["6+ seats"],
            towing_options=["Light", "Heavy"],
            body_types=["suv", "people-mover", "hovercraft"],
            fuel_types=["diesel"],
            features=["awd", "360-camera", "jetpack"],
        )

        criteria = CriteriaConverter().from_wizard(selections)

        assert criteria.use_cases == {
            UseCase.FAMILY_LIFE_6PLUS,
            UseCase.TOWING_LIGHT,
            UseCase.TOWING_HEAVY,
            UseCase.CITY_DRIVING,
        }
        assert criteria.body_types == {BodyType.SUV, BodyType.PEOPLE_MOVER}
        assert criteria.fuel_types == {FuelType.DIESEL}
        assert criteria.features == {FeatureKey.AWD, FeatureKey.CAMERA_360}
        assert criteria.requirements == ("people mover", "suv")
