"""Unit tests for the JSON catalog and sales lookup adapters."""

import json
from datetime import date

import pytest

from carfinder.adapters.outbound.catalog import JsonCatalogStore, JsonSalesLookup
from carfinder.core.domain import BodyType, FeatureKey, FuelType, ReviewRating, UseCase
from carfinder.core.domain.exceptions import CatalogLoadError, SalesLookupError

pytestmark = pytest.mark.unit


def store_for(data_dir):
    return JsonCatalogStore(
        [data_dir / "vehicles-part1.json", data_dir / "vehicles-part2.json"],
        data_dir / "reviews.json",
    )


def write(path, content):
    path.write_text(json.dumps(content), encoding="utf-8")
    return path


class TestJsonCatalogStore:
    def test_loads_partitions_in_order(self, data_dir):
        vehicles = store_for(data_dir).load()

        assert len(vehicles) == 8
        assert vehicles[0].vehicle_id == "toyota-rav4-gx-2wd-hybrid-2024"
        assert vehicles[-1].vehicle_id == "kia-carnival-s-2024"

    def test_record_parsing(self, data_dir):
        store = store_for(data_dir)

        rav4 = store.get_by_id("toyota-rav4-gx-2wd-hybrid-2024")
        assert rav4.make == "Toyota"
        assert rav4.model == "RAV4"
        assert rav4.variant == "GX 2WD Hybrid"
        assert rav4.body_type == BodyType.SUV
        assert rav4.fuel_type == FuelType.HYBRID
        assert rav4.price == 39500
        assert rav4.seats == 5
        assert UseCase.FAMILY_LIFE_5SEAT in rav4.use_cases
        assert rav4.has_feature(FeatureKey.CARPLAY)
        assert not rav4.has_feature(FeatureKey.AWD)
        assert len(rav4.chunks) == 2

    def test_price_strings_and_placeholders(self, data_dir):
        store = store_for(data_dir)

        assert store.get_by_id("mazda-cx-5-maxx-sport-2024").price == 42990
        carnival = store.get_by_id("kia-carnival-s-2024")
        assert carnival.price is None
        assert not carnival.has_valid_price
        assert carnival.seats == 8

    def test_dash_trim_is_empty_variant(self, data_dir):
        i30 = store_for(data_dir).get_by_id("hyundai-i30-active-2023")
        assert i30.variant == ""
        assert i30.trim_keywords == frozenset()

    def test_unknown_id(self, data_dir):
        assert store_for(data_dir).get_by_id("nope") is None

    def test_reviews_match_case_insensitively(self, data_dir):
        store = store_for(data_dir)

        reviews = store.get_reviews_for("toyota", "rav4")

        assert len(reviews) == 2
        assert reviews[0].rating == ReviewRating.VERY_GOOD
        assert reviews[0].publish_date == date(2024, 3, 12)
        assert reviews[0].trim_keywords == {"GX", "HYBRID"}

    def test_review_parsing_variants(self, data_dir):
        store = store_for(data_dir)

        ranger = store.get_reviews_for("Ford", "Ranger")[0]
        assert ranger.trim_keywords == {"XLT", "V6"}

        sorento = store.get_reviews_for("Kia", "Sorento")[0]
        assert sorento.rating == ReviewRating.VERY_GOOD
        assert sorento.publish_date == date(2024, 5, 15)

    def test_unknown_rating_becomes_none(self, tmp_path):
        vehicles = write(tmp_path / "v.json", [])
        reviews = write(
            tmp_path / "r.json",
            [{"make_display": "Kia", "model_display": "EV6", "rating": "sublime"}],
        )

        store = JsonCatalogStore([vehicles], reviews)

        assert store.get_reviews_for("Kia", "EV6")[0].rating is None

    def test_load_is_cached(self, data_dir):
        store = store_for(data_dir)
        first = store.load()
        (data_dir / "vehicles-part1.json").unlink()

        assert store.load() is first
        assert store.is_loaded

    def test_missing_file(self, data_dir):
        store = JsonCatalogStore([data_dir / "missing.json"], data_dir / "reviews.json")

        with pytest.raises(CatalogLoadError, match="not found"):
            store.load()

    def test_malformed_json(self, data_dir):
        (data_dir / "broken.json").write_text("[{", encoding="utf-8")
        store = JsonCatalogStore([data_dir / "broken.json"], data_dir / "reviews.json")

        with pytest.raises(CatalogLoadError):
            store.load()

    def test_non_list_file(self, data_dir):
        write(data_dir / "object.json", {"uid": "x"})
        store = JsonCatalogStore([data_dir / "object.json"], data_dir / "reviews.json")

        with pytest.raises(CatalogLoadError, match="JSON list"):
            store.load()

    def test_duplicate_ids_across_partitions(self, data_dir):
        store = JsonCatalogStore(
            [data_dir / "vehicles-part1.json", data_dir / "vehicles-part1.json"],
            data_dir / "reviews.json",
        )

        with pytest.raises(CatalogLoadError, match="Duplicate vehicle id") as exc_info:
            store.load()
        assert exc_info.value.extra_context["vehicle_id"] == "toyota-rav4-gx-2wd-hybrid-2024"

    def test_record_without_uid(self, data_dir):
        write(data_dir / "noid.json", [{"make_display": "Kia", "model_display": "Rio"}])
        store = JsonCatalogStore([data_dir / "noid.json"], data_dir / "reviews.json")

        with pytest.raises(CatalogLoadError, match="without uid"):
            store.load()

    def test_bom_is_tolerated(self, data_dir):
        path = data_dir / "bom.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps([]).encode("utf-8"))

        assert JsonCatalogStore([path], data_dir / "reviews.json").load() == []


class TestJsonSalesLookup:
    def test_volumes(self, data_dir):
        lookup = JsonSalesLookup(data_dir / "sales-lookup.json")

        assert len(lookup.load()) == 8
        assert lookup.volume_for("ford_ranger") == 62593
        assert lookup.volume_for("mazda_cx_5") == 24108

    def test_unknown_and_missing_keys_are_zero(self, data_dir):
        lookup = JsonSalesLookup(data_dir / "sales-lookup.json")

        assert lookup.volume_for("lada_niva") == 0
        assert lookup.volume_for(None) == 0
        assert lookup.volume_for("") == 0

    def test_keys_are_canonicalized(self, tmp_path):
        path = write(tmp_path / "sales.json", {"Mercedes-Benz GLC 300": 4100, "  ": 1})

        lookup = JsonSalesLookup(path)

        assert lookup.load() == {"mercedes_benz_glc_300": 4100}

    def test_missing_file(self, tmp_path):
        with pytest.raises(SalesLookupError) as exc_info:
            JsonSalesLookup(tmp_path / "missing.json").load()
        assert isinstance(exc_info.value.cause, CatalogLoadError)

    def test_non_object(self, tmp_path):
        path = write(tmp_path / "sales.json", [1, 2, 3])

        with pytest.raises(SalesLookupError, match="JSON object"):
            JsonSalesLookup(path).load()

    def test_non_numeric_volume(self, tmp_path):
        path = write(tmp_path / "sales.json", {"toyota_rav4": "lots"})

        with pytest.raises(SalesLookupError, match="not a number"):
            JsonSalesLookup(path).load()
