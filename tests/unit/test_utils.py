"""Unit tests for text and key helpers."""

import pytest

from carfinder.core.domain.utils import (
    canonicalize_key,
    extract_seat_count,
    make_model_key,
    normalize_text,
    parse_identity,
    parse_price,
    trim_keywords,
)

pytestmark = pytest.mark.unit


class TestMakeModelKey:
    def test_joins_lowercases_and_collapses_punctuation(self):
        assert make_model_key("Mercedes-Benz", "GLC 300") == "mercedes_benz_glc_300"

    def test_hyphenated_model(self):
        assert make_model_key("Mazda", "CX-5") == "mazda_cx_5"

    def test_runs_of_separators_collapse_to_one_underscore(self):
        assert make_model_key("  Land Rover ", "Range Rover -- Sport") == "land_rover_range_rover_sport"

    @pytest.mark.parametrize("make,model", [(None, "RAV4"), ("Toyota", None), ("", "RAV4"), ("Toyota", "   ")])
    def test_missing_part_gives_none(self, make, model):
        assert make_model_key(make, model) is None

    def test_canonicalize_existing_key(self):
        """Hand-edited lookup keys end up identical to generated ones."""
        assert canonicalize_key("Toyota__RAV4 ") == make_model_key("Toyota", "RAV4")
        assert canonicalize_key("---") is None


class TestSeatCount:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Five seats", 5),
            ("Five seats configured 2+3", 5),
            ("7 seats", 7),
            ("Seven seat layout", 7),
            ("seating for eight", 8),
            ("2+3", 5),
            ("2+2 seats", 4),
            ("8 seats", 8),
            ("1 seat", 1),
        ],
    )
    def test_patterns(self, text, expected):
        assert extract_seat_count(text) == expected

    def test_number_word_checked_before_digits(self):
        assert extract_seat_count("two rows, 7 seats") == 2

    @pytest.mark.parametrize("text", [None, "", "Cloth trim"])
    def test_defaults_to_five(self, text):
        assert extract_seat_count(text) == 5


class TestTrimKeywords:
    def test_uppercases_and_splits(self):
        assert trim_keywords("GX 2WD Hybrid") == frozenset({"GX", "2WD", "HYBRID"})

    def test_drops_numeric_and_decimal_tokens(self):
        assert trim_keywords("XLT 3.0 V6 4x4") == frozenset({"XLT", "V6", "4X4"})

    def test_splits_on_hyphen(self):
        assert trim_keywords("Sport-Plus") == frozenset({"SPORT", "PLUS"})

    def test_empty(self):
        assert trim_keywords(None) == frozenset()
        assert trim_keywords("2024") == frozenset()


class TestParsePrice:
    @pytest.mark.parametrize(
        "raw,expected",
        [(42990, 42990.0), ("$42,990", 42990.0), ("39500.50", 39500.5)],
    )
    def test_valid(self, raw, expected):
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "unknown", 0, -100, True, "abc", "nan", float("inf")])
    def test_invalid_is_none(self, raw):
        assert parse_price(raw) is None


class TestIdentityAndNormalize:
    def test_parse_identity(self):
        assert parse_identity("Toyota, RAV4, GX 2WD, 2024, suv, hybrid") == ("Toyota", "RAV4")

    @pytest.mark.parametrize("content", ["", "Toyota, RAV4", ", RAV4, GX"])
    def test_parse_identity_rejects_short_or_blank(self, content):
        assert parse_identity(content) is None

    def test_normalize_text(self):
        raw = "\ufeffQuiet   cabin\r\n\r\n\r\n\r\n  Big boot  "
        assert normalize_text(raw) == "Quiet cabin\n\nBig boot"

    def test_normalize_empty(self):
        assert normalize_text("") == ""
