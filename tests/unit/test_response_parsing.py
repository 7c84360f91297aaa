"""Unit tests for best-effort JSON extraction from completions."""

import pytest

from carfinder.core.domain.exceptions import LLMResponseParseError
from carfinder.core.services.response_parsing import (
    extract_json_array,
    extract_json_object,
    strip_code_fences,
)

pytestmark = pytest.mark.unit


def test_plain_json_object():
    assert extract_json_object('{"rankedVehicles": []}') == {"rankedVehicles": []}


def test_fenced_json():
    text = '```json\n{"ready": true}\n```'
    assert strip_code_fences(text) == '{"ready": true}'
    assert extract_json_object(text) == {"ready": True}


def test_object_embedded_in_prose():
    text = 'Here is my ranking:\n{"rankedVehicles": [{"vehicleId": "a"}]}\nHope that helps!'
    assert extract_json_object(text) == {"rankedVehicles": [{"vehicleId": "a"}]}


def test_braces_inside_strings_do_not_break_matching():
    text = 'Result: {"reasoning": "fits {most} needs }", "ok": 1} trailing'
    assert extract_json_object(text) == {"reasoning": "fits {most} needs }", "ok": 1}


def test_skips_unparseable_block_and_uses_next():
    text = "{not json} then {\"a\": 1}"
    assert extract_json_object(text) == {"a": 1}


def test_array_extraction():
    assert extract_json_array('Categories: ["TOWING_LIGHT", "WORKHORSE"].') == [
        "TOWING_LIGHT",
        "WORKHORSE",
    ]


@pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", "{broken"])
def test_no_object_raises(text):
    with pytest.raises(LLMResponseParseError):
        extract_json_object(text)
