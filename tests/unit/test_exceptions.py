"""Unit tests for the exception hierarchy and its error handling helpers."""

import json
import logging

import pytest

from carfinder.adapters.common.exception_handler import (
    GENERIC_ERROR_MESSAGE,
    client_error_payload,
    format_exception_json,
    get_error_code,
    get_http_status_code,
    log_exception,
)
from carfinder.core.domain.exceptions import (
    CarFinderError,
    CatalogLoadError,
    CollectionNotFoundError,
    EmbeddingAPIError,
    EmbeddingRateLimitError,
    EmptyCandidateListError,
    EmptyRequirementsError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    MissingAPIKeyError,
    QdrantQueryError,
    SalesLookupError,
    ValidationError,
    VectorStoreError,
)

pytestmark = pytest.mark.unit


class TestHierarchy:
    def test_families(self):
        assert issubclass(QdrantQueryError, VectorStoreError)
        assert issubclass(CollectionNotFoundError, VectorStoreError)
        assert issubclass(LLMRateLimitError, LLMError)
        assert issubclass(EmptyRequirementsError, ValidationError)
        for exc_type in (VectorStoreError, LLMError, ValidationError, CatalogLoadError):
            assert issubclass(exc_type, CarFinderError)

    def test_codes_are_unique(self):
        types = [
            CarFinderError,
            CatalogLoadError,
            SalesLookupError,
            MissingAPIKeyError,
            QdrantQueryError,
            CollectionNotFoundError,
            EmbeddingAPIError,
            EmbeddingRateLimitError,
            LLMConnectionError,
            LLMRateLimitError,
            EmptyRequirementsError,
            EmptyCandidateListError,
        ]
        codes = [t.error_code for t in types]
        assert len(codes) == len(set(codes))
        assert all(code.startswith("CF_") for code in codes)


class TestCarFinderError:
    def test_captures_raise_site(self):
        def search_vehicles():
            raise QdrantQueryError("boom")

        with pytest.raises(QdrantQueryError) as exc_info:
            search_vehicles()

        location = exc_info.value.location
        assert location.method_name == "search_vehicles"
        assert location.file_name == "test_exceptions.py"

    def test_raise_site_skips_subclass_init(self):
        class CatalogRowError(QdrantQueryError):
            def __init__(self, vehicle_id: str) -> None:
                super().__init__(f"bad row {vehicle_id}", context={"vehicle_id": vehicle_id})

        def load_row():
            raise CatalogRowError("rav4")

        with pytest.raises(CatalogRowError) as exc_info:
            load_row()

        assert exc_info.value.location.method_name == "load_row"
        assert exc_info.value.to_dict()["context"] == {"vehicle_id": "rav4"}

    def test_to_dict(self):
        cause = ConnectionError("refused")
        error = QdrantQueryError("query failed", cause=cause, context={"collection": "c"})

        data = error.to_dict()

        assert data["error"] == {
            "type": "QdrantQueryError",
            "code": QdrantQueryError.error_code,
            "message": "query failed",
        }
        assert data["context"] == {"collection": "c"}
        assert data["cause"] == {"type": "ConnectionError", "message": "refused"}
        assert "stack_trace" not in data

    def test_str_is_message(self):
        assert str(EmptyRequirementsError("no requirements")) == "no requirements"


class TestStatusMapping:
    @pytest.mark.parametrize(
        "exc,status",
        [
            (EmptyCandidateListError("x"), 400),
            (LLMRateLimitError("x"), 429),
            (EmbeddingRateLimitError("x"), 429),
            (QdrantQueryError("x"), 503),
            (EmbeddingAPIError("x"), 503),
            (LLMConnectionError("x"), 502),
            (MissingAPIKeyError("x"), 500),
            (CatalogLoadError("x"), 500),
            (ValueError("x"), 400),
            (TimeoutError("x"), 503),
            (RuntimeError("x"), 500),
        ],
    )
    def test_status(self, exc, status):
        assert get_http_status_code(exc) == status

    def test_error_codes(self):
        assert get_error_code(LLMConnectionError("x")) == LLMConnectionError.error_code
        assert get_error_code(KeyError("x")) == "PYTHON_ERR"


class TestClientPayload:
    def test_service_failure_hides_details_behind_generic_error(self):
        payload = client_error_payload(QdrantQueryError("Chunk similarity query failed"))

        assert payload == {
            "success": False,
            "error": GENERIC_ERROR_MESSAGE,
            "message": "Chunk similarity query failed",
            "code": QdrantQueryError.error_code,
        }

    def test_validation_failure_echoes_message(self):
        payload = client_error_payload(EmptyRequirementsError("freeTextRequirements is required"))

        assert payload["error"] == "freeTextRequirements is required"
        assert payload["code"] == EmptyRequirementsError.error_code

    def test_rate_limit_message(self):
        payload = client_error_payload(LLMRateLimitError("429 RESOURCE_EXHAUSTED"))
        assert "busy" in payload["error"]

    def test_no_stack_trace(self):
        try:
            raise RuntimeError("kaput")
        except RuntimeError as e:
            payload = client_error_payload(e)
        assert set(payload) == {"success", "error", "message", "code"}


class TestFormatting:
    def test_plain_exception(self):
        try:
            raise ValueError("bad value")
        except ValueError as e:
            data = format_exception_json(e, include_trace=True, extra_context={"path": "/x"})

        assert data["error"]["code"] == "PYTHON_ERR"
        assert data["location"]["method"] == "test_plain_exception"
        assert data["context"] == {"path": "/x"}
        assert data["stack_trace"]

    def test_extra_context_merges(self):
        data = format_exception_json(QdrantQueryError("x", context={"a": 1}), extra_context={"b": 2})
        assert data["context"] == {"a": 1, "b": 2}

    def test_log_exception_writes_json(self, caplog):
        with caplog.at_level(logging.ERROR):
            log_exception(LLMConnectionError("bad key"), extra_context={"path": "/api"})

        logged = json.loads(caplog.records[-1].getMessage())
        assert logged["error"]["type"] == "LLMConnectionError"
        assert logged["context"]["path"] == "/api"
