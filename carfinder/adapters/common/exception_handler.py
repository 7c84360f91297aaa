"""Exception formatting, logging and HTTP status mapping shared by the API and CLI."""

import json
import logging
import traceback
from typing import Any

from ...core.domain.exceptions import (
    CarFinderError,
    CatalogError,
    ConfigurationError,
    EmbeddingError,
    EmbeddingRateLimitError,
    LLMError,
    LLMRateLimitError,
    ValidationError,
    VectorStoreError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong while finding your vehicles. Please try again."
GENERIC_ERROR_MESSAGES = {
    429: "The service is busy. Please wait a moment and try again.",
}


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Format any exception as structured JSON.

    Works with both ``CarFinderError`` and standard Python exceptions.

    Example:
        >>> try:
        ...     raise ValueError("Invalid input")
        ... except Exception as e:
        ...     error_json = format_exception_json(e, include_trace=True)
    """
    if isinstance(exc, CarFinderError):
        result = exc.to_dict(include_trace=include_trace)
        if extra_context:
            result.setdefault("context", {}).update(extra_context)
        return result

    tb = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    last_frame = tb[-1] if tb else None

    result: dict[str, Any] = {
        "error": {
            "type": type(exc).__name__,
            "code": "PYTHON_ERR",
            "message": str(exc),
        },
        "location": {
            "class": "<unknown>",
            "method": last_frame.name if last_frame else "<unknown>",
            "file": (
                last_frame.filename.split("\\")[-1].split("/")[-1] if last_frame else "<unknown>"
            ),
            "line": last_frame.lineno if last_frame else 0,
        },
    }

    if extra_context:
        result["context"] = extra_context

    if include_trace:
        result["stack_trace"] = [
            line.strip()
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__)
            if line.strip()
        ]

    return result


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log an exception as structured JSON, trace included."""
    log_instance = log or logger
    exc_data = format_exception_json(exc, include_trace=True, extra_context=extra_context)
    log_instance.log(level, json.dumps(exc_data, indent=2, default=str))


def get_error_code(exc: Exception) -> str:
    if isinstance(exc, CarFinderError):
        return exc.error_code
    return "PYTHON_ERR"


def get_http_status_code(exc: Exception) -> int:
    """Map exception type to an HTTP status code.

    Rate limits are checked before their parent families so an overloaded
    LLM surfaces as 429 rather than 502.
    """
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, LLMRateLimitError | EmbeddingRateLimitError):
        return 429
    if isinstance(exc, VectorStoreError | EmbeddingError):
        return 503
    if isinstance(exc, LLMError):
        return 502
    if isinstance(exc, ConfigurationError | CatalogError):
        return 500
    if isinstance(exc, CarFinderError):
        return 500

    if isinstance(exc, ValueError):
        return 400
    if isinstance(exc, ConnectionError | TimeoutError):
        return 503

    return 500


def client_error_payload(exc: Exception) -> dict[str, Any]:
    """Client-safe failure body: generic error, technical message, code. No traces.

    Invalid requests echo the validation message as the error so callers can
    fix the request.
    """
    status = get_http_status_code(exc)
    message = exc.message if isinstance(exc, CarFinderError) else str(exc)
    if status == 400:
        error = message
    else:
        error = GENERIC_ERROR_MESSAGES.get(status, GENERIC_ERROR_MESSAGE)
    return {
        "success": False,
        "error": error,
        "message": message,
        "code": get_error_code(exc),
    }
