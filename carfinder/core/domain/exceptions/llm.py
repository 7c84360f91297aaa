"""LLM exceptions for carfinder."""

from .base import CarFinderError


class LLMError(CarFinderError):
    """Base error for LLM operations."""

    error_code = "CF_LLM_001"


class LLMConnectionError(LLMError):
    """Failed to connect to LLM provider.

    Common causes:
    - Invalid API key
    - Network issues
    - Request timed out
    """

    error_code = "CF_LLM_002"


class LLMRateLimitError(LLMError):
    """LLM provider is rate limiting or overloaded.

    Safe to retry after a backoff.
    """

    error_code = "CF_LLM_003"


class LLMGenerationError(LLMError):
    """Failed to generate LLM response.

    Common causes:
    - Content filtered by safety settings
    - Token limit exceeded
    - Empty completion
    """

    error_code = "CF_LLM_004"


class LLMResponseParseError(LLMError):
    """Completion did not contain a usable structured payload."""

    error_code = "CF_LLM_005"
