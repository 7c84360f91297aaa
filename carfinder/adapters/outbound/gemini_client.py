"""Shared google-genai client construction and error classification."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from google import genai

from ...core.domain.exceptions import MissingAPIKeyError

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS_CODES = {429, 503, 529}
RATE_LIMIT_MARKERS = ("quota", "rate limit", "resource_exhausted", "overloaded", "unavailable")


def create_genai_client(api_key: str, timeout_seconds: float) -> "genai.Client":
    """Build a google-genai client with a per-request timeout.

    Raises:
        MissingAPIKeyError: ``api_key`` is empty.
    """
    if not api_key:
        raise MissingAPIKeyError(
            "Google API key not set. Set GOOGLE_API_KEY in your environment or .env file.",
            context={"setting": "google_api_key"},
        )

    from google import genai
    from google.genai import types

    client = genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
    )
    logger.info("Gemini client initialized (timeout %.0fs)", timeout_seconds)
    return client


def is_rate_limited(error: Exception) -> bool:
    """True for quota, rate-limit and overload responses, which are safe to retry."""
    from google.genai import errors

    if isinstance(error, errors.APIError) and error.code in RATE_LIMIT_STATUS_CODES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def is_timeout(error: Exception) -> bool:
    import httpx

    return isinstance(error, TimeoutError | httpx.TimeoutException)
