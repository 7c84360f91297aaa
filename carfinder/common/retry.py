"""Bounded exponential backoff for provider calls that hit rate limits."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from ..core.domain.exceptions import EmbeddingRateLimitError, LLMRateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_DELAY_SECONDS = 1.0
MAX_DELAY_SECONDS = 10.0
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (LLMRateLimitError, EmbeddingRateLimitError)


def backoff_delay(attempt: int) -> float:
    """Delay before retry ``attempt`` (0-based): 1s, 2s, 4s... capped at 10s."""
    return min(BASE_DELAY_SECONDS * (2**attempt), MAX_DELAY_SECONDS)


def call_with_retry(
    operation: Callable[[], T],
    max_retries: int,
    retry_on: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying up to ``max_retries`` times on ``retry_on`` errors.

    Any other exception propagates immediately. When retries are exhausted
    the last retryable error is re-raised.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except retry_on as e:
            if attempt >= max_retries:
                raise
            delay = backoff_delay(attempt)
            logger.warning(
                "Provider overloaded (%s), retry %d/%d in %.1fs",
                type(e).__name__,
                attempt + 1,
                max_retries,
                delay,
            )
            sleep(delay)
            attempt += 1
