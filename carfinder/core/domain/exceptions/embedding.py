"""Embedding exceptions for carfinder."""

from .base import CarFinderError


class EmbeddingError(CarFinderError):
    """Failed to generate embeddings."""

    error_code = "CF_EMB_001"


class EmbeddingAPIError(EmbeddingError):
    """Embedding API returned an error."""

    error_code = "CF_EMB_002"


class EmbeddingRateLimitError(EmbeddingError):
    """Embedding API rate limit exceeded."""

    error_code = "CF_EMB_003"
