"""Gemini embeddings for queries and specification chunks."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from google import genai

from ....common.rate_limiter import RateLimiter
from ....core.domain.exceptions import (
    CarFinderError,
    EmbeddingAPIError,
    EmbeddingRateLimitError,
)
from ....core.domain.utils import normalize_text
from ....core.ports.embedding_port import EmbeddingPort
from ..gemini_client import create_genai_client, is_rate_limited, is_timeout

logger = logging.getLogger(__name__)

EMBEDDING_BATCH_SIZE = 50
EMBEDDING_DIMENSION = 3072  # gemini-embedding-001 default dimension


class GeminiEmbeddingFunction(EmbeddingPort):
    """Embedding function backed by the google-genai SDK.

    Queries use the RETRIEVAL_QUERY task type and chunks RETRIEVAL_DOCUMENT,
    so both sides of the similarity search live in the same space.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-embedding-001",
        dimension: int = EMBEDDING_DIMENSION,
        timeout_seconds: float = 30.0,
        rate_limiter: RateLimiter | None = None,
        batch_size: int = EMBEDDING_BATCH_SIZE,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.dimension = dimension
        self.timeout_seconds = timeout_seconds
        self.rate_limiter = rate_limiter or RateLimiter(None)
        self.batch_size = batch_size
        self._client: genai.Client | None = None

    def _get_client(self) -> "genai.Client":
        if self._client is None:
            self._client = create_genai_client(self.api_key, self.timeout_seconds)
        return self._client

    def embed_query(self, text: str) -> list[float]:
        """Embed one search query.

        Raises:
            EmbeddingError: The provider failed or returned nothing.
        """
        embeddings = self._embed_texts([normalize_text(text)], task_type="RETRIEVAL_QUERY")
        if not embeddings or not embeddings[0]:
            raise EmbeddingAPIError("Embedding provider returned no vector for the query")
        return embeddings[0]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed chunk texts in batches. A failed batch fails the whole call."""
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = [normalize_text(text) for text in texts[start : start + self.batch_size]]
            embeddings = self._embed_texts(batch, task_type="RETRIEVAL_DOCUMENT")
            if len(embeddings) != len(batch):
                raise EmbeddingAPIError(
                    "Embedding provider returned the wrong number of vectors",
                    context={"expected": len(batch), "received": len(embeddings)},
                )
            all_embeddings.extend(embeddings)
        return all_embeddings

    def _embed_texts(self, texts: list[str], task_type: str) -> list[list[float]]:
        from google.genai import types

        client = self._get_client()
        self.rate_limiter.acquire()
        try:
            result = client.models.embed_content(
                model=self.model_name,
                contents=texts,
                config=types.EmbedContentConfig(
                    task_type=task_type,
                    output_dimensionality=self.dimension,
                ),
            )
        except CarFinderError:
            raise
        except Exception as e:
            if is_rate_limited(e):
                raise EmbeddingRateLimitError(
                    "Embedding provider is rate limiting requests",
                    cause=e,
                    context={"model": self.model_name},
                ) from e
            message = "Embedding request timed out" if is_timeout(e) else "Embedding request failed"
            raise EmbeddingAPIError(
                message,
                cause=e,
                context={"model": self.model_name, "batch_size": len(texts)},
            ) from e

        if not result or not result.embeddings:
            return []
        return [list(embedding.values or []) for embedding in result.embeddings]
