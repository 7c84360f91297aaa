"""Exception hierarchy for carfinder.

Structured exceptions with error codes, automatic location capture,
cause chaining and JSON serialization. Import from this package directly:

    from carfinder.core.domain.exceptions import CarFinderError, QdrantQueryError
"""

from .base import CarFinderError, ExceptionContext
from .catalog import CatalogError, CatalogLoadError, SalesLookupError
from .configuration import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingAPIKeyError,
)
from .embedding import (
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingRateLimitError,
)
from .llm import (
    LLMConnectionError,
    LLMError,
    LLMGenerationError,
    LLMRateLimitError,
    LLMResponseParseError,
)
from .validation import (
    EmptyCandidateListError,
    EmptyConversationError,
    EmptyRequirementsError,
    ValidationError,
)
from .vector_store import (
    CollectionNotFoundError,
    QdrantConnectionError,
    QdrantQueryError,
    VectorStoreError,
)

__all__ = [
    # Base
    "ExceptionContext",
    "CarFinderError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    # Catalog
    "CatalogError",
    "CatalogLoadError",
    "SalesLookupError",
    # Vector Store
    "VectorStoreError",
    "QdrantConnectionError",
    "QdrantQueryError",
    "CollectionNotFoundError",
    # Embedding
    "EmbeddingError",
    "EmbeddingAPIError",
    "EmbeddingRateLimitError",
    # LLM
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMGenerationError",
    "LLMResponseParseError",
    # Validation
    "ValidationError",
    "EmptyRequirementsError",
    "EmptyCandidateListError",
    "EmptyConversationError",
]
