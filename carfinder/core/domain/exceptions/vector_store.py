"""Vector store exceptions for carfinder."""

from .base import CarFinderError


class VectorStoreError(CarFinderError):
    """Base error for vector store operations."""

    error_code = "CF_VEC_001"


class QdrantConnectionError(VectorStoreError):
    """Failed to connect to Qdrant.

    Common causes:
    - Invalid URL or API key
    - Network connectivity issues
    - Qdrant service is down
    """

    error_code = "CF_VEC_002"


class QdrantQueryError(VectorStoreError):
    """Failed to query Qdrant.

    Common causes:
    - Collection does not exist
    - Missing payload index on vehicle_id or category
    - Embedding dimension mismatch
    """

    error_code = "CF_VEC_003"


class CollectionNotFoundError(VectorStoreError):
    """Requested collection does not exist."""

    error_code = "CF_VEC_004"
