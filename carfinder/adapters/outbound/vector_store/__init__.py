from .qdrant_adapter import QdrantChunkStore

__all__ = ["QdrantChunkStore"]
