"""Chunk Store Port Interface."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain import SpecificationChunk


class ChunkStorePort(ABC):
    """Abstract interface for the specification chunk index."""

    @abstractmethod
    def search_chunks(
        self,
        query_vector: list[float],
        vehicle_ids: list[str],
        threshold: float,
        limit: int,
    ) -> list[SpecificationChunk]:
        """Chunks of the given vehicles scoring strictly above ``threshold``.

        Results are ordered by similarity, highest first.
        """
        ...

    @abstractmethod
    def get_identity_chunks(
        self, query_vector: list[float], vehicle_ids: list[str]
    ) -> dict[str, SpecificationChunk]:
        """Identity chunk per vehicle id, scored against ``query_vector``."""
        ...

    @abstractmethod
    def add_chunks(
        self, chunks: list[SpecificationChunk], vectors: list[list[float]]
    ) -> int:
        """Upsert chunks with precomputed vectors; returns the number written."""
        ...

    @abstractmethod
    def get_collection_stats(self) -> dict[str, Any]: ...

    @abstractmethod
    def reset(self) -> None:
        """Drop every indexed chunk and recreate an empty collection."""
        ...
