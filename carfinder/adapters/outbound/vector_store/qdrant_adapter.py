"""Qdrant chunk store for vehicle specification chunks.

Every point carries ``vehicle_id``, ``category``, ``content`` and
``chunk_id`` in its payload. ``vehicle_id`` and ``category`` are indexed
as keywords so candidate restriction happens inside Qdrant.
"""

import logging
import uuid
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from qdrant_client import QdrantClient

from ....core.domain import IDENTITY_CATEGORY, SpecificationChunk
from ....core.domain.exceptions import (
    CarFinderError,
    CollectionNotFoundError,
    QdrantConnectionError,
    QdrantQueryError,
)
from ....core.domain.utils import normalize_text
from ....core.ports.vector_store_port import ChunkStorePort

logger = logging.getLogger(__name__)

UPSERT_BATCH_SIZE = 100
EMBEDDING_DIMENSION = 3072
POINT_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "carfinder/vehicle-chunks")
INDEXED_FIELDS = ("vehicle_id", "category")


def point_id_for(chunk_id: str) -> str:
    """Deterministic point id so re-indexing overwrites instead of duplicating."""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, chunk_id))


class QdrantChunkStore(ChunkStorePort):
    """Specification chunk index backed by one Qdrant collection.

    The client and its connection pool are created lazily and shared by
    every request for the lifetime of the process.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        collection_name: str = "vehicle_chunks",
        dimension: int = EMBEDDING_DIMENSION,
        timeout_seconds: float = 30.0,
        client: "QdrantClient | None" = None,
    ) -> None:
        """Initialize the chunk store.

        Args:
            url: Qdrant cluster URL, or ``:memory:`` for an in-process store.
            api_key: Qdrant API key (empty for local instances).
            collection_name: Collection holding the chunks.
            dimension: Embedding vector size.
            timeout_seconds: Per-request timeout.
            client: Pre-built client, mainly for tests.
        """
        self.url = url
        self.api_key = api_key
        self.collection_name = collection_name
        self.dimension = dimension
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._collection_ready = False

    def _get_client(self) -> "QdrantClient":
        """Get or create the Qdrant client connection."""
        if self._client is None:
            try:
                from qdrant_client import QdrantClient

                if self.url == ":memory:":
                    self._client = QdrantClient(location=":memory:")
                else:
                    self._client = QdrantClient(
                        url=self.url,
                        api_key=self.api_key or None,
                        timeout=int(self.timeout_seconds),
                    )
                logger.info("Connected to Qdrant at: %s", self.url)
            except Exception as e:
                raise QdrantConnectionError(
                    f"Failed to connect to Qdrant at {self.url}",
                    cause=e,
                    context={"url": self.url},
                ) from e
        return self._client

    def ensure_collection(self) -> None:
        """Create the collection and its payload indexes when missing."""
        from qdrant_client.http import models

        if self._collection_ready:
            return
        client = self._get_client()
        try:
            if not client.collection_exists(self.collection_name):
                logger.info("Creating collection %s", self.collection_name)
                client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=models.VectorParams(
                        size=self.dimension,
                        distance=models.Distance.COSINE,
                    ),
                )
            for field_name in INDEXED_FIELDS:
                client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=models.PayloadSchemaType.KEYWORD,
                )
            self._collection_ready = True
        except Exception as e:
            raise QdrantConnectionError(
                f"Failed to prepare collection {self.collection_name}",
                cause=e,
                context={"collection": self.collection_name},
            ) from e

    def reset(self) -> None:
        """Drop and recreate the collection."""
        client = self._get_client()
        try:
            client.delete_collection(collection_name=self.collection_name)
            logger.info("Deleted collection: %s", self.collection_name)
            self._collection_ready = False
        except Exception as e:
            raise QdrantQueryError(
                f"Failed to delete collection {self.collection_name}",
                cause=e,
                context={"collection": self.collection_name},
            ) from e
        self.ensure_collection()

    def _query(self, **kwargs: Any) -> list[Any]:
        client = self._get_client()
        try:
            response = client.query_points(
                collection_name=self.collection_name,
                with_payload=True,
                **kwargs,
            )
        except CarFinderError:
            raise
        except Exception as e:
            if getattr(e, "status_code", None) == 404:
                raise CollectionNotFoundError(
                    f"Collection {self.collection_name} does not exist; run `carfinder index`",
                    cause=e,
                    context={"collection": self.collection_name},
                ) from e
            raise QdrantQueryError(
                "Chunk similarity query failed",
                cause=e,
                context={"collection": self.collection_name},
            ) from e
        return list(response.points)

    @staticmethod
    def _to_chunk(point: Any) -> SpecificationChunk | None:
        payload = dict(point.payload or {})
        vehicle_id = payload.get("vehicle_id")
        if not vehicle_id:
            return None
        return SpecificationChunk(
            vehicle_id=str(vehicle_id),
            category=str(payload.get("category") or ""),
            content=normalize_text(str(payload.get("content") or "")),
            similarity=float(point.score) if point.score is not None else None,
            chunk_id=payload.get("chunk_id"),
        )

    @staticmethod
    def _vehicle_filter(vehicle_ids: list[str], category: str | None = None):
        from qdrant_client.models import FieldCondition, Filter, MatchAny, MatchValue

        conditions = [FieldCondition(key="vehicle_id", match=MatchAny(any=list(vehicle_ids)))]
        if category:
            conditions.append(FieldCondition(key="category", match=MatchValue(value=category)))
        return Filter(must=conditions)

    def search_chunks(
        self,
        query_vector: list[float],
        vehicle_ids: list[str],
        threshold: float,
        limit: int,
    ) -> list[SpecificationChunk]:
        if not vehicle_ids:
            return []

        points = self._query(
            query=query_vector,
            query_filter=self._vehicle_filter(vehicle_ids),
            score_threshold=threshold,
            limit=limit,
        )
        chunks = []
        for point in points:
            # score_threshold is inclusive in Qdrant; the cut here is strict
            if point.score is None or point.score <= threshold:
                continue
            chunk = self._to_chunk(point)
            if chunk is not None:
                chunks.append(chunk)
        chunks.sort(key=lambda c: c.similarity or 0.0, reverse=True)
        logger.debug("Qdrant returned %d chunks above %.2f", len(chunks), threshold)
        return chunks

    def get_identity_chunks(
        self, query_vector: list[float], vehicle_ids: list[str]
    ) -> dict[str, SpecificationChunk]:
        if not vehicle_ids:
            return {}

        points = self._query(
            query=query_vector,
            query_filter=self._vehicle_filter(vehicle_ids, category=IDENTITY_CATEGORY),
            limit=len(vehicle_ids),
        )
        identities: dict[str, SpecificationChunk] = {}
        for point in points:
            chunk = self._to_chunk(point)
            if chunk is not None and chunk.vehicle_id not in identities:
                identities[chunk.vehicle_id] = chunk
        return identities

    def add_chunks(
        self, chunks: list[SpecificationChunk], vectors: list[list[float]]
    ) -> int:
        """Upsert chunks with their vectors.

        Args:
            chunks: Chunks with ``chunk_id`` set.
            vectors: One embedding per chunk, in the same order.

        Returns:
            Number of chunks written.
        """
        if not chunks:
            return 0
        if len(chunks) != len(vectors):
            raise QdrantQueryError(
                "Chunk and vector counts differ",
                context={"chunks": len(chunks), "vectors": len(vectors)},
            )

        from qdrant_client.models import PointStruct

        self.ensure_collection()
        client = self._get_client()
        points = [
            PointStruct(
                id=point_id_for(chunk.chunk_id or f"{chunk.vehicle_id}:{chunk.category}"),
                vector=vector,
                payload={
                    "vehicle_id": chunk.vehicle_id,
                    "category": chunk.category,
                    "content": normalize_text(chunk.content),
                    "chunk_id": chunk.chunk_id,
                },
            )
            for chunk, vector in zip(chunks, vectors)
        ]

        for start in range(0, len(points), UPSERT_BATCH_SIZE):
            try:
                client.upsert(
                    collection_name=self.collection_name,
                    points=points[start : start + UPSERT_BATCH_SIZE],
                )
            except Exception as e:
                raise QdrantQueryError(
                    "Failed to upsert chunks",
                    cause=e,
                    context={"collection": self.collection_name, "offset": start},
                ) from e

        logger.info("Upserted %d chunks into %s", len(points), self.collection_name)
        return len(points)

    def get_collection_stats(self) -> dict[str, Any]:
        """Point count and status, or ``unavailable`` when Qdrant cannot answer."""
        try:
            client = self._get_client()
            info = client.get_collection(collection_name=self.collection_name)
            return {
                "collection": self.collection_name,
                "count": info.points_count or 0,
                "status": str(info.status.value if hasattr(info.status, "value") else info.status),
            }
        except Exception as e:
            logger.warning("Failed to get stats for %s: %s", self.collection_name, e)
            return {"collection": self.collection_name, "count": 0, "status": "unavailable"}
