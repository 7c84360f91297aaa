"""Semantic search over specification chunks, scoped to pre-filtered vehicles."""

import logging
from dataclasses import dataclass, field

from ..domain import SpecificationChunk, VehicleMatch
from ..domain.utils import make_model_key, parse_identity
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_store_port import ChunkStorePort

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "reliable family vehicle"
DEFAULT_RESULT_LIMIT = 5
SIMILARITY_THRESHOLD = 0.38
MAX_CHUNK_ROWS = 1000


def build_query(requirements: list[str] | tuple[str, ...] | str | None) -> str:
    """Join requirement strings into one query, falling back to a generic one."""
    if isinstance(requirements, str):
        text = requirements.strip()
    else:
        text = " ".join(part.strip() for part in (requirements or []) if part and part.strip())
    return text or DEFAULT_QUERY


@dataclass
class _Candidate:
    vehicle_id: str
    make: str
    model: str
    identity: SpecificationChunk
    chunks: list[SpecificationChunk] = field(default_factory=list)

    @property
    def scores(self) -> list[float]:
        return [c.similarity for c in self.chunks if c.similarity is not None]

    @property
    def avg_similarity(self) -> float:
        scores = self.scores
        return sum(scores) / len(scores) if scores else 0.0

    @property
    def max_similarity(self) -> float:
        return max(self.scores, default=0.0)

    def to_match(self) -> VehicleMatch:
        ordered = sorted(
            self.chunks,
            key=lambda c: c.similarity if c.similarity is not None else 0.0,
            reverse=True,
        )
        return VehicleMatch(
            vehicle_id=self.vehicle_id,
            make=self.make,
            model=self.model,
            identity_content=self.identity.content,
            avg_similarity=self.avg_similarity,
            max_similarity=self.max_similarity,
            chunks=ordered,
        )


class EmbeddingSearchService:
    """Ranks candidate vehicles by how well their specification text matches a query.

    Only one trim variant per make/model survives, so a short-list is not
    crowded out by near-identical variants of one model.
    """

    def __init__(
        self,
        embeddings: EmbeddingPort,
        chunk_store: ChunkStorePort,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        max_chunk_rows: int = MAX_CHUNK_ROWS,
    ) -> None:
        self.embeddings = embeddings
        self.chunk_store = chunk_store
        self.similarity_threshold = similarity_threshold
        self.max_chunk_rows = max_chunk_rows

    def search(
        self,
        requirements: list[str] | tuple[str, ...] | str | None,
        vehicle_ids: list[str],
        limit: int = DEFAULT_RESULT_LIMIT,
    ) -> list[VehicleMatch]:
        """Return up to ``limit`` deduplicated vehicles, best max similarity first.

        Args:
            requirements: Free-text requirement strings, joined into one query.
            vehicle_ids: Pre-filtered candidate ids. Empty means no search at all.
            limit: Maximum number of vehicles to return.

        Raises:
            EmbeddingError: The query could not be embedded.
            VectorStoreError: The chunk store query failed.
        """
        if not vehicle_ids:
            logger.info("Embedding search skipped: no candidate vehicles")
            return []

        query = build_query(requirements)
        logger.info("Embedding search over %d vehicles: %r", len(vehicle_ids), query)
        query_vector = self.embeddings.embed_query(query)

        chunks = self.chunk_store.search_chunks(
            query_vector,
            vehicle_ids,
            threshold=self.similarity_threshold,
            limit=self.max_chunk_rows,
        )
        if not chunks:
            logger.info("No chunks above similarity %.2f", self.similarity_threshold)
            return []

        grouped: dict[str, list[SpecificationChunk]] = {}
        for chunk in chunks:
            grouped.setdefault(chunk.vehicle_id, []).append(chunk)
        logger.debug("%d chunks across %d vehicles", len(chunks), len(grouped))

        identities = self.chunk_store.get_identity_chunks(query_vector, list(grouped))
        candidates = self._deduplicate(grouped, identities)

        matches = [candidate.to_match() for candidate in candidates]
        matches.sort(key=lambda m: m.max_similarity, reverse=True)
        logger.info(
            "Embedding search: %d vehicles matched, %d unique models, returning %d",
            len(grouped),
            len(candidates),
            min(limit, len(matches)),
        )
        return matches[:limit]

    def _deduplicate(
        self,
        grouped: dict[str, list[SpecificationChunk]],
        identities: dict[str, SpecificationChunk],
    ) -> list[_Candidate]:
        """Keep the variant with the highest average similarity per make/model.

        Variants are compared on their above-threshold chunks only. The
        identity chunk joins the winner afterwards, even when it scored below
        the threshold. Vehicles whose identity chunk is missing or unparseable
        are dropped. On equal averages the vehicle seen first wins.
        """
        best: dict[str, _Candidate] = {}
        for vehicle_id, matched in grouped.items():
            identity = identities.get(vehicle_id)
            parsed = parse_identity(identity.content) if identity else None
            key = make_model_key(*parsed) if parsed else None
            if identity is None or parsed is None or key is None:
                logger.warning("Dropping %s: no usable identity chunk", vehicle_id)
                continue

            candidate = _Candidate(vehicle_id, parsed[0], parsed[1], identity, list(matched))
            current = best.get(key)
            if current is None or candidate.avg_similarity > current.avg_similarity:
                best[key] = candidate

        for candidate in best.values():
            if not any(c.is_identity for c in candidate.chunks):
                candidate.chunks.append(candidate.identity)
        return list(best.values())
