"""Embeds catalog specification chunks and writes them to the chunk store."""

import logging
from collections.abc import Callable
from dataclasses import replace

from ..domain import SpecificationChunk, VehicleRecord
from ..domain.utils import normalize_text
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_store_port import ChunkStorePort

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class ChunkIndexer:
    def __init__(
        self,
        embeddings: EmbeddingPort,
        chunk_store: ChunkStorePort,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.embeddings = embeddings
        self.chunk_store = chunk_store
        self.batch_size = batch_size

    def index(
        self,
        vehicles: list[VehicleRecord],
        progress: Callable[[int, int], None] | None = None,
    ) -> int:
        """Embed and upsert every chunk of ``vehicles``.

        Each vehicle contributes its own chunks plus a synthesized identity
        chunk when it has none. Re-indexing overwrites points in place since
        point ids derive from chunk ids.

        Args:
            vehicles: Catalog records to index.
            progress: Optional callback receiving (chunks written, total chunks).

        Returns:
            Number of chunks written.
        """
        chunks: list[SpecificationChunk] = []
        for vehicle in vehicles:
            for chunk in vehicle.specification_chunks():
                content = normalize_text(chunk.content)
                if content:
                    chunks.append(replace(chunk, content=content))

        total = len(chunks)
        logger.info("Indexing %d chunks for %d vehicles", total, len(vehicles))
        written = 0
        for start in range(0, total, self.batch_size):
            batch = chunks[start : start + self.batch_size]
            vectors = self.embeddings.embed_documents([chunk.content for chunk in batch])
            written += self.chunk_store.add_chunks(batch, vectors)
            if progress:
                progress(written, total)

        logger.info("Indexed %d chunks", written)
        return written
