"""Composition root wiring adapters to the pipeline services.

The container is built once per process (API lifespan or CLI command) and
passed explicitly; nothing here is a module-level singleton.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..adapters.outbound.catalog import JsonCatalogStore, JsonSalesLookup
from ..adapters.outbound.embedding import GeminiEmbeddingFunction
from ..adapters.outbound.llm import GeminiLLMAdapter
from ..adapters.outbound.vector_store import QdrantChunkStore
from ..common.rate_limiter import RateLimiter
from ..config.settings import Settings
from ..core.ports import CatalogPort, ChunkStorePort, EmbeddingPort, LLMPort, SalesLookupPort
from ..core.services import (
    ChunkIndexer,
    ConversationService,
    CriteriaConverter,
    EmbeddingSearchService,
    PopularityRanker,
    RecommendationPipeline,
    RequirementAnalyzer,
    ResultHydrator,
    StructuredFilter,
)

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Everything a request needs, built once and shared read-only."""

    settings: Settings
    catalog: CatalogPort
    sales_lookup: SalesLookupPort
    chunk_store: ChunkStorePort
    embeddings: EmbeddingPort
    llm: LLMPort
    structured_filter: StructuredFilter
    pipeline: RecommendationPipeline
    converter: CriteriaConverter
    conversation: ConversationService
    indexer: ChunkIndexer

    def initialize(self) -> None:
        """Load the static datasets. Failures here must stop the process.

        Raises:
            CatalogLoadError: A catalog or review file is missing or malformed.
            SalesLookupError: The sales lookup table is missing or malformed.
        """
        vehicles = self.catalog.load()
        volumes = self.sales_lookup.load()
        logger.info(
            "Container initialized: %d vehicles, %d sales entries", len(vehicles), len(volumes)
        )


def assemble(
    settings: Settings,
    catalog: CatalogPort,
    sales_lookup: SalesLookupPort,
    chunk_store: ChunkStorePort,
    embeddings: EmbeddingPort,
    llm: LLMPort,
) -> Container:
    """Wire services around the given adapters."""
    structured_filter = StructuredFilter(catalog)
    converter = CriteriaConverter(llm, max_retries=settings.conversation_max_retries)
    pipeline = RecommendationPipeline(
        structured_filter=structured_filter,
        embedding_search=EmbeddingSearchService(
            embeddings,
            chunk_store,
            similarity_threshold=settings.similarity_threshold,
            max_chunk_rows=settings.max_chunk_rows,
        ),
        analyzer=RequirementAnalyzer(
            llm,
            max_ranked=settings.max_ranked_vehicles,
            max_retries=settings.ranking_max_retries,
            enforce_brand_filter=settings.enforce_brand_filter,
        ),
        ranker=PopularityRanker(catalog, sales_lookup, limit=settings.final_result_limit),
        hydrator=ResultHydrator(catalog),
        analysis_candidate_limit=settings.analysis_candidate_limit,
    )
    return Container(
        settings=settings,
        catalog=catalog,
        sales_lookup=sales_lookup,
        chunk_store=chunk_store,
        embeddings=embeddings,
        llm=llm,
        structured_filter=structured_filter,
        pipeline=pipeline,
        converter=converter,
        conversation=ConversationService(
            llm, converter, max_retries=settings.conversation_max_retries
        ),
        indexer=ChunkIndexer(embeddings, chunk_store, batch_size=settings.embedding_batch_size),
    )


def build_container(settings: Settings) -> Container:
    """Build the production container from settings. Does not load data yet."""
    logger.info("Building container (composition root)...")
    embeddings = GeminiEmbeddingFunction(
        api_key=settings.google_api_key,
        model_name=settings.embedding_model,
        dimension=settings.embedding_dimension,
        timeout_seconds=settings.embedding_timeout_seconds,
        rate_limiter=RateLimiter(settings.embedding_requests_per_minute),
        batch_size=settings.embedding_batch_size,
    )
    llm = GeminiLLMAdapter(
        api_key=settings.google_api_key,
        model=settings.llm_model,
        timeout_seconds=settings.llm_timeout_seconds,
        rate_limiter=RateLimiter(settings.llm_requests_per_minute),
    )
    chunk_store = QdrantChunkStore(
        url=settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        collection_name=settings.qdrant_collection,
        dimension=settings.embedding_dimension,
        timeout_seconds=settings.vector_store_timeout_seconds,
    )
    return assemble(
        settings,
        catalog=JsonCatalogStore(settings.vehicle_paths, settings.reviews_path),
        sales_lookup=JsonSalesLookup(settings.sales_lookup_path),
        chunk_store=chunk_store,
        embeddings=embeddings,
        llm=llm,
    )
