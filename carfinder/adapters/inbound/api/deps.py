"""FastAPI dependency injection for carfinder.

The container is built once in the application lifespan and stored on
``app.state``; tests swap in a container of fakes the same way.
"""

from fastapi import Depends, Request

from ....composition import Container
from ....core.ports import CatalogPort, ChunkStorePort
from ....core.services import (
    ConversationService,
    CriteriaConverter,
    RecommendationPipeline,
    StructuredFilter,
)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_pipeline(container: Container = Depends(get_container)) -> RecommendationPipeline:
    return container.pipeline


def get_structured_filter(container: Container = Depends(get_container)) -> StructuredFilter:
    return container.structured_filter


def get_converter(container: Container = Depends(get_container)) -> CriteriaConverter:
    return container.converter


def get_conversation(container: Container = Depends(get_container)) -> ConversationService:
    return container.conversation


def get_catalog(container: Container = Depends(get_container)) -> CatalogPort:
    return container.catalog


def get_chunk_store(container: Container = Depends(get_container)) -> ChunkStorePort:
    return container.chunk_store
