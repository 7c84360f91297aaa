"""Ports: abstract collaborators the core services depend on."""

from .catalog_port import CatalogPort
from .embedding_port import EmbeddingPort
from .llm_port import LLMPort
from .sales_lookup_port import SalesLookupPort
from .vector_store_port import ChunkStorePort

__all__ = [
    "CatalogPort",
    "ChunkStorePort",
    "EmbeddingPort",
    "LLMPort",
    "SalesLookupPort",
]
