"""Health check endpoints."""

from fastapi import APIRouter, Depends

from ..... import __version__
from .....core.ports import CatalogPort, ChunkStorePort
from ..deps import get_catalog, get_chunk_store
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Basic liveness check. Touches no collaborators."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        vector_store="not_checked",
    )


@router.get("/ready", response_model=HealthResponse)
def readiness_check(
    catalog: CatalogPort = Depends(get_catalog),
    chunk_store: ChunkStorePort = Depends(get_chunk_store),
) -> HealthResponse:
    """Readiness probe: catalog size and chunk collection count.

    The chunk store reports ``unavailable`` instead of raising, so the probe
    degrades rather than fails while Qdrant is unreachable.
    """
    stats = chunk_store.get_collection_stats()
    count = stats.get("count", 0)
    vs_status = f"{stats.get('status', 'unknown')} ({count} chunks)"
    vehicles = len(catalog.get_all())

    return HealthResponse(
        status="ready" if vehicles and count else "degraded",
        version=__version__,
        catalog_vehicles=vehicles,
        vector_store=vs_status,
    )
