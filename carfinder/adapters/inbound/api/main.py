"""FastAPI application for the carfinder API."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .... import __version__
from ....composition import Container, build_container
from ....config.logging import setup_logging
from ....config.settings import get_settings
from ....core.domain.exceptions import CarFinderError
from ...common.exception_handler import (
    client_error_payload,
    get_http_status_code,
    log_exception,
)
from .routers import catalog, conversation, health, recommend

logger = logging.getLogger(__name__)

# Determine if we're in debug mode (logs full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"


def _describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid request: " + "; ".join(problems)


def create_app(container: Container | None = None) -> FastAPI:
    """Build the application.

    Args:
        container: Pre-built container. When omitted the lifespan builds one
            from settings and loads the catalog; a load failure aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container is None:
            settings = get_settings()
            setup_logging(
                level="DEBUG" if DEBUG_MODE else settings.log_level,
                json_format=settings.log_json,
            )
            built = build_container(settings)
            built.initialize()
            app.state.container = built
        else:
            app.state.container = container

        logger.info("carfinder API starting up...")
        logger.info("API docs available at /docs")
        logger.info("Debug mode: %s", "ENABLED" if DEBUG_MODE else "DISABLED")
        yield
        logger.info("carfinder API shutting down...")

    settings = container.settings if container is not None else get_settings()

    app = FastAPI(
        title="carfinder API",
        description=(
            "Vehicle recommendations: structured catalog filtering, semantic search over "
            "specification chunks, LLM requirement analysis and sales-volume ranking."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(recommend.router)
    app.include_router(conversation.router)
    app.include_router(catalog.router)

    @app.exception_handler(CarFinderError)
    async def carfinder_error_handler(request: Request, exc: CarFinderError) -> JSONResponse:
        """Structured failure body with the mapped status. No stack traces."""
        log_exception(exc, extra_context={"path": str(request.url.path), "method": request.method})
        return JSONResponse(status_code=get_http_status_code(exc), content=client_error_payload(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _describe_validation_error(exc)
        logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"success": False, "error": message})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log_exception(exc, extra_context={"path": str(request.url.path), "method": request.method})
        status = get_http_status_code(exc)
        return JSONResponse(status_code=status, content=client_error_payload(exc))

    return app


# Export for uvicorn
app = create_app()

__all__ = ["app", "create_app"]
