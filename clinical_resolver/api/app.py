"""
FastAPI application for the clinical query resolver.

Exposes query resolution, feedback, statistics and health endpoints on top
of a QueryResolutionOrchestrator held in ``app.state``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from clinical_resolver.core.factory import build_orchestrator
from clinical_resolver.core.orchestrator import QueryResolutionOrchestrator
from clinical_resolver.lib.config import ConfigLoader
from clinical_resolver.lib.errors import ConfigurationError

from .handlers.health import check_health
from .handlers.query import router as query_router
from .middleware.request_logger import RequestLoggerMiddleware
from .models.errors import ERROR_TYPE_CONFIGURATION, create_error_response, server_error

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("Starting clinical resolver API server")

    if getattr(app.state, "orchestrator", None) is None:
        logger.info("Initializing orchestrator from configuration...")
        app.state.orchestrator = build_orchestrator(app.state.config)

    logger.info("Orchestrator initialized successfully")

    yield

    logger.info("Shutting down API server")


def create_app(
    orchestrator: QueryResolutionOrchestrator | None = None,
    config: ConfigLoader | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator (built from config at startup if omitted)
        config: Loaded configuration (``ConfigLoader()`` if omitted)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Clinical Query Resolver API",
        description="Tiered clinical query resolution: knowledge base, cache, premium AI",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.config = config if config is not None else ConfigLoader()
    app.state.orchestrator = orchestrator

    app.add_middleware(RequestLoggerMiddleware)
    logger.info("Request logging middleware enabled")

    @app.exception_handler(ConfigurationError)
    async def configuration_exception_handler(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content=create_error_response(str(exc), ERROR_TYPE_CONFIGURATION).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Unwrap ErrorResponse bodies so errors sit at the top level."""
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            return JSONResponse(status_code=exc.status_code, content=exc.detail)

        return JSONResponse(
            status_code=exc.status_code,
            content=create_error_response(str(exc.detail), "api_error").model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content=server_error().model_dump())

    @app.get("/")
    async def root():
        """API root endpoint."""
        return {
            "message": "Clinical Query Resolver API",
            "version": API_VERSION,
            "docs": "/docs",
            "endpoints": {
                "query": "/v1/query",
                "feedback": "/v1/feedback",
                "stats": "/v1/stats",
                "health": "/health",
            },
        }

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        return await check_health(getattr(request.app.state, "orchestrator", None))

    app.include_router(query_router)

    return app
