"""FastAPI application for Blogstore.

This module provides the application factory with health endpoints, post
routes, error mapping and lifecycle management.

Run with:
    uvicorn blogstore.main:app --reload

Examples:
    >>> # Health check
    >>> curl http://localhost:8000/health
    OK

Tests:
    - tests/unit/test_main.py
    - tests/integration/test_api_posts.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException

from blogstore import __version__
from blogstore.api import posts_router
from blogstore.config import Settings, get_settings
from blogstore.core.publisher import PublishContext, PublishService
from blogstore.database import (
    check_db_connection,
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from blogstore.errors import BlogstoreError
from blogstore.repository import PostRepository
from blogstore.storage.service import StorageService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _error(status_code: int, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "details": details},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Explicit settings; defaults to the cached environment settings.

    Returns:
        Configured FastAPI app. Stores are opened in the lifespan.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the stores on startup, dispose the engine on shutdown."""
        logger.info(f"Starting Blogstore v{__version__}")

        engine = create_engine_from_settings(settings)
        await init_db(engine)

        storage = StorageService.from_config(settings.get_storage_config())
        posts = PostRepository(create_session_factory(engine))

        app.state.engine = engine
        app.state.publisher = PublishService(
            PublishContext.from_settings(settings, storage=storage, posts=posts)
        )

        if not settings.UPLOAD_TOKEN:
            logger.warning("UPLOAD_TOKEN is not set; all uploads will be refused")

        yield

        logger.info("Shutting down Blogstore")
        await engine.dispose()

    app = FastAPI(
        title="Blogstore",
        description="Content publishing backend",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(posts_router)

    @app.exception_handler(BlogstoreError)
    async def blogstore_exception_handler(request: Request, exc: BlogstoreError):
        """Map pipeline errors to their status codes."""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc}")
        return _error(exc.status_code, exc.public_message, exc.details)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with consistent response format."""
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return _error(status.HTTP_400_BAD_REQUEST, "Validation failed", details)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception(f"Unexpected error: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """Root endpoint with basic info."""
        return {
            "name": "Blogstore",
            "version": __version__,
            "health": "/health",
        }

    @app.get("/health", response_class=PlainTextResponse, tags=["Health"])
    async def health_check() -> str:
        """Liveness check."""
        return "OK"

    @app.get("/health/ready", response_class=PlainTextResponse, tags=["Health"])
    async def readiness_check(request: Request) -> PlainTextResponse:
        """Readiness check: the metadata store answers queries."""
        engine = getattr(request.app.state, "engine", None)
        if engine is None or not await check_db_connection(engine):
            return PlainTextResponse(
                "Database unavailable",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return PlainTextResponse("OK")

    return app


app = create_app()


# Entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "blogstore.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().DEBUG,
    )
