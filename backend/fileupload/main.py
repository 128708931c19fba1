"""FileUpload Service - Main FastAPI Application

This module creates and configures the FastAPI application, including:
- Upload router (GET/POST /upload)
- Middleware (request ID correlation)
- Exception handlers
- Health and metrics endpoints
- Static file serving of the public directory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import Settings, get_settings
from .domain.uploads.acceptor import UploadAcceptor
from .domain.uploads.errors import UploadError
from .infrastructure.storage.local_storage_adapter import LocalDiskStorageAdapter
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .uploads.responses import error_response, internal_error_response
from .uploads.router import router as uploads_router

logger = logging.getLogger(__name__)


def ensure_directories(settings: Settings) -> None:
    """Create public, upload and staging directories if they don't exist."""
    for directory in (settings.PUBLIC_DIR, settings.UPLOAD_DIR, settings.STAGING_DIR):
        directory.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: create working directories
    - Shutdown: log only; nothing to release
    """
    settings: Settings = app.state.settings
    logger.info("FileUpload service starting up...")
    logger.info(
        f"Upload dir: {settings.UPLOAD_DIR.resolve()}, staging dir: {settings.STAGING_DIR.resolve()}, "
        f"max size: {settings.max_size_bytes or 'unbounded'}, response format: {settings.RESPONSE_FORMAT}"
    )

    yield

    logger.info("FileUpload service shutting down...")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the service's exception handlers to app."""

    @app.exception_handler(UploadError)
    async def upload_exception_handler(request: Request, exc: UploadError):
        """Render rejected uploads in the configured response format."""
        if exc.is_client_error:
            logger.warning(
                f"Upload rejected on {request.method} {request.url.path}: {exc.code}",
                extra={"upload_outcome": exc.code},
            )
        else:
            logger.error(
                f"Upload failed on {request.method} {request.url.path}: {exc.code}",
                extra={"upload_outcome": exc.code},
                exc_info=exc.__cause__ or exc,
            )
        return error_response(exc, app.state.settings.RESPONSE_FORMAT)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> Response:
        """Handle uncaught exceptions.

        Full details are logged but not exposed to the client.
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}",
            exc_info=exc
        )
        return internal_error_response(app.state.settings.RESPONSE_FORMAT)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Application factory.

    Args:
        settings: Explicit settings (tests pass their own); defaults to
            environment-derived settings

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    ensure_directories(settings)

    production = settings.ENV == "production"
    app = FastAPI(
        title="FileUpload API",
        description="Single-file HTTP upload service with type and size validation",
        version=__version__,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
        openapi_url=None if production else "/openapi.json",
        lifespan=lifespan,
    )

    storage = LocalDiskStorageAdapter(settings.UPLOAD_DIR)
    app.state.settings = settings
    app.state.acceptor = UploadAcceptor(settings.upload_policy(), storage)

    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    app.include_router(observability_router)
    app.include_router(uploads_router)

    # Everything else: files under the public directory, 404 when absent
    app.mount("/", StaticFiles(directory=settings.PUBLIC_DIR, html=True), name="public")

    return app


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    run()
