"""
WordShelf Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app()` assembles middleware, exception handlers and routes;
       the lifespan builds the catalog (record stores + image uploaders)
       and closes it on shutdown.
Who:   uvicorn (`uvicorn wordshelf.main:app`) and the test suite.

Application Layout:
    Middleware:   RequestID → RequestLogging → GZip → CORS
    Routes:       /api/words, /api/quotes, /files/{path}, /health
    Errors:       ValidationFailed→400  NotFound→404  InvalidTransition→409
                  UploadFailed→502      StoreUnavailable→503  other→500

Lifecycle:
    Startup:
    1. Configure logging
    2. Report missing backend credentials
    3. Build the catalog and keep it on app.state.catalog
    Shutdown:
    1. Close the catalog (engine, motor client, httpx client)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from wordshelf import __version__
from wordshelf.config import Settings, settings
from wordshelf.exceptions import (
    InvalidTransition,
    NotFound,
    StoreUnavailable,
    UploadFailed,
    ValidationFailed,
    WordShelfError,
)
from wordshelf.middleware.logging import RequestLoggingMiddleware
from wordshelf.middleware.request_id import RequestIDMiddleware, request_id_var
from wordshelf.routes import files, health, quotes, words
from wordshelf.services.catalog import Catalog, build_catalog

logger = logging.getLogger(__name__)

CatalogFactory = Callable[[Settings], Awaitable[Catalog]]


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the whole process, once at startup.

    Format: 2024-01-15T12:00:00 [INFO] wordshelf.stores.sql_store: Created word ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details,
            "request_id": request_id_var.get(""),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to HTTP responses.

    4xx responses carry the exception context as `details`. 5xx responses
    never do; their context is logged server-side only.
    """

    @app.exception_handler(ValidationFailed)
    async def handle_validation_failed(request: Request, exc: ValidationFailed):
        logger.warning("[%s] Validation failed: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(NotFound)
    async def handle_not_found(request: Request, exc: NotFound):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(InvalidTransition)
    async def handle_invalid_transition(request: Request, exc: InvalidTransition):
        return _error_response(409, "invalid_transition", exc.message, exc.context)

    @app.exception_handler(UploadFailed)
    async def handle_upload_failed(request: Request, exc: UploadFailed):
        logger.error(
            "[%s] Upload failed: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error_response(502, "upload_failed", exc.message)

    @app.exception_handler(StoreUnavailable)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailable):
        logger.error(
            "[%s] Store unavailable: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(503, "store_unavailable", exc.message)

    @app.exception_handler(WordShelfError)
    async def handle_wordshelf_error(request: Request, exc: WordShelfError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    catalog_factory: CatalogFactory = build_catalog,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings:     Settings to run with (defaults to the env-loaded ones)
        catalog_factory:  Builds the catalog at startup; tests pass their own
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(app_settings.log_level)
        logger.info("=" * 60)
        logger.info("WordShelf Backend %s starting up...", __version__)

        try:
            app_settings.validate_required_for_backend()
        except ValueError as e:
            # Keep serving: /health and every page will report the store as unavailable
            logger.error("Configuration error: %s", e)

        app.state.catalog = await catalog_factory(app_settings)
        logger.info(
            "Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port
        )
        logger.info("=" * 60)

        yield

        logger.info("WordShelf Backend shutting down...")
        await app.state.catalog.aclose()
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="WordShelf API",
        description=(
            "Chinese vocabulary and quote catalog: browse, add, edit and delete "
            "words and quotes, each optionally illustrated with an image."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Added in reverse execution order: the last one added runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(words.router)
    app.include_router(quotes.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
