"""
Biowiki — FastAPI Application Factory
======================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware, exception handlers, routes and
       the shared store objects in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn biowiki.main:app), the CLI and the tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Req ID → Logging → GZip → CORS        │
    │                                                     │
    │  Routes:      GET /health │ /webs/... (PathRouter)  │
    │                                                     │
    │  State:       WikiService(WebCollection, StoreLocks)│
    │                                                     │
    │  Exception Handlers:                                │
    │  NotFound→404 │ client errors→400 │ storage→500     │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, check and create the storage root
    Shutdown: log shutdown (the store holds no open resources)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from biowiki import __version__
from biowiki.config import Settings, settings
from biowiki.exceptions import (
    BiowikiError,
    DecodeError,
    InvalidPathError,
    NameMismatchError,
    NotFoundError,
    OverwriteError,
    ValidationError,
)
from biowiki.locks import StoreLocks
from biowiki.middleware.logging import RequestLoggingMiddleware
from biowiki.middleware.request_id import RequestIDMiddleware, request_id_var
from biowiki.routes import health, wiki
from biowiki.schemas.wiki import ErrorResponse
from biowiki.services.wiki_service import WikiService
from biowiki.stores.webs import WebCollection

logger = logging.getLogger(__name__)

CLIENT_ERRORS = (ValidationError, NameMismatchError, OverwriteError, InvalidPathError, DecodeError)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Our access middleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate the storage root (fails startup if it is a regular file)
        3. Create the storage root if missing
    """
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level)
    logger.info("Biowiki %s starting up...", __version__)

    root = app_settings.validate_storage_root()
    root.mkdir(parents=True, exist_ok=True)
    logger.info("Storage root: %s", root)
    logger.info("Server ready at http://%s:%d", app_settings.host, app_settings.port)

    yield

    logger.info("Biowiki shutting down.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and error bodies.

    Handler hierarchy:
        NotFoundError                         → 404
        ValidationError, NameMismatchError,
        OverwriteError, InvalidPathError,
        DecodeError                           → 400
        BiowikiError (IO, serialization, ...) → 500, generic message
        Exception (fallback)                  → 500

    Server-side failures never expose paths or OS errors in the response;
    those are logged with the request id.
    """

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(
                error=exc.kind.value, message=exc.message, request_id=rid
            ).model_dump(exclude_none=True),
        )

    async def handle_client_error(request: Request, exc: BiowikiError):
        """Client sent something it can fix: say what and why."""
        rid = request_id_var.get("")
        logger.warning("[%s] %s: %s", rid, exc.kind.value, exc.message)
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error=exc.kind.value,
                message=exc.message,
                details=exc.context,
                request_id=rid,
            ).model_dump(exclude_none=True),
        )

    for exc_class in CLIENT_ERRORS:
        app.add_exception_handler(exc_class, handle_client_error)

    @app.exception_handler(BiowikiError)
    async def handle_storage_error(request: Request, exc: BiowikiError):
        """Storage or serialization failure; details stay in the log."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s", rid, exc.kind.value, exc.message, exc.context
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error="server_error", message=exc.message, request_id=rid
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use instead of the module singleton
                      (tests pass one pointing at a temporary directory).

    The WebCollection and StoreLocks are created here, once, and shared by
    every request through app.state.wiki_service.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Biowiki API",
        description="Personal wiki store: webs, versioned pages and attachments.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.wiki_service = WikiService(
        webs=WebCollection(Path(app_settings.storage_root).resolve()),
        locks=StoreLocks(),
        max_body_size=app_settings.max_body_size,
    )

    # Middleware executes in REVERSE order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # health first: the wiki router's catch-all would shadow /health
    app.include_router(health.router)
    app.include_router(wiki.router)

    return app


app = create_app()
