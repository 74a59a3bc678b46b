"""
Wishlist Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan builds the engine, object store and services once and
       stores them on app.state for the route dependencies.
Who:   Run with `uvicorn wishlist.main:app` from the backend directory.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  [Request ID] → [Access log] → [GZip/CORS]  │
    │                                                          │
    │  Routes:                                                 │
    │    /api/locations/...   /api/auth/sign-in                │
    │    /api/files/...       /health                          │
    │                                                          │
    │  app.state (built in lifespan):                          │
    │    engine → session_factory ─┐                           │
    │    object_store ─────────────┼─▶ location_service        │
    │    auth_service              │                           │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation→400  Auth→401  NotFound→404                │
    │    StorageWrite→502  Database→500                        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → engine/store/services →
              reconcile pending uploads → start periodic reconciliation
    Shutdown: stop the reconciliation task, dispose the engine
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from wishlist import __version__
from wishlist.config import Settings, settings
from wishlist.database import create_engine, create_session_factory, dispose_engine
from wishlist.exceptions import (
    AuthenticationError,
    DatabaseError,
    NotFoundError,
    StorageWriteError,
    ValidationError,
    WishlistError,
)
from wishlist.middleware.logging import RequestLoggingMiddleware
from wishlist.middleware.request_id import RequestIDMiddleware, request_id_var
from wishlist.routes import auth, files, health, locations
from wishlist.services.auth_service import AuthService
from wishlist.services.location_service import LocationService
from wishlist.services.object_store import build_object_store
from wishlist.services.photo_service import PhotoService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] wishlist.services.location_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application State
# ══════════════════════════════════════════════════════════════════════════

def init_app_state(app: FastAPI, config: Settings) -> None:
    """Build the engine, object store and services and attach them to app.state."""
    engine = create_engine(config)
    session_factory = create_session_factory(engine)
    object_store = build_object_store(config)

    app.state.engine = engine
    app.state.object_store = object_store
    app.state.location_service = LocationService(
        session_factory=session_factory,
        object_store=object_store,
        photo_service=PhotoService(max_file_size=config.max_file_size),
        pending_timeout=config.upload_pending_timeout,
    )
    app.state.auth_service = AuthService.from_settings(config)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Wishlist Backend %s starting up...", __version__)

    # Missing secrets only disable staff sign-in; the public API still works
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    init_app_state(app, settings)
    logger.info(
        "Object store: %s bucket=%s",
        settings.storage_backend,
        settings.storage_bucket,
    )

    try:
        removed = await app.state.location_service.reconcile_pending_uploads()
        logger.info("Startup reconciliation removed %d pending upload(s)", removed)
    except DatabaseError as e:
        logger.error("Startup reconciliation failed: %s", e.message)

    reconcile_task = None
    if settings.reconcile_interval:
        reconcile_task = asyncio.create_task(
            app.state.location_service.run_reconciliation(settings.reconcile_interval)
        )

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Wishlist Backend shutting down...")
    if reconcile_task is not None:
        reconcile_task.cancel()
        with suppress(asyncio.CancelledError):
            await reconcile_task
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details=None,
    headers=None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the WishlistError hierarchy to HTTP responses.

        ValidationError      → 400
        AuthenticationError  → 401 (WWW-Authenticate: Bearer)
        NotFoundError        → 404
        StorageWriteError    → 502
        DatabaseError        → 500 (generic message; details logged only)
        WishlistError        → 500
        Exception            → 500
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.warning("[%s] Authentication failed: %s", request_id_var.get(""), exc.message)
        return _error_response(
            401,
            "unauthorized",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(StorageWriteError)
    async def handle_storage_write_error(request: Request, exc: StorageWriteError):
        logger.error(
            "[%s] Storage write failed: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(502, "storage_write_failed", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(
            500,
            "server_error",
            "An internal error occurred. Please try again later.",
        )

    @app.exception_handler(WishlistError)
    async def handle_wishlist_error(request: Request, exc: WishlistError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Wishlist API",
        description=(
            "Submit locations with a photo, collect ideas for them and vote on "
            "those ideas. Staff approve or reject submitted locations."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(locations.router)
    app.include_router(auth.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
