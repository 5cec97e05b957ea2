"""
Solo Parent Backend: FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan builds the Database handle on startup and disposes it
       on shutdown.
Who:   uvicorn loads `soloparent.main:app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain (outermost first):                     │
    │  RequestID → RateLimit → Logging → GZip → CORS           │
    │                                                          │
    │  Routers (/api): auth, cases, documents, notifications,  │
    │  events, admins, child_requests, media, export_limits    │
    │  plus GET /health                                        │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400  Auth→401  Permission→403  NotFound→404  │
    │  Conflict/Transition→409  RateLimit→429  Blob→502        │
    │  LockContention/Database→500                             │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Report missing collaborator configuration (mail, blob storage)
    3. Create the Database handle on app.state.db (unless one was injected)

    Shutdown:
    1. Dispose the Database handle (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from soloparent import __version__
from soloparent.config import settings
from soloparent.database import Database
from soloparent.exceptions import (
    AuthenticationError,
    BlobStorageError,
    ConflictError,
    DatabaseError,
    InvalidTransitionError,
    LockContentionError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    SoloParentError,
    ValidationError,
)
from soloparent.middleware.logging import RequestLoggingMiddleware
from soloparent.middleware.rate_limit import RateLimitMiddleware
from soloparent.middleware.request_id import RequestIDMiddleware, request_id_var
from soloparent.routes import (
    admins,
    auth,
    cases,
    child_requests,
    documents,
    events,
    export_limits,
    health,
    media,
    notifications,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: 2024-01-15T10:30:00 [INFO] soloparent.services.workflow: message
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request lines come from soloparent.access instead.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the Database handle on startup and dispose it on shutdown.

    A handle already present on app.state.db (tests) is used as is and left
    for its owner to dispose.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Solo Parent Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Missing collaborators degrade mail and uploads only; keep serving.
        logger.error("Configuration error: %s", str(e))

    owns_db = getattr(app.state, "db", None) is None
    if owns_db:
        app.state.db = Database.from_settings(settings)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Solo Parent Backend shutting down...")
    if owns_db:
        await app.state.db.dispose()
        app.state.db = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "error": code,
        "message": message,
        "details": details,
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

    Handler hierarchy:
        ValidationError         → 400 validation_error
        AuthenticationError     → 401 authentication_failed
        PermissionDeniedError   → 403 forbidden
        NotFoundError           → 404 not_found
        ConflictError           → 409 conflict (details.conflict)
        InvalidTransitionError  → 409 invalid_transition
        RateLimitExceededError  → 429 rate_limit_exceeded
        BlobStorageError        → 502 blob_storage_error
        LockContentionError     → 500 lock_contention
        DatabaseError           → 500 server_error (context logged only)
        SoloParentError (base)  → 500 server_error
        Exception (fallback)    → 500 internal_server_error

    Starlette resolves handlers along the exception's MRO, so the
    LockContentionError handler wins over the DatabaseError one.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context or None),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("authentication_failed", exc.message),
        )

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        return JSONResponse(
            status_code=403,
            content=_error_body("forbidden", exc.message, exc.context or None),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message, exc.context or None),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", exc.message, {"conflict": exc.conflict}),
        )

    @app.exception_handler(InvalidTransitionError)
    async def handle_invalid_transition(request: Request, exc: InvalidTransitionError):
        logger.warning("[%s] Rejected transition: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=409,
            content=_error_body("invalid_transition", exc.message, exc.context),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(BlobStorageError)
    async def handle_blob_storage_error(request: Request, exc: BlobStorageError):
        logger.error("[%s] Blob storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=502,
            content=_error_body("blob_storage_error", exc.message),
        )

    @app.exception_handler(LockContentionError)
    async def handle_lock_contention(request: Request, exc: LockContentionError):
        logger.error("[%s] Lock contention: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("lock_contention", exc.message),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(SoloParentError)
    async def handle_application_error(request: Request, exc: SoloParentError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers into a new app."""
    app = FastAPI(
        title="Solo Parent API",
        description=(
            "Case management for solo parent benefit applications: document review, "
            "status workflow, notifications, events and barangay administration."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.db = None

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → RateLimit → Logging → GZip → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(cases.router)
    app.include_router(documents.router)
    app.include_router(notifications.router)
    app.include_router(events.router)
    app.include_router(admins.router)
    app.include_router(child_requests.router)
    app.include_router(media.router)
    app.include_router(export_limits.router)
    app.include_router(health.router)

    return app


app = create_app()
