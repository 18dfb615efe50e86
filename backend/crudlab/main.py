"""
CrudLab Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires logging, middleware, exception handlers and
       routers; uvicorn serves the module-level `app`
       (uvicorn crudlab.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐   │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │   │
    │  └──────────────┘ └──────────┘ └─────────────────┘   │
    │                                                      │
    │  Routes:                                             │
    │  /  /health  /api/jokes                              │
    │  /api/v1/users  /api/v1/todos  /api/v1/orders        │
    │  /api/v1/patients  /api/v1/medical-records           │
    │                                                      │
    │  Exception Handlers:                                 │
    │  CrudLabError → its status │ Exception → 500         │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, storage directory, banner
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from crudlab import __version__
from crudlab.config import settings
from crudlab.database import dispose_engine
from crudlab.exceptions import (
    CircuitBreakerOpenError,
    CrudLabError,
    DatabaseError,
    RateLimitExceededError,
)
from crudlab.middleware.logging import RequestLoggingMiddleware
from crudlab.middleware.rate_limit import RateLimitMiddleware
from crudlab.middleware.request_id import RequestIDMiddleware, request_id_var
from crudlab.routes import health, hospital, jokes, orders, todos, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-01T12:00:00 [INFO] crudlab.services.todo_service: message
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("CrudLab Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Only image uploads need these; everything else keeps serving
        logger.error("Configuration error: %s", str(e))
        logger.error("Avatar and cover image uploads will fail until this is fixed.")

    storage = Path(settings.storage_root) / "temp"
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Upload staging directory: %s", storage.resolve())

    logger.info("Serve at http://%s:%d", settings.backend_host, settings.port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("CrudLab Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(status_code: int, error: str, message: str, details=None) -> dict:
    """The error envelope every failure response shares."""
    return {
        "status_code": status_code,
        "error": error,
        "message": message,
        "details": details,
        "success": False,
        "request_id": request_id_var.get("") or None,
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Every CrudLabError subclass declares its own status_code and error_code,
    so one handler covers the whole hierarchy:

        4xx → message and context are returned to the client
        5xx → context is logged server-side only; DatabaseError also hides
              its message behind a generic one
        Exception (fallback) → 500 with a generic message, stack logged

    RateLimitExceededError and CircuitBreakerOpenError add a Retry-After header.
    """

    @app.exception_handler(CrudLabError)
    async def handle_crudlab_error(request: Request, exc: CrudLabError):
        rid = request_id_var.get("")
        status_code = exc.status_code
        headers = {}

        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)
        elif isinstance(exc, CircuitBreakerOpenError):
            headers["Retry-After"] = str(exc.recovery_time)

        if status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid,
                type(exc).__name__,
                exc.message,
                exc.context,
            )
            message = exc.message
            if isinstance(exc, DatabaseError):
                message = "An internal error occurred. Please try again later."
            details = exc.context if exc.error_code == "service_unavailable" else None
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            message = exc.message
            details = exc.context or None

        return JSONResponse(
            status_code=status_code,
            content=error_body(status_code, exc.error_code, message, details),
            headers=headers or None,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body(
                500,
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build a fresh app per module and override get_db_session on it.
    """
    app = FastAPI(
        title="CrudLab API",
        description=(
            "Jokes, user accounts with Cloudinary profile images, todos, "
            "orders and hospital records."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(jokes.router)
    app.include_router(users.router)
    app.include_router(todos.router)
    app.include_router(orders.router)
    app.include_router(hospital.router)

    return app


app = create_app()
