"""
CrudLab Backend — Health Check Routes
======================================

GET /        plain-text readiness answer
GET /health  dependency status for Docker health checks and load balancers

Status levels:
    - healthy:   database reachable and media uploads available
    - degraded:  database fine, media unconfigured or circuit open
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crudlab import __version__
from crudlab.config import settings
from crudlab.database import engine, utcnow
from crudlab.schemas.common import HealthResponse
from crudlab.services.media_service import CircuitBreaker, media_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Readiness text")
async def root() -> str:
    return "Server is ready"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    """Runs SELECT 1 against the database and inspects the media circuit."""
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not settings.cloudinary_configured:
        media_status = "unconfigured"
    elif media_service.circuit_breaker.state == CircuitBreaker.OPEN:
        media_status = "circuit_open"
    else:
        media_status = "available"

    if media_status != "available" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        media=media_status,
        uptime_seconds=round(time.time() - _start_time, 2),
        checked_at=utcnow(),
    )
