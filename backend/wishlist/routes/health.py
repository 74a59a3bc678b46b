"""
Wishlist Backend — Health Check Route
=====================================

What:  Health endpoint for container and load balancer health checks.
How:   Runs SELECT 1 against the database and asks the object store whether
       its bucket is reachable.

Status levels:
    - healthy:   database and object store both reachable (HTTP 200)
    - degraded:  object store unreachable; reads still work (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from wishlist import __version__
from wishlist.schemas.location import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    db_status = "connected"
    store_status = "available"
    overall = "healthy"

    # ── Database ──────────────────────────────────────────────────────────
    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Object store ──────────────────────────────────────────────────────
    if not await request.app.state.object_store.health_check():
        store_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        object_store=store_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
