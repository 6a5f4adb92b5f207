"""
Health check endpoint.

GET /health — pings MongoDB and Redis.
- MongoDB failure → "unhealthy" (503); accounts live there.
- Redis failure or absence → "degraded" (200); only the IP limiter needs it.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


async def _check_mongodb(request: Request) -> str:
    try:
        await request.app.state.db.client.admin.command("ping")
        return "ok"
    except Exception as e:
        log.error("health_mongodb_failed", error=str(e), error_type=type(e).__name__)
        return "error"


async def _check_redis(request: Request) -> str:
    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()
        return "ok"
    except Exception as e:
        log.warning("health_redis_failed", error=str(e), error_type=type(e).__name__)
        return "error"


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    checks = {
        "mongodb": await _check_mongodb(request),
        "redis": await _check_redis(request),
    }
    if checks["mongodb"] != "ok":
        overall = "unhealthy"
    elif checks["redis"] != "ok":
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthResponse(status=overall, checks=checks)
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
