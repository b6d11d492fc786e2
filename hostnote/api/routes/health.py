"""
Health endpoints (unauthenticated).

The database is required for readiness. Redis only backs the tenant cache,
so losing it is reported as degraded but still ready.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hostnote.config import settings
from hostnote.infra.database import check_db_health
from hostnote.infra.redis import check_redis_health

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    timestamp: datetime


class ReadyResponse(BaseModel):
    status: str  # ready, degraded, not_ready
    database: bool
    tenant_cache: bool


@router.get("", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"description": "Database unavailable"}},
)
async def ready():
    database = await check_db_health()
    tenant_cache = await check_redis_health()

    if not database:
        logger.warning("Readiness check failed: database unreachable")
        body = ReadyResponse(status="not_ready", database=False, tenant_cache=tenant_cache)
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump())

    return ReadyResponse(
        status="ready" if tenant_cache else "degraded",
        database=True,
        tenant_cache=tenant_cache,
    )
