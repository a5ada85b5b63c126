"""
Health check and API description.

GET /api/v1/health — always "healthy" while the process serves requests;
                     ``checks`` reports the storage backends in use.
GET /api/v1/docs   — static description of the public endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from config import AppSettings
from dependencies import get_settings
from schemas.dto.responses.common import DocsResponse, HealthResponse
from shared.datetime_utils import utc_now
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


async def _storage_check(request: Request) -> str:
    db = getattr(request.app.state, "db", None)
    if db is None:
        return "memory"
    try:
        await db.client.admin.command("ping")
        return "ok"
    except Exception as e:
        log.warning("health_mongodb_ping_failed", error=str(e))
        return "error"


async def _redis_check(request: Request) -> str:
    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()
        return "ok"
    except Exception as e:
        log.warning("health_redis_ping_failed", error=str(e))
        return "error"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request, settings: AppSettings = Depends(get_settings)
) -> HealthResponse:
    return HealthResponse(
        success=True,
        status="healthy",
        timestamp=utc_now().isoformat(),
        version=settings.app_version,
        checks={
            "database": await _storage_check(request),
            "redis": await _redis_check(request),
        },
    )


@router.get("/docs", response_model=DocsResponse)
async def api_docs(settings: AppSettings = Depends(get_settings)) -> DocsResponse:
    return DocsResponse(
        name=f"{settings.app_name} reCAPTCHA API",
        version=settings.app_version,
        description="Advanced reCAPTCHA verification service",
        endpoints={
            "POST /api/v1/challenge": "Generate a new verification challenge",
            "POST /api/v1/verify": "Verify a challenge response",
            "GET /api/v1/stats": "Get API usage statistics",
            "GET /api/v1/health": "API health check",
        },
        authentication="API Key required in X-API-Key header",
    )
