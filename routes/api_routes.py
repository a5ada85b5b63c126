"""
Verification API (v1).

POST /api/v1/challenge — mint a challenge token
POST /api/v1/verify    — score a completed challenge
GET  /api/v1/stats     — tenant verification statistics

Every endpoint here requires a tenant API key.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from config import AppSettings
from dependencies import (
    get_challenge_issuer,
    get_settings,
    get_stats_service,
    get_verification_service,
    require_api_key,
)
from schemas.dto.requests.stats import parse_period_days
from schemas.dto.requests.verification import ChallengeRequest, VerifyRequest
from schemas.dto.responses.common import ErrorResponse
from schemas.dto.responses.stats import StatsData, StatsResponse
from schemas.dto.responses.verification import (
    ChallengeInfo,
    ChallengeResponse,
    VerifyResponse,
)
from schemas.models.api_key import ApiKeyDoc
from services.challenge_service import ChallengeIssuer
from services.stats_service import StatsService
from services.verification_service import VerificationService
from shared.ip_utils import get_hostname, resolve_client_ip

router = APIRouter(prefix="/api/v1", tags=["verification"])

_KEY_ERRORS = {401: {"model": ErrorResponse, "description": "Missing or invalid API key"}}


@router.post(
    "/challenge",
    response_model=ChallengeResponse,
    responses=_KEY_ERRORS,
)
async def create_challenge(
    body: Optional[ChallengeRequest] = Body(default=None),
    api_key: ApiKeyDoc = Depends(require_api_key),
    issuer: ChallengeIssuer = Depends(get_challenge_issuer),
) -> ChallengeResponse:
    """
    Issue a challenge token for the widget to complete.

    ``type`` defaults to ``checkbox`` and ``difficulty`` to ``medium``; values
    that are missing or not strings fall back to those defaults. The token is
    valid for ``expires_in`` seconds.
    """
    body = body or ChallengeRequest()
    issued = issuer.issue(body.type, body.difficulty)
    return ChallengeResponse(
        challenge=ChallengeInfo(
            token=issued.token, type=issued.type, expires_in=issued.expires_in
        )
    )


@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing, malformed or expired token"},
        **_KEY_ERRORS,
    },
)
async def verify_challenge(
    request: Request,
    body: Optional[VerifyRequest] = Body(default=None),
    api_key: ApiKeyDoc = Depends(require_api_key),
    verifier: VerificationService = Depends(get_verification_service),
) -> VerifyResponse:
    """
    Verify a completed challenge.

    A backend forwarding its end user's details may pass ``userAgent`` and
    ``ipAddress``; otherwise the values of this request are used. ``score``
    is the confidence that the client is human, ``action`` one of
    ``allow``, ``challenge`` or ``block``.
    """
    body = body or VerifyRequest()
    outcome = await verifier.verify(
        api_key,
        token=body.token,
        user_agent=body.user_agent or request.headers.get("user-agent"),
        ip_address=resolve_client_ip(request, body.ip_address),
    )
    return VerifyResponse(
        success=outcome.success,
        score=outcome.score,
        action=outcome.action,
        challenge_ts=outcome.challenge_ts,
        hostname=get_hostname(request),
        verification_time=outcome.verification_time,
    )


@router.get("/stats", response_model=StatsResponse, responses=_KEY_ERRORS)
async def get_stats(
    period: Optional[str] = Query(default=None),
    api_key: ApiKeyDoc = Depends(require_api_key),
    stats: StatsService = Depends(get_stats_service),
    settings: AppSettings = Depends(get_settings),
) -> StatsResponse:
    """Statistics for the key owner's verifications over ``period`` (``7d``, ``30d``, ...)."""
    days = parse_period_days(period, default=settings.verification.stats_default_days)
    summary = await stats.summary_for_user(api_key.user_id, days)
    return StatsResponse(
        data=StatsData(period=f"{days} days", **summary.model_dump())
    )
