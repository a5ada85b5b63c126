"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Everything they hand out is built once in the
application lifespan and kept on app.state.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import NotAuthenticatedError
from schemas.models.api_key import ApiKeyDoc
from services.api_key_service import ApiKeyService, extract_api_key
from services.auth_service import AuthService
from services.challenge_service import ChallengeIssuer
from services.dashboard_service import DashboardService
from services.session_service import SessionService
from services.stats_service import StatsService
from services.verification_service import VerificationService

_BODYLESS_METHODS = frozenset({"GET", "HEAD", "DELETE", "OPTIONS"})


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_challenge_issuer(request: Request) -> ChallengeIssuer:
    return request.app.state.challenge_issuer


def get_api_key_service(request: Request) -> ApiKeyService:
    return request.app.state.api_key_service


def get_verification_service(request: Request) -> VerificationService:
    return request.app.state.verification_service


def get_stats_service(request: Request) -> StatsService:
    return request.app.state.stats_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard_service


async def _json_body(request: Request) -> Optional[dict[str, Any]]:
    if request.method in _BODYLESS_METHODS:
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


async def require_api_key(
    request: Request,
    api_keys: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyDoc:
    """Resolve the calling tenant's key; 401 when missing or unknown."""
    key_value = extract_api_key(
        request.headers, await _json_body(request), request.query_params
    )
    return await api_keys.authenticate(key_value)


def get_optional_user(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
) -> Optional[dict[str, Any]]:
    return sessions.decode(request.cookies.get(sessions.cookie_name))


def require_user(
    user: Optional[dict[str, Any]] = Depends(get_optional_user),
) -> dict[str, Any]:
    if user is None:
        raise NotAuthenticatedError("Sign in to access this resource")
    return user
