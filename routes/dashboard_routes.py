"""
Dashboard JSON endpoints (session cookie required).

GET    /auth/dashboard-data       — analytics, keys and counters
POST   /auth/api-keys             — create a key
DELETE /auth/api-keys/{key_id}    — soft-delete a key
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from dependencies import get_api_key_service, get_dashboard_service, require_user
from schemas.dto.requests.api_key import CreateApiKeyRequest
from schemas.dto.responses.api_key import ApiKeyCreatedResponse, ApiKeyResponse
from schemas.dto.responses.auth import DashboardResponse
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from services.api_key_service import ApiKeyService
from services.dashboard_service import DashboardService
from shared.ip_utils import get_client_ip

router = APIRouter(prefix="/auth", tags=["dashboard"])

_AUTH_ERRORS = {401: {"model": ErrorResponse, "description": "Not signed in"}}


@router.get(
    "/dashboard-data",
    response_model=DashboardResponse,
    response_model_by_alias=True,
    responses=_AUTH_ERRORS,
)
async def dashboard_data(
    user: dict[str, Any] = Depends(require_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    """
    Everything the dashboard renders on load: the session profile, 30-day
    analytics, active API keys and the headline counters.
    """
    return DashboardResponse(data=await dashboard.build(user))


@router.post(
    "/api-keys",
    response_model=ApiKeyCreatedResponse,
    response_model_by_alias=True,
    responses=_AUTH_ERRORS,
)
async def create_api_key(
    request: Request,
    body: Optional[CreateApiKeyRequest] = Body(default=None),
    user: dict[str, Any] = Depends(require_user),
    api_keys: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyCreatedResponse:
    body = body or CreateApiKeyRequest()
    key = await api_keys.create_key(
        str(user["id"]),
        body.name,
        body.environment,
        body.domain,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return ApiKeyCreatedResponse(api_key=ApiKeyResponse.from_doc(key))


@router.delete(
    "/api-keys/{key_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, **_AUTH_ERRORS},
)
async def delete_api_key(
    key_id: str,
    request: Request,
    user: dict[str, Any] = Depends(require_user),
    api_keys: ApiKeyService = Depends(get_api_key_service),
) -> MessageResponse:
    await api_keys.delete_key(
        str(user["id"]),
        key_id,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return MessageResponse(success=True, message="API key deleted successfully")
