"""
GitHub sign-in and session endpoints.

GET  /auth/github           — start the OAuth flow (?redirect=/path)
GET  /auth/github/callback  — finish it, set the session cookie
POST /auth/logout           — clear the session cookie
GET  /auth/user             — the signed-in user's profile
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from dependencies import get_auth_service, get_session_service, require_user
from schemas.dto.responses.auth import SessionUser, UserResponse
from schemas.dto.responses.common import MessageResponse
from services.auth_service import AuthService
from services.session_service import SessionService
from shared.ip_utils import get_client_ip

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/github")
async def github_login(
    redirect: Optional[str] = Query(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    url = await auth.begin_login(redirect)
    return RedirectResponse(url, status_code=302)


@router.get("/github/callback")
async def github_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    auth: AuthService = Depends(get_auth_service),
    sessions: SessionService = Depends(get_session_service),
) -> RedirectResponse:
    """
    OAuth callback. Always answers with a redirect: to the page stored with
    the state on success, or to the login page with ``?error=`` otherwise.
    """
    result = await auth.complete_login(
        code,
        state,
        error,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    response = RedirectResponse(result.redirect_url, status_code=302)
    if result.user is not None:
        sessions.set_cookie(response, result.user)
    return response


@router.post("/logout", response_model=MessageResponse)
async def logout(sessions: SessionService = Depends(get_session_service)) -> JSONResponse:
    response = JSONResponse(
        content={"success": True, "message": "Logged out successfully"}
    )
    sessions.clear_cookie(response)
    return response


@router.get("/user", response_model=UserResponse)
async def current_user(user: dict[str, Any] = Depends(require_user)) -> UserResponse:
    return UserResponse(user=SessionUser.model_validate(user))
