"""
Browser session for the dashboard.

The session is a stateless HS256 JWT in an http-only cookie carrying the
signed-in user's public profile, so reading it needs no storage round trip.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any, Optional

import jwt
from fastapi import Response

from config import SessionSettings
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger

log = get_logger(__name__)

ALGORITHM = "HS256"
AUDIENCE = "dashboard"


class SessionService:
    def __init__(
        self,
        settings: SessionSettings,
        *,
        secure: Optional[bool] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self.cookie_name = settings.session_cookie_name
        self.secure = settings.cookie_secure if secure is None else secure

        secret = settings.session_secret
        if not secret:
            # Sessions will not survive a restart
            log.warning("session_secret_not_set")
            secret = secrets.token_urlsafe(32)
        self._secret = secret

    def encode(self, profile: dict[str, Any]) -> str:
        now = self._clock()
        claims = {
            "iss": self._settings.session_issuer,
            "aud": AUDIENCE,
            "sub": str(profile["id"]),
            "iat": int(now.timestamp()),
            "exp": int(
                (now + timedelta(seconds=self._settings.session_ttl_seconds)).timestamp()
            ),
            "user": profile,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def decode(self, token: Optional[str]) -> Optional[dict[str, Any]]:
        """Return the session's user profile, or None for a missing, expired
        or tampered token."""
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=AUDIENCE,
                issuer=self._settings.session_issuer,
            )
        except jwt.InvalidTokenError as e:
            log.info("session_rejected", reason=type(e).__name__)
            return None
        user = claims.get("user")
        return user if isinstance(user, dict) else None

    def set_cookie(self, response: Response, profile: dict[str, Any]) -> Response:
        response.set_cookie(
            self.cookie_name,
            value=self.encode(profile),
            httponly=True,
            secure=self.secure,
            samesite="lax",
            path="/",
            max_age=self._settings.session_ttl_seconds,
        )
        return response

    def clear_cookie(self, response: Response) -> Response:
        response.set_cookie(
            self.cookie_name,
            value="",
            expires=0,
            httponly=True,
            secure=self.secure,
            samesite="lax",
            path="/",
        )
        return response
