"""
GitHub sign-in.

``begin_login`` parks a random state with the post-login redirect in the
state store and returns GitHub's authorize URL. ``complete_login`` handles
the callback: the state is consumed exactly once, the code is exchanged, the
profile is upserted and the user gets a default API key on first login.

Callback failures never raise: they come back as a redirect to the login
page carrying an ``error`` query parameter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

from errors import AppError, ConfigurationError
from infrastructure.oauth_clients import GitHubOAuthClient
from infrastructure.state.protocol import StateStore
from repositories import Repositories
from schemas.models.security_event import SecurityEventDoc
from schemas.models.user import UserDoc
from services.api_key_service import ApiKeyService, record_security_event
from shared.datetime_utils import Clock, utc_now
from shared.generators import generate_oauth_state
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

STATE_KEY_PREFIX = "github:"


@dataclass(frozen=True)
class LoginResult:
    redirect_url: str
    user: Optional[dict[str, Any]] = None  # session profile on success


def safe_redirect(target: Optional[str], default: str) -> str:
    """Only same-site absolute paths are honoured as post-login targets."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return default


class AuthService:
    def __init__(
        self,
        repositories: Repositories,
        state_store: StateStore,
        oauth_client: Optional[GitHubOAuthClient],
        api_keys: ApiKeyService,
        *,
        login_url: str = "/login",
        default_redirect: str = "/dashboard",
        state_ttl_seconds: int = 300,
        clock: Clock = utc_now,
    ) -> None:
        self._repos = repositories
        self._states = state_store
        self._oauth = oauth_client
        self._api_keys = api_keys
        self._login_url = login_url
        self._default_redirect = default_redirect
        self._state_ttl = state_ttl_seconds
        self._clock = clock

    def _client(self) -> GitHubOAuthClient:
        if self._oauth is None:
            raise ConfigurationError(
                "GitHub OAuth not configured", error="GitHub OAuth not configured"
            )
        return self._oauth

    def _login_error(self, error: str) -> LoginResult:
        return LoginResult(f"{self._login_url}?{urlencode({'error': error})}")

    async def begin_login(self, redirect: Optional[str] = None) -> str:
        client = self._client()
        state = generate_oauth_state()
        await self._states.put(
            STATE_KEY_PREFIX + state,
            {
                "redirect_url": safe_redirect(redirect, self._default_redirect),
                "created_at": self._clock().isoformat(),
            },
            self._state_ttl,
        )
        return client.authorization_url(state)

    async def complete_login(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        *,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        client = self._client()
        if error:
            log.info("oauth_provider_error", provider="github", error=error)
            return self._login_error(error)
        if not code or not state:
            return self._login_error("missing_parameters")

        pending = await self._states.pop(STATE_KEY_PREFIX + state)
        if pending is None:
            log.warning("oauth_invalid_state", provider="github")
            return self._login_error("invalid_state")

        try:
            token = await client.exchange_code(code)
            profile = await client.fetch_profile(token)
        except AppError as e:
            log.error("oauth_login_failed", provider="github", error=e.message)
            return self._login_error(f"Authentication failed: {e.message}")

        user = await self._save_user(profile)
        await self._api_keys.ensure_default_key(user.id)
        await record_security_event(
            self._repos,
            SecurityEventDoc(
                user_id=user.id,
                event_type="login",
                description="Signed in with GitHub",
                ip_address=ip_address,
                user_agent=user_agent,
                metadata={"provider": "github"},
                created_at=self._clock(),
            ),
        )
        log.info(
            "user_logged_in",
            provider="github",
            user_id=user.id,
            client_ip=hash_ip(ip_address),
        )
        return LoginResult(
            redirect_url=pending.get("redirect_url") or self._default_redirect,
            user=user.session_profile(),
        )

    async def _save_user(self, profile: dict[str, Any]) -> UserDoc:
        now = self._clock()
        user = UserDoc(
            id=str(profile["github_id"]),
            created_at=now,
            updated_at=now,
            last_login_at=now,
            **profile,
        )
        try:
            return await self._repos.users.upsert(user)
        except Exception as e:
            # The session carries the profile, so sign-in still succeeds
            log.warning(
                "user_save_failed",
                user_id=user.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return user
