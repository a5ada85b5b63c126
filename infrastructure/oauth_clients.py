"""GitHub OAuth client built on Authlib's httpx integration.

The authorization-code flow is split in three calls so the service layer
owns state handling (see infrastructure/state):

    url = client.authorization_url(state)        # redirect the browser here
    token = await client.exchange_code(code)     # on the callback
    profile = await client.fetch_profile(token)  # /user (+ /user/emails)

Failures talking to GitHub raise UpstreamError.
"""

from typing import Any, Dict, List, Optional

import httpx
from authlib.integrations.httpx_client import (
    AsyncOAuth2Client,
    OAuth2Client,
    OAuthError,
)

from errors import UpstreamError
from shared.logging import get_logger

log = get_logger(__name__)

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_BASE = "https://api.github.com/"

_API_HEADERS = {
    "Accept": "application/vnd.github.v3+json",
    "User-Agent": "DefendAMinecraft/1.0",
}


class GitHubOAuthClient:
    scope = "user:email"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._timeout = timeout
        self._transport = transport

    def _client(self, token: Optional[dict] = None) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self._client_id,
            client_secret=self._client_secret,
            scope=self.scope,
            redirect_uri=self._redirect_uri,
            token=token,
            timeout=self._timeout,
            transport=self._transport,
        )

    def authorization_url(self, state: str) -> str:
        # URL building only; no request is sent
        with OAuth2Client(
            client_id=self._client_id,
            scope=self.scope,
            redirect_uri=self._redirect_uri,
        ) as client:
            url, _ = client.create_authorization_url(GITHUB_AUTHORIZE_URL, state=state)
        return url

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                token = await client.fetch_token(GITHUB_TOKEN_URL, code=code)
        except OAuthError as e:
            log.warning(
                "github_token_exchange_rejected",
                error=e.error,
                description=e.description,
            )
            raise UpstreamError(e.description or e.error or "token exchange failed")
        except httpx.HTTPError as e:
            log.error(
                "github_token_exchange_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamError("token exchange failed")
        return dict(token)

    async def fetch_profile(self, token: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self._client(token=token) as client:
                user_resp = await client.get(
                    f"{GITHUB_API_BASE}user", headers=_API_HEADERS
                )
                user = _json_payload(user_resp)
                if user_resp.status_code != 200 or not isinstance(user, dict):
                    message = user.get("message") if isinstance(user, dict) else None
                    log.warning(
                        "github_profile_rejected", status_code=user_resp.status_code
                    )
                    raise UpstreamError(message or "Failed to fetch user data")

                emails: List[Dict[str, Any]] = []
                if not user.get("email"):
                    emails_resp = await client.get(
                        f"{GITHUB_API_BASE}user/emails", headers=_API_HEADERS
                    )
                    payload = (
                        _json_payload(emails_resp)
                        if emails_resp.status_code == 200
                        else None
                    )
                    if isinstance(payload, list):
                        emails = [e for e in payload if isinstance(e, dict)]
        except httpx.HTTPError as e:
            log.error(
                "github_profile_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamError("Failed to fetch user data")
        return extract_profile_from_github(user, emails)


def _json_payload(resp: httpx.Response) -> Any:
    """Decoded JSON body, or ``None`` when the body is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return None


def pick_github_email(
    public_email: Optional[str], email_data: List[Dict[str, Any]]
) -> Optional[str]:
    """Public email first, then the primary verified address, then the first listed."""
    if public_email:
        return public_email
    for entry in email_data:
        if entry.get("primary") and entry.get("verified"):
            return entry.get("email")
    if email_data:
        return email_data[0].get("email")
    return None


def extract_profile_from_github(
    userinfo: Dict[str, Any], email_data: List[Dict[str, Any]]
) -> Dict[str, Any]:
    login = userinfo.get("login", "")
    return {
        "github_id": int(userinfo.get("id", 0)),
        "login": login,
        "name": userinfo.get("name") or login,
        "email": pick_github_email(userinfo.get("email"), email_data),
        "avatar_url": userinfo.get("avatar_url"),
        "bio": userinfo.get("bio"),
        "company": userinfo.get("company"),
        "location": userinfo.get("location"),
        "public_repos": userinfo.get("public_repos") or 0,
        "followers": userinfo.get("followers") or 0,
        "following": userinfo.get("following") or 0,
        "github_created_at": userinfo.get("created_at"),
    }
