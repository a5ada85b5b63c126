"""
API key gate and dashboard key management.

Every verification API call presents a tenant key; ``authenticate`` resolves
it and bumps the key's usage counter. Key creation and deletion are audited
as security events.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from errors import InvalidApiKeyError, MissingApiKeyError, NotFoundError
from repositories import Repositories
from schemas.models.api_key import ApiKeyDoc
from schemas.models.security_event import SecurityEventDoc
from schemas.models.user import UserDoc
from shared.datetime_utils import Clock, utc_now
from shared.generators import generate_api_key
from shared.logging import get_logger

log = get_logger(__name__)

API_KEY_HEADER = "X-API-Key"
API_KEY_FIELD = "apiKey"
DEFAULT_KEY_NAME = "Default API Key"

DEMO_USER_ID = "demo-user-id"
DEMO_KEY_ID = "demo-key-id"


def extract_api_key(
    headers: Mapping[str, str],
    body: Optional[Mapping[str, Any]],
    query: Mapping[str, str],
) -> Optional[str]:
    """Header first, then the JSON body, then the query string."""
    candidates = (
        headers.get(API_KEY_HEADER),
        body.get(API_KEY_FIELD) if isinstance(body, Mapping) else None,
        query.get(API_KEY_FIELD),
    )
    for value in candidates:
        if isinstance(value, str) and value:
            return value
    return None


class ApiKeyService:
    def __init__(self, repositories: Repositories, clock: Clock = utc_now) -> None:
        self._repos = repositories
        self._clock = clock

    # ── Gate ─────────────────────────────────────────────────────────────────

    async def authenticate(self, key_value: Optional[str]) -> ApiKeyDoc:
        if not key_value:
            raise MissingApiKeyError(
                "Please provide a valid API key in the X-API-Key header"
            )
        key = await self._repos.api_keys.find_active_by_value(key_value)
        if key is None:
            log.info("api_key_rejected", key_prefix=key_value[:8])
            raise InvalidApiKeyError("The provided API key is invalid or inactive")

        updated = await self._repos.api_keys.record_usage(key.id, self._clock())
        # Deactivated between lookup and increment
        if updated is None:
            raise InvalidApiKeyError("The provided API key is invalid or inactive")
        return updated

    # ── Dashboard management ─────────────────────────────────────────────────

    async def list_keys(self, user_id: str) -> list[ApiKeyDoc]:
        return await self._repos.api_keys.list_active_for_user(user_id)

    async def create_key(
        self,
        user_id: str,
        name: str,
        environment: str = "development",
        domain: Optional[str] = None,
        *,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ApiKeyDoc:
        now = self._clock()
        key = await self._repos.api_keys.insert(
            ApiKeyDoc(
                user_id=user_id,
                name=name,
                key_value=generate_api_key(),
                environment=environment,
                domain=domain,
                created_at=now,
                updated_at=now,
            )
        )
        log.info(
            "api_key_created",
            key_id=key.id,
            user_id=user_id,
            environment=environment,
        )
        await self._record_event(
            user_id,
            "api_key_created",
            f"API key '{name}' created",
            api_key_id=key.id,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata={"environment": environment, "domain": domain},
        )
        return key

    async def delete_key(
        self,
        user_id: str,
        key_id: str,
        *,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        if not await self._repos.api_keys.deactivate(user_id, key_id):
            raise NotFoundError("API key not found", error="API key not found")
        log.info("api_key_deleted", key_id=key_id, user_id=user_id)
        await self._record_event(
            user_id,
            "api_key_deleted",
            "API key deleted",
            api_key_id=key_id,
            ip_address=ip_address,
            user_agent=user_agent,
            severity="warning",
        )

    async def ensure_default_key(self, user_id: str) -> Optional[ApiKeyDoc]:
        """Create the first key of a freshly signed-in user; no-op afterwards."""
        if await self._repos.api_keys.count_active_for_user(user_id) > 0:
            return None
        return await self.create_key(user_id, DEFAULT_KEY_NAME, "development")

    async def _record_event(
        self,
        user_id: str,
        event_type: str,
        description: str,
        *,
        api_key_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        severity: str = "info",
    ) -> None:
        await record_security_event(
            self._repos,
            SecurityEventDoc(
                user_id=user_id,
                api_key_id=api_key_id,
                event_type=event_type,
                description=description,
                ip_address=ip_address,
                user_agent=user_agent,
                metadata=metadata or {},
                severity=severity,
                created_at=self._clock(),
            ),
        )


async def record_security_event(
    repositories: Repositories, event: SecurityEventDoc
) -> None:
    """Append an audit event. Failures are logged; the audited action stands."""
    try:
        await repositories.security_events.append(event)
    except Exception as e:
        log.error(
            "security_event_log_failed",
            event_type=event.event_type,
            user_id=event.user_id,
            error=str(e),
            error_type=type(e).__name__,
        )


async def seed_demo_tenant(
    repositories: Repositories, demo_key_value: str, clock: Clock = utc_now
) -> None:
    """Make sure the demo user and its well-known key exist."""
    now = clock()
    try:
        if await repositories.users.get(DEMO_USER_ID) is None:
            await repositories.users.upsert(
                UserDoc(
                    id=DEMO_USER_ID,
                    login="demo",
                    name="Demo User",
                    github_id=0,
                    created_at=now,
                    updated_at=now,
                )
            )
        if await repositories.api_keys.find_active_by_value(demo_key_value) is None:
            await repositories.api_keys.insert(
                ApiKeyDoc(
                    id=DEMO_KEY_ID,
                    user_id=DEMO_USER_ID,
                    name="Demo API Key",
                    key_value=demo_key_value,
                    environment="development",
                    domain="localhost",
                    created_at=now,
                    updated_at=now,
                )
            )
    except Exception as e:
        log.error(
            "demo_seed_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return
    log.info("demo_tenant_ready", user_id=DEMO_USER_ID)
