"""Repository protocols — services depend on these, not on a storage backend.

Two backends implement them: repositories.mongo (pymongo async) and
repositories.memory (process-local, used when MONGODB_URI is unset and in
tests).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from schemas.models.api_key import ApiKeyDoc
from schemas.models.security_event import SecurityEventDoc
from schemas.models.user import UserDoc
from schemas.models.verification_log import VerificationLogDoc


class UserRepository(Protocol):
    async def upsert(self, user: UserDoc) -> UserDoc: ...

    async def get(self, user_id: str) -> Optional[UserDoc]: ...


class ApiKeyRepository(Protocol):
    async def insert(self, key: ApiKeyDoc) -> ApiKeyDoc: ...

    async def find_active_by_value(self, key_value: str) -> Optional[ApiKeyDoc]: ...

    async def list_active_for_user(self, user_id: str) -> list[ApiKeyDoc]: ...

    async def count_active_for_user(self, user_id: str) -> int: ...

    async def deactivate(self, user_id: str, key_id: str) -> bool: ...

    async def record_usage(
        self, key_id: str, used_at: datetime
    ) -> Optional[ApiKeyDoc]:
        """Atomically bump usage_count and stamp last_used_at."""
        ...


class VerificationLogRepository(Protocol):
    async def append(self, record: VerificationLogDoc) -> None: ...

    async def list_for_user(
        self, user_id: str, since: datetime
    ) -> list[VerificationLogDoc]: ...


class SecurityEventRepository(Protocol):
    async def append(self, event: SecurityEventDoc) -> None: ...

    async def list_for_user(
        self, user_id: str, limit: int = 50
    ) -> list[SecurityEventDoc]: ...


class WebsiteRepository(Protocol):
    async def count_active_for_user(self, user_id: str) -> int: ...
