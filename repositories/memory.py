"""In-memory repository backend.

Used when no MongoDB is configured and throughout the test suite. All
repositories created from one MemoryDatabase share its tables and its lock;
mutations happen under the lock so concurrent usage increments never lose
updates.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from schemas.models.api_key import ApiKeyDoc
from schemas.models.security_event import SecurityEventDoc, WebsiteDoc
from schemas.models.user import UserDoc
from schemas.models.verification_log import VerificationLogDoc


class MemoryDatabase:
    def __init__(self) -> None:
        self.users: dict[str, UserDoc] = {}
        self.api_keys: dict[str, ApiKeyDoc] = {}
        self.verification_logs: list[VerificationLogDoc] = []
        self.security_events: list[SecurityEventDoc] = []
        self.websites: dict[str, WebsiteDoc] = {}
        self.lock = asyncio.Lock()


class MemoryUserRepository:
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def upsert(self, user: UserDoc) -> UserDoc:
        async with self._db.lock:
            existing = self._db.users.get(user.id)
            if existing is not None and existing.created_at is not None:
                user = user.model_copy(update={"created_at": existing.created_at})
            self._db.users[user.id] = user
            return user

    async def get(self, user_id: str) -> Optional[UserDoc]:
        return self._db.users.get(user_id)


class MemoryApiKeyRepository:
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def insert(self, key: ApiKeyDoc) -> ApiKeyDoc:
        async with self._db.lock:
            self._db.api_keys[key.id] = key
            return key

    async def find_active_by_value(self, key_value: str) -> Optional[ApiKeyDoc]:
        for key in self._db.api_keys.values():
            if key.key_value == key_value and key.is_active:
                return key
        return None

    async def list_active_for_user(self, user_id: str) -> list[ApiKeyDoc]:
        keys = [
            k
            for k in self._db.api_keys.values()
            if k.user_id == user_id and k.is_active
        ]
        return sorted(
            keys,
            key=lambda k: k.created_at.timestamp() if k.created_at else 0.0,
            reverse=True,
        )

    async def count_active_for_user(self, user_id: str) -> int:
        return len(await self.list_active_for_user(user_id))

    async def deactivate(self, user_id: str, key_id: str) -> bool:
        async with self._db.lock:
            key = self._db.api_keys.get(key_id)
            if key is None or key.user_id != user_id or not key.is_active:
                return False
            self._db.api_keys[key_id] = key.model_copy(update={"is_active": False})
            return True

    async def record_usage(
        self, key_id: str, used_at: datetime
    ) -> Optional[ApiKeyDoc]:
        async with self._db.lock:
            key = self._db.api_keys.get(key_id)
            if key is None or not key.is_active:
                return None
            updated = key.model_copy(
                update={
                    "usage_count": key.usage_count + 1,
                    "last_used_at": used_at,
                    "updated_at": used_at,
                }
            )
            self._db.api_keys[key_id] = updated
            return updated


class MemoryVerificationLogRepository:
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def append(self, record: VerificationLogDoc) -> None:
        async with self._db.lock:
            self._db.verification_logs.append(record)

    async def list_for_user(
        self, user_id: str, since: datetime
    ) -> list[VerificationLogDoc]:
        rows = [
            r
            for r in self._db.verification_logs
            if r.user_id == user_id and r.created_at >= since
        ]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)


class MemorySecurityEventRepository:
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def append(self, event: SecurityEventDoc) -> None:
        async with self._db.lock:
            self._db.security_events.append(event)

    async def list_for_user(
        self, user_id: str, limit: int = 50
    ) -> list[SecurityEventDoc]:
        rows = [e for e in self._db.security_events if e.user_id == user_id]
        rows.sort(key=lambda e: e.created_at, reverse=True)
        return rows[:limit]


class MemoryWebsiteRepository:
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def count_active_for_user(self, user_id: str) -> int:
        return sum(
            1 for w in self._db.websites.values() if w.user_id == user_id and w.is_active
        )
