"""MongoDB repository backend (pymongo async API).

Collection names follow the hosted schema layout: users, api_keys,
websites, verification_logs, security_events, user_sessions and
analytics_summary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from schemas.models.api_key import ApiKeyDoc
from schemas.models.security_event import SecurityEventDoc
from schemas.models.user import UserDoc
from schemas.models.verification_log import VerificationLogDoc

USERS = "users"
API_KEYS = "api_keys"
WEBSITES = "websites"
VERIFICATION_LOGS = "verification_logs"
SECURITY_EVENTS = "security_events"
USER_SESSIONS = "user_sessions"
ANALYTICS_SUMMARY = "analytics_summary"


class MongoUserRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[USERS]

    async def upsert(self, user: UserDoc) -> UserDoc:
        doc = user.to_mongo()
        doc.pop("_id")
        created_at = doc.pop("created_at", None)
        stored = await self._col.find_one_and_update(
            {"_id": user.id},
            {"$set": doc, "$setOnInsert": {"created_at": created_at}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(stored)

    async def get(self, user_id: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(await self._col.find_one({"_id": user_id}))


class MongoApiKeyRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[API_KEYS]

    async def insert(self, key: ApiKeyDoc) -> ApiKeyDoc:
        await self._col.insert_one(key.to_mongo())
        return key

    async def find_active_by_value(self, key_value: str) -> Optional[ApiKeyDoc]:
        doc = await self._col.find_one({"key_value": key_value, "is_active": True})
        return ApiKeyDoc.from_mongo(doc)

    async def list_active_for_user(self, user_id: str) -> list[ApiKeyDoc]:
        cursor = self._col.find({"user_id": user_id, "is_active": True}).sort(
            "created_at", DESCENDING
        )
        return [ApiKeyDoc.from_mongo(doc) async for doc in cursor]

    async def count_active_for_user(self, user_id: str) -> int:
        return await self._col.count_documents({"user_id": user_id, "is_active": True})

    async def deactivate(self, user_id: str, key_id: str) -> bool:
        result = await self._col.update_one(
            {"_id": key_id, "user_id": user_id, "is_active": True},
            {"$set": {"is_active": False}},
        )
        return result.modified_count == 1

    async def record_usage(
        self, key_id: str, used_at: datetime
    ) -> Optional[ApiKeyDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": key_id, "is_active": True},
            {
                "$inc": {"usage_count": 1},
                "$set": {"last_used_at": used_at, "updated_at": used_at},
            },
            return_document=ReturnDocument.AFTER,
        )
        return ApiKeyDoc.from_mongo(doc)


class MongoVerificationLogRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[VERIFICATION_LOGS]

    async def append(self, record: VerificationLogDoc) -> None:
        await self._col.insert_one(record.to_mongo())

    async def list_for_user(
        self, user_id: str, since: datetime
    ) -> list[VerificationLogDoc]:
        cursor = self._col.find(
            {"user_id": user_id, "created_at": {"$gte": since}}
        ).sort("created_at", DESCENDING)
        return [VerificationLogDoc.from_mongo(doc) async for doc in cursor]


class MongoSecurityEventRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[SECURITY_EVENTS]

    async def append(self, event: SecurityEventDoc) -> None:
        await self._col.insert_one(event.to_mongo())

    async def list_for_user(
        self, user_id: str, limit: int = 50
    ) -> list[SecurityEventDoc]:
        cursor = (
            self._col.find({"user_id": user_id})
            .sort("created_at", DESCENDING)
            .limit(limit)
        )
        return [SecurityEventDoc.from_mongo(doc) async for doc in cursor]


class MongoWebsiteRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[WEBSITES]

    async def count_active_for_user(self, user_id: str) -> int:
        return await self._col.count_documents({"user_id": user_id, "is_active": True})
