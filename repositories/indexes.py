"""MongoDB index creation, run once at startup."""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from repositories.mongo import (
    ANALYTICS_SUMMARY,
    API_KEYS,
    SECURITY_EVENTS,
    USER_SESSIONS,
    USERS,
    VERIFICATION_LOGS,
    WEBSITES,
)
from shared.logging import get_logger

log = get_logger(__name__)


async def ensure_indexes(db: AsyncDatabase) -> None:
    try:
        await db[USERS].create_index([("github_id", ASCENDING)], unique=True)
        await db[USERS].create_index([("login", ASCENDING)])

        await db[API_KEYS].create_index([("key_value", ASCENDING)], unique=True)
        await db[API_KEYS].create_index(
            [("user_id", ASCENDING), ("is_active", ASCENDING)]
        )

        await db[WEBSITES].create_index([("user_id", ASCENDING)])
        await db[WEBSITES].create_index([("domain", ASCENDING)])

        await db[VERIFICATION_LOGS].create_index(
            [("user_id", ASCENDING), ("created_at", DESCENDING)]
        )
        await db[VERIFICATION_LOGS].create_index([("api_key_id", ASCENDING)])
        await db[VERIFICATION_LOGS].create_index([("result", ASCENDING)])

        await db[SECURITY_EVENTS].create_index(
            [("user_id", ASCENDING), ("created_at", DESCENDING)]
        )

        await db[USER_SESSIONS].create_index([("user_id", ASCENDING)])
        await db[USER_SESSIONS].create_index(
            [("expires_at", ASCENDING)], expireAfterSeconds=0
        )

        await db[ANALYTICS_SUMMARY].create_index(
            [("user_id", ASCENDING), ("date", ASCENDING)], unique=True
        )
    except PyMongoError as e:
        log.error(
            "mongodb_index_creation_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return
    log.info("mongodb_indexes_ensured")
