"""Repository bundle handed to services through app.state."""

from __future__ import annotations

from dataclasses import dataclass

from pymongo.asynchronous.database import AsyncDatabase

from repositories.memory import (
    MemoryApiKeyRepository,
    MemoryDatabase,
    MemorySecurityEventRepository,
    MemoryUserRepository,
    MemoryVerificationLogRepository,
    MemoryWebsiteRepository,
)
from repositories.mongo import (
    MongoApiKeyRepository,
    MongoSecurityEventRepository,
    MongoUserRepository,
    MongoVerificationLogRepository,
    MongoWebsiteRepository,
)
from repositories.protocol import (
    ApiKeyRepository,
    SecurityEventRepository,
    UserRepository,
    VerificationLogRepository,
    WebsiteRepository,
)


@dataclass
class Repositories:
    users: UserRepository
    api_keys: ApiKeyRepository
    verification_logs: VerificationLogRepository
    security_events: SecurityEventRepository
    websites: WebsiteRepository
    backend: str = "memory"


def memory_repositories(db: MemoryDatabase | None = None) -> Repositories:
    db = db or MemoryDatabase()
    return Repositories(
        users=MemoryUserRepository(db),
        api_keys=MemoryApiKeyRepository(db),
        verification_logs=MemoryVerificationLogRepository(db),
        security_events=MemorySecurityEventRepository(db),
        websites=MemoryWebsiteRepository(db),
        backend="memory",
    )


def mongo_repositories(db: AsyncDatabase) -> Repositories:
    return Repositories(
        users=MongoUserRepository(db),
        api_keys=MongoApiKeyRepository(db),
        verification_logs=MongoVerificationLogRepository(db),
        security_events=MongoSecurityEventRepository(db),
        websites=MongoWebsiteRepository(db),
        backend="mongodb",
    )
