"""Redis implementation of StateStore.

Values are stored as JSON under ``<prefix>:<key>`` with ``SET ... EX`` so
Redis owns expiry; ``GETDEL`` makes consumption single-use.
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis

from shared.logging import get_logger

log = get_logger(__name__)


class RedisStateStore:
    def __init__(self, redis_client: aioredis.Redis, prefix: str = "oauth_state") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def put(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        await self._redis.set(self._key(key), json.dumps(value), ex=ttl_seconds)

    async def pop(self, key: str) -> Optional[dict[str, Any]]:
        raw = await self._redis.getdel(self._key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            log.warning("state_store_corrupt_entry", prefix=self._prefix)
            return None

    async def evict_expired(self) -> int:
        # Redis expires keys itself
        return 0
