"""In-process implementation of StateStore.

Each entry carries its own deadline. Expired entries are evicted on every
put and pop, so an entry can never be returned after its TTL.
"""

import asyncio
import time
from typing import Any, Callable, Optional


class MemoryStateStore:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self) -> int:
        now = self._clock()
        expired = [key for key, (deadline, _) in self._entries.items() if deadline <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def put(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        async with self._lock:
            self._evict()
            self._entries[key] = (self._clock() + ttl_seconds, dict(value))

    async def pop(self, key: str) -> Optional[dict[str, Any]]:
        async with self._lock:
            self._evict()
            entry = self._entries.pop(key, None)
        return entry[1] if entry else None

    async def evict_expired(self) -> int:
        async with self._lock:
            return self._evict()
