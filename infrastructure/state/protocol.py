"""StateStore protocol — short-lived key/value state with explicit expiry.

Used for pending OAuth logins: the callback must find the state it was sent
with, exactly once, within the TTL.
"""

from typing import Any, Optional, Protocol


class StateStore(Protocol):
    async def put(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None: ...

    async def pop(self, key: str) -> Optional[dict[str, Any]]: ...

    async def evict_expired(self) -> int: ...
