"""Cache contract plus the in-process implementations."""

import time
from abc import ABC, abstractmethod
from typing import Optional

# Bump the suffix whenever the serialized message shape changes, so a
# rolling deploy never reads snapshots written by the previous schema.
CHAT_MESSAGES_KEY = "chatdash:chat_messages:v1"


class MessageCache(ABC):
    """get / set-with-ttl / invalidate over string values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None on miss (or on any failure)."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value for ttl_seconds. Failures are swallowed."""

    @abstractmethod
    async def invalidate(self, key: str) -> None:
        """Drop the entry. No-op if absent."""

    async def ping(self) -> bool:
        return True


class MemoryCache(MessageCache):
    """Process-local TTL cache (monotonic clock)."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)


class NullCache(MessageCache):
    """Always misses. Used when caching is disabled or Redis is down at startup."""

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    async def invalidate(self, key: str) -> None:
        return None
