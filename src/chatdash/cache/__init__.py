"""Read-through cache for the chat message list.

Learn: The cache is a disposable view, never a source of truth.
Every implementation swallows its own failures and reports a miss, so a
dead Redis slows reads down but never fails a request.
"""

from chatdash.cache.base import (
    CHAT_MESSAGES_KEY,
    MemoryCache,
    MessageCache,
    NullCache,
)
from chatdash.cache.redis import RedisCache

__all__ = [
    "CHAT_MESSAGES_KEY",
    "MemoryCache",
    "MessageCache",
    "NullCache",
    "RedisCache",
]
