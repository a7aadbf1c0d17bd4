"""Message Store — the durable, ordered log behind the chat room.

Two backends implement the same MessageStore contract:
- MemoryMessageStore: process-local, for single-node dev and tests
- SqlMessageStore: SQLAlchemy async (PostgreSQL in production)

The backend is picked once at startup (CHATDASH_MESSAGE_STORE); nothing
above this package knows which one is running.
"""

from chatdash.store.base import (
    ChatMessage,
    MessageStore,
    StoreUnavailableError,
    ValidationError,
)
from chatdash.store.memory import MemoryMessageStore
from chatdash.store.sql import SqlMessageStore

__all__ = [
    "ChatMessage",
    "MemoryMessageStore",
    "MessageStore",
    "SqlMessageStore",
    "StoreUnavailableError",
    "ValidationError",
]
