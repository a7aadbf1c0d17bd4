"""MessageStore contract and the value type it returns.

Learn: Messages are append-only. There is no update operation at all,
only append, full read, clear, and delete-by-author. Every read returns
messages ordered by (created_at, id), oldest first.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


class ValidationError(Exception):
    """Raised when a message payload is rejected (e.g. empty content)."""


class StoreUnavailableError(Exception):
    """Raised when the underlying storage can't complete an operation."""


@dataclass(frozen=True)
class ChatMessage:
    """A persisted chat message. Immutable once created."""
    id: int
    author_id: int
    content: str
    created_at: datetime


def validate_content(content: object) -> str:
    """Return content unchanged if it is a non-blank string, else raise."""
    if not isinstance(content, str):
        raise ValidationError("Message content must be a string")
    if not content.strip():
        raise ValidationError("Message content must not be empty")
    return content


class MessageStore(ABC):
    """Ordered, append-only chat log."""

    @abstractmethod
    async def append(self, author_id: int, content: str) -> ChatMessage:
        """Persist a new message. Assigns id and created_at."""

    @abstractmethod
    async def list_all(self) -> list[ChatMessage]:
        """Full history, ordered by (created_at, id). Empty list if none."""

    @abstractmethod
    async def clear_all(self) -> None:
        """Remove every message. Idempotent."""

    @abstractmethod
    async def delete_by_author(self, author_id: int) -> None:
        """Remove exactly the messages written by author_id. Idempotent."""

    async def ping(self) -> bool:
        """Cheap health probe used by the readiness endpoint."""
        return True
