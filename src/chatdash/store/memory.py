"""In-process MessageStore backed by a dict keyed by message id."""

import itertools
from datetime import datetime, timezone

from chatdash.store.base import ChatMessage, MessageStore, validate_content


class MemoryMessageStore(MessageStore):
    """Process-local store. Lost on restart; fine for dev and tests.

    Every method body runs without awaiting, so under asyncio each call is
    atomic with respect to other tasks.
    """

    def __init__(self):
        self._messages: dict[int, ChatMessage] = {}
        self._ids = itertools.count(1)
        self._last_created_at: datetime | None = None

    def _stamp(self) -> datetime:
        # Clock can step backwards; never hand out an earlier stamp than the last one.
        now = datetime.now(timezone.utc)
        if self._last_created_at and now < self._last_created_at:
            now = self._last_created_at
        self._last_created_at = now
        return now

    async def append(self, author_id: int, content: str) -> ChatMessage:
        content = validate_content(content)
        message = ChatMessage(
            id=next(self._ids),
            author_id=author_id,
            content=content,
            created_at=self._stamp(),
        )
        self._messages[message.id] = message
        return message

    async def list_all(self) -> list[ChatMessage]:
        return sorted(self._messages.values(), key=lambda m: (m.created_at, m.id))

    async def clear_all(self) -> None:
        self._messages.clear()

    async def delete_by_author(self, author_id: int) -> None:
        for message_id in [m.id for m in self._messages.values() if m.author_id == author_id]:
            del self._messages[message_id]
