"""Chat gateway — every chat read and write goes through here.

Learn: A mutation runs as a fixed sequence, and each step only starts
once the previous one has finished:

    store write commits → cache invalidated → broadcast → response

If the store write fails nothing else happens: no invalidation, no
broadcast, and the caller gets an error. Invalidating before the
broadcast matters because a client that receives an event immediately
re-fetches the list; it must not be served the pre-mutation snapshot.

Reads are read-through: cache hit → return; miss → store → populate.
A generation counter, bumped right after each committed write, stops a
slow reader from writing back a snapshot taken before that write. It is
checked twice: before the cache write, and again after it, since the
write itself can suspend (Redis) while a mutation invalidates.
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from chatdash.auth.dependencies import CurrentIdentity
from chatdash.cache.base import CHAT_MESSAGES_KEY, MessageCache
from chatdash.events.types import (
    AUTHOR_MESSAGES_REMOVED,
    MESSAGE_CREATED,
    MESSAGES_CLEARED,
)
from chatdash.metrics import CHAT_MESSAGES_TOTAL
from chatdash.realtime.registry import ConnectionRegistry
from chatdash.schemas.chat import ChatAuthor, ChatMessageRead, MessageListAdapter
from chatdash.store.base import MessageStore, validate_content
from chatdash.tasks.queue import NOTIFICATION_QUEUE, NullTaskQueue, TaskQueue

logger = structlog.get_logger()


class ChatGateway:
    """Keeps the message store, the cache and live clients in agreement."""

    def __init__(
        self,
        store: MessageStore,
        cache: MessageCache,
        registry: ConnectionRegistry,
        tasks: Optional[TaskQueue] = None,
        cache_ttl: int = 30,
    ):
        self.store = store
        self.cache = cache
        self.registry = registry
        self.tasks = tasks or NullTaskQueue()
        self.cache_ttl = cache_ttl
        self._generation = 0

    # ─── Read ────────────────────────────────────────────

    async def list_messages(self) -> list[ChatMessageRead]:
        """Full ordered history, served from cache when possible."""
        cached = await self.cache.get(CHAT_MESSAGES_KEY)
        if cached is not None:
            try:
                return MessageListAdapter.validate_json(cached)
            except PydanticValidationError:
                logger.warning("chat.cache_entry_invalid", key=CHAT_MESSAGES_KEY)
                await self.cache.invalidate(CHAT_MESSAGES_KEY)

        generation = self._generation
        messages = [
            ChatMessageRead.model_validate(m) for m in await self.store.list_all()
        ]
        if generation == self._generation:
            await self.cache.set(
                CHAT_MESSAGES_KEY,
                MessageListAdapter.dump_json(messages).decode(),
                self.cache_ttl,
            )
            # A write may have committed and invalidated while set() was in flight.
            if generation != self._generation:
                await self.cache.invalidate(CHAT_MESSAGES_KEY)
        return messages

    # ─── Mutations ───────────────────────────────────────

    async def post_message(
        self, identity: CurrentIdentity, content: str
    ) -> ChatMessageRead:
        """Append a message and tell everyone. Raises ValidationError / StoreUnavailableError."""
        content = validate_content(content)
        stored = await self.store.append(identity.user_id, content)
        await self._committed()

        message = ChatMessageRead.model_validate(stored)
        CHAT_MESSAGES_TOTAL.inc()
        await self.registry.broadcast(
            MESSAGE_CREATED,
            {
                "message": message.model_dump(mode="json"),
                "user": ChatAuthor(
                    id=identity.user_id, username=identity.username
                ).model_dump(),
            },
        )
        await self.tasks.publish(
            NOTIFICATION_QUEUE,
            {
                "type": "new_message",
                "user_id": identity.user_id,
                "message_id": message.id,
            },
        )
        logger.info(
            "chat.message_created",
            message_id=message.id,
            author_id=identity.user_id,
        )
        return message

    async def clear_all(self, identity: CurrentIdentity) -> None:
        await self.store.clear_all()
        await self._committed()
        await self.registry.broadcast(MESSAGES_CLEARED)
        logger.info("chat.cleared", by_user=identity.user_id)

    async def delete_own(self, identity: CurrentIdentity) -> None:
        await self.store.delete_by_author(identity.user_id)
        await self._committed()
        await self.registry.broadcast(
            AUTHOR_MESSAGES_REMOVED, {"author_id": identity.user_id}
        )
        logger.info("chat.author_messages_removed", author_id=identity.user_id)

    async def _committed(self) -> None:
        # Runs right after a successful store write, before anyone is told.
        self._generation += 1
        await self.cache.invalidate(CHAT_MESSAGES_KEY)
