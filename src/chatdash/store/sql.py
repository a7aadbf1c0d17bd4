"""SQLAlchemy-backed MessageStore.

Learn: The store owns its sessions (one short-lived session per call)
instead of borrowing the request's session. That keeps each operation
its own transaction: once append() returns, the row is committed and
any reader, on any connection, will see it. The gateway relies on this
before it invalidates the cache and broadcasts.
"""

from datetime import timezone

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chatdash.db.models import ChatMessage as ChatMessageRow
from chatdash.store.base import (
    ChatMessage,
    MessageStore,
    StoreUnavailableError,
    validate_content,
)


def _to_message(row: ChatMessageRow) -> ChatMessage:
    created_at = row.created_at
    # SQLite hands back naive datetimes; everything we write is UTC.
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return ChatMessage(
        id=row.id,
        author_id=row.author_id,
        content=row.content,
        created_at=created_at,
    )


class SqlMessageStore(MessageStore):
    """Chat log in the chat_messages table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, author_id: int, content: str) -> ChatMessage:
        content = validate_content(content)
        try:
            async with self._session_factory() as session:
                row = ChatMessageRow(author_id=author_id, content=content)
                session.add(row)
                await session.commit()
                return _to_message(row)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"append failed: {e}") from e

    async def list_all(self) -> list[ChatMessage]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ChatMessageRow).order_by(
                        ChatMessageRow.created_at, ChatMessageRow.id
                    )
                )
                return [_to_message(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"list failed: {e}") from e

    async def clear_all(self) -> None:
        await self._delete(delete(ChatMessageRow))

    async def delete_by_author(self, author_id: int) -> None:
        await self._delete(
            delete(ChatMessageRow).where(ChatMessageRow.author_id == author_id)
        )

    async def _delete(self, stmt) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"delete failed: {e}") from e

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
