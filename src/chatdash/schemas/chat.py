"""Pydantic schemas for chat messages and push events."""

from datetime import datetime

from pydantic import BaseModel, Field, TypeAdapter


class ChatMessageCreate(BaseModel):
    # Blank-but-present content is rejected by the store (400 either way).
    content: str = Field(..., min_length=1)


class ChatMessageRead(BaseModel):
    id: int
    author_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatAuthor(BaseModel):
    """Author summary attached to message_created events."""
    id: int
    username: str


# Cached snapshots are JSON arrays of ChatMessageRead.
MessageListAdapter = TypeAdapter(list[ChatMessageRead])
