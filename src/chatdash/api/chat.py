"""Chat API — the shared room.

GET is public. Every mutation requires a user and is delegated to the
ChatGateway, which orders store write → cache invalidation → broadcast.
Routes only translate domain errors into HTTP ones.
"""

from fastapi import APIRouter, Depends, HTTPException

from chatdash.api.deps import get_gateway
from chatdash.auth.dependencies import CurrentIdentity, get_current_user
from chatdash.schemas.chat import ChatMessageCreate, ChatMessageRead
from chatdash.services.chat_gateway import ChatGateway
from chatdash.store.base import StoreUnavailableError, ValidationError

router = APIRouter(prefix="/chat")


@router.get("", response_model=list[ChatMessageRead])
async def list_messages(gateway: ChatGateway = Depends(get_gateway)):
    try:
        return await gateway.list_messages()
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Failed to fetch chat messages")


@router.post("", response_model=ChatMessageRead, status_code=201)
async def post_message(
    body: ChatMessageCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    gateway: ChatGateway = Depends(get_gateway),
):
    try:
        return await gateway.post_message(identity, body.content)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Failed to save message")


@router.delete("")
async def clear_messages(
    identity: CurrentIdentity = Depends(get_current_user),
    gateway: ChatGateway = Depends(get_gateway),
):
    try:
        await gateway.clear_all(identity)
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Failed to clear chat")
    return {"message": "Chat cleared"}


@router.delete("/user")
async def delete_own_messages(
    identity: CurrentIdentity = Depends(get_current_user),
    gateway: ChatGateway = Depends(get_gateway),
):
    try:
        await gateway.delete_own(identity)
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Failed to delete user messages")
    return {"message": "User messages deleted"}
