"""WebSocket endpoint — live chat events for browsers and sync agents.

Each client connects to /ws (optionally /ws?token=<access JWT>). The handler:
1. Rejects a bad token with close code 4001 (no token is fine: reading is public)
2. Accepts, sends a one-off "connected" ack, then registers the socket
3. Answers client pings with pongs (binary frames are ignored) until the
   client goes away
4. Unregisters the socket no matter how the loop ended

Broadcasts don't pass through this handler at all; the gateway writes
to registered sockets directly via the ConnectionRegistry.
"""

import json

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from chatdash.api.deps import get_registry
from chatdash.auth.dependencies import identity_from_token
from chatdash.auth.jwt import TokenError
from chatdash.events.types import CONNECTED, PING, PONG
from chatdash.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def chat_websocket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_registry),
):
    user_id = None
    token = websocket.query_params.get("token")
    if token:
        try:
            user_id = identity_from_token(token).user_id
        except TokenError:
            await websocket.close(code=4001, reason="Invalid or expired token")
            return

    await websocket.accept()
    log = logger.bind(user_id=user_id)
    log.info("realtime.connected")

    try:
        # The ack goes out before registration so it is always the first frame.
        if not await registry.send(
            websocket,
            CONNECTED,
            {"message": "WebSocket connection established"},
        ):
            return
        registry.register(websocket)

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            data = message.get("text")
            if data is None:
                log.debug("realtime.binary_frame_ignored")
                continue
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                log.debug("realtime.bad_frame")
                continue
            if isinstance(msg, dict) and msg.get("type") == PING:
                await registry.send(websocket, PONG)
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(websocket)
        log.info("realtime.disconnected")
