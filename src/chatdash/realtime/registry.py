"""Connection registry — the set of live push channels on this process.

Learn: The registry is created once in the app lifespan and injected
where needed (the /ws endpoint registers channels, the chat gateway
broadcasts). Membership means "open": the endpoint registers a socket
right after accept() and unregisters it in its finally block, and any
send that fails or times out unregisters the socket on the spot. A dead
channel is therefore a cleanup trigger, never an error for the caller.

Broadcasts hold a lock for their whole fan-out, so every channel sees
events in the order the gateway produced them.
"""

import asyncio
import json
from typing import Any, Optional, Protocol

import structlog
from starlette.websockets import WebSocketState

from chatdash.metrics import WEBSOCKET_CONNECTIONS_ACTIVE

logger = structlog.get_logger()


class LiveConnection(Protocol):
    """What the registry needs from a channel (Starlette's WebSocket fits)."""

    client_state: WebSocketState
    application_state: WebSocketState

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None: ...


def encode_event(event_type: str, data: Optional[dict[str, Any]] = None) -> str:
    """Serialize an event frame: {"type": ..., **data}."""
    return json.dumps({"type": event_type, **(data or {})}, default=str)


def is_open(connection: LiveConnection) -> bool:
    return (
        connection.client_state == WebSocketState.CONNECTED
        and connection.application_state == WebSocketState.CONNECTED
    )


class ConnectionRegistry:
    """Broadcast set of open WebSocket channels."""

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        self._connections: set[LiveConnection] = set()
        self._send_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        return connection in self._connections

    def register(self, connection: LiveConnection) -> None:
        self._connections.add(connection)
        WEBSOCKET_CONNECTIONS_ACTIVE.set(len(self._connections))
        logger.info("realtime.registered", connections=len(self._connections))

    def unregister(self, connection: LiveConnection) -> None:
        """Remove a channel. Safe to call more than once."""
        if connection not in self._connections:
            return
        self._connections.discard(connection)
        WEBSOCKET_CONNECTIONS_ACTIVE.set(len(self._connections))
        logger.info("realtime.unregistered", connections=len(self._connections))

    async def _deliver(self, connection: LiveConnection, payload: str) -> bool:
        """Send one frame; on any failure drop the channel. Caller holds the lock."""
        if not is_open(connection):
            self.unregister(connection)
            return False
        try:
            await asyncio.wait_for(connection.send_text(payload), self.send_timeout)
        except Exception as e:
            logger.warning(
                "realtime.delivery_failed",
                error=str(e) or type(e).__name__,
            )
            self.unregister(connection)
            return False
        return True

    async def send(
        self,
        connection: LiveConnection,
        event_type: str,
        data: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Send an event to a single channel (connected ack, pong)."""
        payload = encode_event(event_type, data)
        async with self._send_lock:
            return await self._deliver(connection, payload)

    async def broadcast(
        self,
        event_type: str,
        data: Optional[dict[str, Any]] = None,
    ) -> int:
        """Send an event to every open channel. Returns how many received it.

        A failing channel never stops delivery to the rest.
        """
        payload = encode_event(event_type, data)
        delivered = 0
        async with self._send_lock:
            for connection in list(self._connections):
                if await self._deliver(connection, payload):
                    delivered += 1
        logger.debug(
            "realtime.broadcast",
            event_type=event_type,
            delivered=delivered,
            connections=len(self._connections),
        )
        return delivered

    async def close_all(self, code: int = 1001) -> None:
        """Close every channel (server shutdown)."""
        connections = list(self._connections)
        self._connections.clear()
        WEBSOCKET_CONNECTIONS_ACTIVE.set(0)
        for connection in connections:
            try:
                await connection.close(code=code)
            except Exception as e:
                logger.debug("realtime.close_failed", error=str(e))
