"""Chat sync agent — keeps a local copy of the chat in step with the server.

The agent runs two loops side by side:
1. Channel loop — holds one WebSocket to /ws. On close or error it waits a
   fixed delay (3s by default) and reconnects, forever. No backoff growth,
   no circuit breaker: the channel only makes updates faster, it is never
   needed for correctness.
2. Poll loop — re-fetches the message list every few seconds regardless,
   so anything missed while disconnected (or dropped by the server) is
   picked up on the next tick.

Push events are cues, never data. Any chat event (message_created,
messages_cleared, author_messages_removed) triggers a GET of the full
list; the event payload itself is ignored. Opening the channel does not
trigger a fetch either; the initial fetch happens once at start-up,
independently of the channel.

Usage:
    agent = ChatSyncAgent(AgentConfig(base_url="http://localhost:5000"),
                          on_messages=print)
    await agent.run()      # until agent.stop() or cancellation
"""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
import websockets
from websockets.exceptions import WebSocketException

from chatdash.events.types import CHAT_EVENTS, PING

logger = logging.getLogger("chatdash.client")

MessagesCallback = Callable[[list[dict[str, Any]]], Any]


class AgentState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"


@dataclass
class AgentConfig:
    base_url: str = "http://localhost:5000"
    token: Optional[str] = None
    reconnect_delay: float = 3.0
    poll_interval: Optional[float] = 5.0  # None disables the fallback poll
    ping_interval: Optional[float] = 25.0  # None disables client pings
    request_timeout: float = 10.0

    @property
    def ws_url(self) -> str:
        parts = urlsplit(self.base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        query = urlencode({"token": self.token}) if self.token else ""
        return urlunsplit((scheme, parts.netloc, "/ws", query, ""))


@dataclass
class AgentStats:
    connects: int = 0
    disconnects: int = 0
    events: int = 0
    refreshes: int = 0
    refresh_errors: int = 0
    stale_responses: int = 0
    callback_errors: int = 0


class ChatSyncAgent:
    """One push channel per agent, plus a fallback poll."""

    def __init__(
        self,
        config: AgentConfig,
        on_messages: Optional[MessagesCallback] = None,
        http: Optional[httpx.AsyncClient] = None,
        connect: Callable[[str], Any] = websockets.connect,
    ):
        self.config = config
        self.on_messages = on_messages
        self.stats = AgentStats()
        self.messages: list[dict[str, Any]] = []
        self._issued = 0
        self._applied = 0
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=config.base_url, timeout=config.request_timeout
        )
        self._connect = connect
        self._state = AgentState.DISCONNECTED
        self._running = False
        self._tasks: list[asyncio.Task] = []

    @property
    def state(self) -> AgentState:
        return self._state

    # ─── Fetching ─────────────────────────────────────────

    async def refresh(self) -> list[dict[str, Any]]:
        """GET the authoritative list and hand it to the callback.

        Poll ticks and event-triggered refreshes overlap. Each request gets
        a sequence number, and a response is dropped if a later-issued one
        has already been applied, so a slow GET never overwrites a newer list.
        """
        self._issued += 1
        seq = self._issued

        resp = await self._http.get("/api/v1/chat")
        resp.raise_for_status()
        messages = resp.json()

        if seq < self._applied:
            self.stats.stale_responses += 1
            return self.messages
        self._applied = seq
        self.messages = messages
        self.stats.refreshes += 1

        await self._notify(messages)
        return self.messages

    async def _notify(self, messages: list[dict[str, Any]]) -> None:
        if not self.on_messages:
            return
        try:
            result = self.on_messages(messages)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self.stats.callback_errors += 1
            logger.exception("on_messages callback failed")

    async def _safe_refresh(self, reason: str) -> None:
        try:
            await self.refresh()
        except (httpx.HTTPError, ValueError) as e:
            self.stats.refresh_errors += 1
            logger.warning("Refresh (%s) failed: %s", reason, e)

    # ─── Lifecycle ────────────────────────────────────────

    async def run(self) -> None:
        """Initial fetch, then channel + poll loops until stop()."""
        self._running = True
        await self._safe_refresh("initial")

        self._tasks = [
            asyncio.create_task(self._channel_loop()),
            asyncio.create_task(self._poll_loop()),
        ]
        try:
            await asyncio.gather(*self._tasks)
        except asyncio.CancelledError:
            if self._running:
                raise
        finally:
            for task in self._tasks:
                task.cancel()
            self._state = AgentState.DISCONNECTED
            if self._owns_http:
                await self._http.aclose()

    def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()

    # ─── Push channel ────────────────────────────────────

    async def _channel_loop(self) -> None:
        while self._running:
            self._state = AgentState.CONNECTING
            try:
                async with self._connect(self.config.ws_url) as ws:
                    self._state = AgentState.OPEN
                    self.stats.connects += 1
                    logger.info("Channel open (%s)", self.config.ws_url)
                    await self._consume(ws)
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                logger.warning("Channel error: %s", e)
            finally:
                if self._state == AgentState.OPEN:
                    self.stats.disconnects += 1
                self._state = AgentState.DISCONNECTED

            if not self._running:
                break
            logger.info("Channel closed, reconnecting in %.1fs", self.config.reconnect_delay)
            await asyncio.sleep(self.config.reconnect_delay)

    async def _consume(self, ws) -> None:
        pinger = None
        if self.config.ping_interval:
            pinger = asyncio.create_task(self._ping_loop(ws))
        try:
            async for raw in ws:
                await self._handle_event(raw)
        finally:
            if pinger:
                pinger.cancel()

    async def _handle_event(self, raw: Any) -> None:
        try:
            event = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-JSON frame")
            return
        event_type = event.get("type") if isinstance(event, dict) else None
        self.stats.events += 1
        if event_type in CHAT_EVENTS:
            await self._safe_refresh(event_type)

    async def _ping_loop(self, ws) -> None:
        while True:
            await asyncio.sleep(self.config.ping_interval)
            try:
                await ws.send(json.dumps({"type": PING}))
            except (OSError, WebSocketException):
                return

    # ─── Fallback poll ───────────────────────────────────

    async def _poll_loop(self) -> None:
        if not self.config.poll_interval:
            return
        while self._running:
            await asyncio.sleep(self.config.poll_interval)
            await self._safe_refresh("poll")
