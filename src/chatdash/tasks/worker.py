"""Task queue worker — drains the Redis task lists.

Learn: The worker is its own process, separate from the API server, so a
crash here never takes the chat down. It BLPOPs from every known queue,
hands each task to the handler for its topic, and parks anything it
can't parse or process on a dead-letter list for inspection.

Usage:
    uv run python -m chatdash.tasks.worker

Or via the installed script:
    chatdash-worker
"""

import asyncio
import json
import logging
import signal
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from chatdash.config import settings
from chatdash.tasks.queue import NOTIFICATION_QUEUE, TASK_QUEUE, queue_key

logger = logging.getLogger("chatdash.worker")

Handler = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass
class WorkerConfig:
    redis_url: str = "redis://localhost:6379/0"
    topics: tuple[str, ...] = (NOTIFICATION_QUEUE, TASK_QUEUE)
    block_timeout: int = 5  # seconds per BLPOP


@dataclass
class WorkerStats:
    processed: int = 0
    failed: int = 0
    started_at: Optional[datetime] = None
    by_topic: dict[str, int] = field(default_factory=dict)


async def handle_notification(task: dict[str, Any]) -> None:
    """New chat message notifications. Logged only; no external delivery yet."""
    logger.info(
        "Notification: %s (user_id=%s, message_id=%s)",
        task.get("type"),
        task.get("user_id"),
        task.get("message_id"),
    )


async def handle_background_task(task: dict[str, Any]) -> None:
    logger.info("Background task processed: %s %s", task.get("type"), task.get("data"))


DEFAULT_HANDLERS: dict[str, Handler] = {
    NOTIFICATION_QUEUE: handle_notification,
    TASK_QUEUE: handle_background_task,
}


class TaskWorker:
    """BLPOP loop over the configured topics."""

    def __init__(
        self,
        config: WorkerConfig,
        handlers: Optional[dict[str, Handler]] = None,
        client: Optional[aioredis.Redis] = None,
    ):
        self.config = config
        self.handlers = handlers or DEFAULT_HANDLERS
        self.stats = WorkerStats()
        self._redis = client
        self._running = False
        self._keys = {queue_key(t): t for t in config.topics}

    async def start(self):
        if self._redis is None:
            self._redis = aioredis.from_url(self.config.redis_url, decode_responses=True)
        self.stats.started_at = datetime.now(timezone.utc)
        self._running = True
        logger.info("Worker consuming %s", ", ".join(self.config.topics))

        while self._running:
            try:
                item = await self._redis.blpop(
                    list(self._keys), timeout=self.config.block_timeout
                )
            except asyncio.CancelledError:
                break
            except RedisError:
                logger.exception("Redis error while waiting for tasks")
                await asyncio.sleep(1)
                continue

            if item is None:
                continue
            key, raw = item
            await self.process(self._keys[key], raw)

    async def process(self, topic: str, raw: str) -> bool:
        """Run one task through its handler. Returns True on success."""
        try:
            task = json.loads(raw)
            handler = self.handlers[topic]
            await handler(task)
        except Exception:
            logger.exception("Task on %s failed, moving to dead letters", topic)
            self.stats.failed += 1
            await self._dead_letter(topic, raw)
            return False

        self.stats.processed += 1
        self.stats.by_topic[topic] = self.stats.by_topic.get(topic, 0) + 1
        return True

    async def _dead_letter(self, topic: str, raw: str) -> None:
        try:
            await self._redis.rpush(f"{queue_key(topic)}:dead", raw)
        except RedisError:
            logger.exception("Could not dead-letter task from %s", topic)

    async def stop(self):
        self._running = False
        logger.info(
            "Stopping worker (processed=%d, failed=%d)",
            self.stats.processed,
            self.stats.failed,
        )
        if self._redis:
            await self._redis.aclose()


async def run():
    worker = TaskWorker(WorkerConfig(redis_url=settings.redis_url))
    task = asyncio.create_task(worker.start())

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, task.cancel)

    try:
        await task
    except asyncio.CancelledError:
        pass
    finally:
        await worker.stop()


def main():
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    asyncio.run(run())


if __name__ == "__main__":
    main()
