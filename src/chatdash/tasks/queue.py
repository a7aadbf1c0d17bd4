"""Fire-and-forget task publication."""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

TASK_QUEUE = "task_queue"
NOTIFICATION_QUEUE = "notification_queue"


def queue_key(topic: str) -> str:
    return f"chatdash:queue:{topic}"


class TaskQueue(ABC):
    """One-way notification sink."""

    @abstractmethod
    async def publish(self, topic: str, payload: dict[str, Any]) -> bool:
        """Enqueue payload on topic. Returns False if it was dropped.

        Never raises: callers must not depend on delivery.
        """

    async def ping(self) -> bool:
        return True


class RedisTaskQueue(TaskQueue):
    """Queues as Redis lists: chatdash:queue:{topic}."""

    def __init__(self, client: aioredis.Redis):
        self._redis = client

    async def publish(self, topic: str, payload: dict[str, Any]) -> bool:
        body = json.dumps(
            {
                "topic": topic,
                "queued_at": datetime.now(timezone.utc).isoformat(),
                **payload,
            },
            default=str,
        )
        try:
            await self._redis.rpush(queue_key(topic), body)
        except RedisError as e:
            logger.warning("tasks.publish_failed", topic=topic, error=str(e))
            return False
        logger.debug("tasks.published", topic=topic)
        return True

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False


class NullTaskQueue(TaskQueue):
    """Drops everything. Used when Redis is not configured or unreachable."""

    async def publish(self, topic: str, payload: dict[str, Any]) -> bool:
        logger.debug("tasks.dropped", topic=topic)
        return False

    async def ping(self) -> bool:
        return False
