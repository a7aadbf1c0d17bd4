"""Best-effort background task queue.

Learn: Producers only ever call publish(topic, payload) and never wait
for a consumer. Queues are plain Redis lists (RPUSH to produce, BLPOP
to consume), so the worker process needs nothing beyond Redis.
"""

from chatdash.tasks.queue import (
    NOTIFICATION_QUEUE,
    TASK_QUEUE,
    NullTaskQueue,
    RedisTaskQueue,
    TaskQueue,
)

__all__ = [
    "NOTIFICATION_QUEUE",
    "TASK_QUEUE",
    "NullTaskQueue",
    "RedisTaskQueue",
    "TaskQueue",
]
