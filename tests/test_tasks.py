"""Task queue tests — publishing, the /tasks route, and the worker.

Learn: Publishing is fire-and-forget. RedisTaskQueue reports a dropped
task by returning False instead of raising, and the worker parks tasks
it can't handle on a ":dead" list instead of losing them.
"""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from chatdash.tasks.queue import (
    NOTIFICATION_QUEUE,
    TASK_QUEUE,
    NullTaskQueue,
    RedisTaskQueue,
    queue_key,
)
from chatdash.tasks.worker import TaskWorker, WorkerConfig


class ListRedis:
    def __init__(self):
        self.lists: dict[str, list[str]] = {}

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    async def ping(self):
        return True


class DownRedis:
    async def rpush(self, key, value):
        raise RedisConnectionError("connection refused")

    async def ping(self):
        raise RedisConnectionError("connection refused")


# ─── Publishing ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_redis_queue_pushes_json():
    client = ListRedis()
    queue = RedisTaskQueue(client)

    assert await queue.publish(NOTIFICATION_QUEUE, {"type": "new_message", "message_id": 3})

    [raw] = client.lists[queue_key(NOTIFICATION_QUEUE)]
    body = json.loads(raw)
    assert body["topic"] == NOTIFICATION_QUEUE
    assert body["type"] == "new_message"
    assert body["message_id"] == 3
    assert "queued_at" in body


@pytest.mark.asyncio
async def test_redis_queue_down_drops_quietly():
    queue = RedisTaskQueue(DownRedis())
    assert await queue.publish(TASK_QUEUE, {"type": "x"}) is False
    assert await queue.ping() is False


@pytest.mark.asyncio
async def test_null_queue():
    queue = NullTaskQueue()
    assert await queue.publish(TASK_QUEUE, {"type": "x"}) is False
    assert await queue.ping() is False


# ─── /tasks route ───────────────────────────────────────


@pytest.mark.asyncio
async def test_submit_task(client, task_queue):
    r = await client.post("/api/v1/tasks", json={"type": "export", "data": {"format": "csv"}})
    assert r.status_code == 202
    assert r.json() == {"message": "Task queued for processing", "queued": True}
    assert task_queue.published == [
        (TASK_QUEUE, {"type": "export", "data": {"format": "csv"}, "user_id": 1})
    ]


@pytest.mark.asyncio
async def test_submit_task_without_queue_still_accepted(client, app_state):
    app_state.tasks = NullTaskQueue()
    r = await client.post("/api/v1/tasks", json={"type": "export"})
    assert r.status_code == 202
    assert r.json()["queued"] is False


@pytest.mark.asyncio
async def test_submit_task_requires_auth(unauthenticated_client, task_queue):
    r = await unauthenticated_client.post("/api/v1/tasks", json={"type": "export"})
    assert r.status_code == 401
    assert task_queue.published == []


# ─── Worker ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_worker_runs_handler_for_topic():
    seen = []

    async def handler(task):
        seen.append(task)

    client = ListRedis()
    worker = TaskWorker(WorkerConfig(), handlers={NOTIFICATION_QUEUE: handler}, client=client)

    ok = await worker.process(NOTIFICATION_QUEUE, json.dumps({"type": "new_message"}))

    assert ok is True
    assert seen == [{"type": "new_message"}]
    assert worker.stats.processed == 1
    assert worker.stats.by_topic == {NOTIFICATION_QUEUE: 1}


@pytest.mark.asyncio
async def test_worker_dead_letters_bad_tasks():
    async def boom(task):
        raise ValueError("cannot handle")

    client = ListRedis()
    worker = TaskWorker(WorkerConfig(), handlers={TASK_QUEUE: boom}, client=client)

    assert await worker.process(TASK_QUEUE, "{not json") is False
    assert await worker.process(TASK_QUEUE, json.dumps({"type": "x"})) is False
    # No handler registered for this topic
    assert await worker.process(NOTIFICATION_QUEUE, json.dumps({"type": "y"})) is False

    assert worker.stats.failed == 3
    assert len(client.lists[f"{queue_key(TASK_QUEUE)}:dead"]) == 2
    assert len(client.lists[f"{queue_key(NOTIFICATION_QUEUE)}:dead"]) == 1


@pytest.mark.asyncio
async def test_default_handlers_accept_gateway_payloads():
    client = ListRedis()
    worker = TaskWorker(WorkerConfig(), client=client)

    raw = json.dumps({"topic": NOTIFICATION_QUEUE, "type": "new_message", "user_id": 1, "message_id": 2})
    assert await worker.process(NOTIFICATION_QUEUE, raw) is True
    raw = json.dumps({"topic": TASK_QUEUE, "type": "export", "data": {}})
    assert await worker.process(TASK_QUEUE, raw) is True
