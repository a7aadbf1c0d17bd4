"""Health endpoint tests."""

import pytest

from chatdash.store.memory import MemoryMessageStore
from chatdash.tasks.queue import NullTaskQueue


class UnreachableStore(MemoryMessageStore):
    async def ping(self):
        return False


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert "version" in data
    assert data["database"] == "ok"
    assert data["message_store"] == "ok"
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_missing_queue_is_degraded_not_unready(client, app_state):
    app_state.tasks = NullTaskQueue()

    data = (await client.get("/api/v1/health")).json()
    assert data["status"] == "degraded"
    assert data["task_queue"] == "degraded"

    r = await client.get("/api/v1/health/ready")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_not_ready_without_store(client, gateway):
    gateway.store = UnreachableStore()

    r = await client.get("/api/v1/health/ready")
    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "not_ready"
    assert body["checks"]["message_store"] == "unavailable"


@pytest.mark.asyncio
async def test_liveness(client):
    r = await client.get("/api/v1/health/live")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "alive"
    assert data["uptime_seconds"] >= 0
