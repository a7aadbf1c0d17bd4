"""Test fixtures — in-memory chat components and a throwaway SQLite DB per test.

Learn: Testing pattern for the chat core + FastAPI:

1. Env vars are set before chatdash is imported, so the settings singleton
   (and the engine built from it) point at SQLite, in-memory store/cache,
   and no Redis at all.
2. Each test gets its own aiosqlite engine on a StaticPool (one shared
   in-memory connection), with the schema created up front. get_db is
   overridden to hand out sessions from it.
3. The chat components (store, cache, registry, task queue, gateway) are
   built per test and put on app.state, exactly where the lifespan would.
   httpx's ASGITransport doesn't run the lifespan, so nothing else
   touches them.
"""

import os

os.environ["CHATDASH_ENVIRONMENT"] = "test"
os.environ["CHATDASH_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CHATDASH_REDIS_URL"] = ""
os.environ["CHATDASH_MESSAGE_STORE"] = "memory"
os.environ["CHATDASH_CACHE_BACKEND"] = "memory"
os.environ["CHATDASH_CREATE_SCHEMA"] = "false"
os.environ["CHATDASH_SEED_DEFAULTS"] = "false"

import asyncio  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from starlette.websockets import WebSocketState  # noqa: E402

from chatdash.auth.dependencies import CurrentIdentity, get_current_user  # noqa: E402
from chatdash.cache.base import MemoryCache  # noqa: E402
from chatdash.db.engine import get_db  # noqa: E402
from chatdash.db.models import Base  # noqa: E402
from chatdash.main import app  # noqa: E402
from chatdash.realtime.registry import ConnectionRegistry  # noqa: E402
from chatdash.services.chat_gateway import ChatGateway  # noqa: E402
from chatdash.store.memory import MemoryMessageStore  # noqa: E402
from chatdash.tasks.queue import TaskQueue  # noqa: E402


# ─── Fakes ──────────────────────────────────────────────


class RecordingTaskQueue(TaskQueue):
    """Keeps every published task in memory."""

    def __init__(self):
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, topic: str, payload: dict[str, Any]) -> bool:
        self.published.append((topic, payload))
        return True


class FakeChannel:
    """Stands in for a Starlette WebSocket inside the registry.

    fail=True makes send_text raise; delay makes it slow.
    """

    def __init__(self, name: str = "", fail: bool = False, delay: float = 0.0):
        self.name = name
        self.fail = fail
        self.delay = delay
        self.sent: list[str] = []
        self.closed_with = None
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError(f"{self.name or 'channel'} went away")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason=None) -> None:
        self.closed_with = code
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    def drop(self) -> None:
        """Simulate the peer vanishing without a close handshake."""
        self.client_state = WebSocketState.DISCONNECTED


# ─── Database ───────────────────────────────────────────


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ─── Chat components ────────────────────────────────────


@pytest.fixture()
def store():
    return MemoryMessageStore()


@pytest.fixture()
def cache():
    return MemoryCache()


@pytest.fixture()
def registry():
    return ConnectionRegistry(send_timeout=0.2)


@pytest.fixture()
def task_queue():
    return RecordingTaskQueue()


@pytest.fixture()
def gateway(store, cache, registry, task_queue):
    return ChatGateway(store=store, cache=cache, registry=registry, tasks=task_queue)


@pytest.fixture()
def identity():
    return CurrentIdentity(user_id=1, username="alice")


@pytest.fixture()
def channel_factory():
    return FakeChannel


@pytest.fixture()
def app_state(gateway, registry, cache, task_queue):
    """Put this test's components where the lifespan would."""
    app.state.gateway = gateway
    app.state.registry = registry
    app.state.cache = cache
    app.state.tasks = task_queue
    return app.state


# ─── HTTP clients ───────────────────────────────────────


@pytest_asyncio.fixture()
async def client(db_session, app_state, identity):
    """HTTP client with get_db and auth overridden for testing.

    Learn: We override get_current_user to return a fixed identity so all
    protected routes work without real JWT tokens.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: identity

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(db_session, app_state):
    """HTTP client WITHOUT auth override — for testing real JWT flows.

    Only get_db is overridden (for DB isolation); auth is untouched.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
