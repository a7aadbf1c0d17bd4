"""FastAPI application factory.

create_app() returns a configured FastAPI instance. The lifespan builds
the long-lived chat components (registry, store, cache, task queue,
gateway), stores them on app.state, and tears them down at shutdown.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatdash import __version__
from chatdash.api import api_router
from chatdash.cache.base import MemoryCache, MessageCache, NullCache
from chatdash.config import Settings, settings
from chatdash.realtime.registry import ConnectionRegistry
from chatdash.services.chat_gateway import ChatGateway
from chatdash.store.base import MessageStore
from chatdash.tasks.queue import NullTaskQueue, RedisTaskQueue, TaskQueue

logger = structlog.get_logger()


def build_message_store(config: Settings) -> MessageStore:
    if config.message_store == "memory":
        from chatdash.store.memory import MemoryMessageStore
        return MemoryMessageStore()

    from chatdash.db.engine import async_session_factory
    from chatdash.store.sql import SqlMessageStore
    return SqlMessageStore(async_session_factory)


def build_cache(config: Settings, redis_client) -> MessageCache:
    if config.cache_backend == "memory":
        return MemoryCache()
    if config.cache_backend == "redis" and redis_client is not None:
        from chatdash.cache.redis import RedisCache
        return RedisCache(redis_client)
    return NullCache()


def build_task_queue(redis_client) -> TaskQueue:
    if redis_client is None:
        return NullTaskQueue()
    return RedisTaskQueue(redis_client)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` at shutdown.
    """
    logger.info(
        "chatdash.starting",
        version=__version__,
        environment=settings.environment,
        message_store=settings.message_store,
        cache_backend=settings.cache_backend,
    )

    from chatdash.cache.redis import close_redis, init_redis
    from chatdash.db.engine import async_session_factory, engine, init_models

    if settings.create_schema:
        await init_models()
    if settings.seed_defaults:
        from chatdash.services.dashboard_service import seed_defaults
        try:
            await seed_defaults(async_session_factory)
        except Exception as e:
            logger.warning("chatdash.seed_failed", error=str(e))

    # Redis is optional: without it there is no shared cache and no queue
    redis_client = None
    if settings.redis_url:
        try:
            redis_client = await init_redis()
            logger.info("chatdash.redis_connected", url=settings.redis_url)
        except Exception as e:
            logger.warning("chatdash.redis_unavailable", error=str(e))

    registry = ConnectionRegistry(send_timeout=settings.ws_send_timeout_seconds)
    cache = build_cache(settings, redis_client)
    tasks = build_task_queue(redis_client)
    app.state.registry = registry
    app.state.cache = cache
    app.state.tasks = tasks
    app.state.gateway = ChatGateway(
        store=build_message_store(settings),
        cache=cache,
        registry=registry,
        tasks=tasks,
        cache_ttl=settings.chat_cache_ttl_seconds,
    )

    yield

    logger.info("chatdash.shutdown", connections=len(registry))
    await registry.close_all()
    await close_redis()
    await engine.dispose()


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are the caller's fault: 400, not 422."""
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request data", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="chatdash",
        description="Chat room and dashboard backend with live WebSocket updates",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → Metrics → handler

    from chatdash.middleware.metrics import MetricsMiddleware
    from chatdash.middleware.rate_limit import RateLimitMiddleware
    from chatdash.middleware.request_id import RequestIdMiddleware
    from chatdash.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(api_router)

    from chatdash.api.metrics import router as metrics_router
    from chatdash.realtime.websocket import router as ws_router
    app.include_router(metrics_router)
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: chatdash.main:app)
app = create_app()


def run():
    """Console entry point: `chatdash-server`."""
    import uvicorn

    uvicorn.run(
        "chatdash.main:app",
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
    )
