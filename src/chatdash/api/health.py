"""Health check endpoints (Kubernetes-style probes).

- /health: overall status + per-dependency detail, always 200
- /health/ready: 200 only when the database and message store answer
- /health/live: the process is up and the event loop responds
"""

import resource
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from chatdash import __version__
from chatdash.db.engine import engine

router = APIRouter(prefix="/health")

_started = time.monotonic()


async def _check_dependencies(request: Request) -> dict[str, str]:
    checks: dict[str, str] = {}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    state = request.app.state
    store = getattr(state, "gateway", None) and state.gateway.store
    checks["message_store"] = "ok" if store and await store.ping() else "unavailable"

    # Cache and queue are optional: "degraded", never "not ready".
    cache = getattr(state, "cache", None)
    checks["cache"] = "ok" if cache and await cache.ping() else "degraded"
    tasks = getattr(state, "tasks", None)
    checks["task_queue"] = "ok" if tasks and await tasks.ping() else "degraded"
    return checks


@router.get("")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = await _check_dependencies(request)
    status = "healthy" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "server": "ok", "version": __version__, **checks}


@router.get("/ready")
async def readiness(request: Request):
    checks = await _check_dependencies(request)
    ready = checks["database"] == "ok" and checks["message_store"] == "ok"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": checks,
        },
    )


@router.get("/live")
async def liveness():
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.monotonic() - _started, 3),
        "cpu": {"user": usage.ru_utime, "system": usage.ru_stime},
        "max_rss_kb": usage.ru_maxrss,
    }
