"""Prometheus metrics middleware.

Records request count (by method, route template, status) and latency for
every HTTP request. The route template (/api/v1/dynamic-urls/{url_id})
is used instead of the raw path to keep label cardinality bounded.
"""

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chatdash.metrics import HTTP_REQUEST_DURATION, HTTP_REQUESTS_TOTAL


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        route = _route_label(request)
        HTTP_REQUESTS_TOTAL.labels(
            method=request.method, route=route, status_code=str(response.status_code)
        ).inc()
        HTTP_REQUEST_DURATION.labels(method=request.method, route=route).observe(elapsed)
        return response
