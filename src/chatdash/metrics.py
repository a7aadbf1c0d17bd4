"""Prometheus metrics.

Module-level collectors on the default registry; /metrics exposes them.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "Duration of HTTP requests in seconds",
    ["method", "route"],
    buckets=(0.1, 0.5, 1, 2, 5),
)

WEBSOCKET_CONNECTIONS_ACTIVE = Gauge(
    "websocket_connections_active",
    "Number of active WebSocket connections",
)

CHAT_MESSAGES_TOTAL = Counter(
    "chat_messages_total",
    "Total number of chat messages sent",
)


def render_latest() -> tuple[bytes, str]:
    """Exposition body + content type for the /metrics endpoint."""
    return generate_latest(), CONTENT_TYPE_LATEST
