"""Dependencies for the long-lived components built in the app lifespan.

The lifespan stores them on app.state; routes and the WebSocket endpoint
pull them through these functions, and tests swap them with
app.dependency_overrides.
"""

from starlette.requests import HTTPConnection

from chatdash.realtime.registry import ConnectionRegistry
from chatdash.services.chat_gateway import ChatGateway
from chatdash.tasks.queue import TaskQueue


def get_gateway(conn: HTTPConnection) -> ChatGateway:
    return conn.app.state.gateway


def get_registry(conn: HTTPConnection) -> ConnectionRegistry:
    return conn.app.state.registry


def get_task_queue(conn: HTTPConnection) -> TaskQueue:
    return conn.app.state.tasks
