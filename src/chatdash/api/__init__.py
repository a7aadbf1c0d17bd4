"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Auth is per-route rather than per-router here: reading the chat and
the settings is public, while every mutation requires a user.
"""

from fastapi import APIRouter

from chatdash.api.auth import router as auth_router
from chatdash.api.chat import router as chat_router
from chatdash.api.dashboard import router as dashboard_router
from chatdash.api.health import router as health_router
from chatdash.api.tasks import router as tasks_router
from chatdash.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(chat_router, tags=["chat"])
api_router.include_router(dashboard_router, tags=["dashboard"])
api_router.include_router(tasks_router, tags=["tasks"])
