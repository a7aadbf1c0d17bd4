"""Dashboard API — shortcut links and key/value app settings.

Reading settings is public (the landing page footer needs them);
everything else requires a logged-in user.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from chatdash.auth.dependencies import get_current_user
from chatdash.db.engine import get_db
from chatdash.schemas.dashboard import (
    AppSettingRead,
    AppSettingUpdate,
    DynamicUrlCreate,
    DynamicUrlRead,
)
from chatdash.services.dashboard_service import DashboardService

router = APIRouter()

_auth = [Depends(get_current_user)]


def _svc(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


# ─── Dynamic URLs ───────────────────────────────────────

@router.get("/dynamic-urls", response_model=list[DynamicUrlRead], dependencies=_auth)
async def list_dynamic_urls(svc: DashboardService = Depends(_svc)):
    return await svc.list_urls()


@router.post(
    "/dynamic-urls",
    response_model=DynamicUrlRead,
    status_code=201,
    dependencies=_auth,
)
async def create_dynamic_url(body: DynamicUrlCreate, svc: DashboardService = Depends(_svc)):
    return await svc.create_url(name=body.name, url=body.url, icon=body.icon)


@router.put("/dynamic-urls/{url_id}", response_model=DynamicUrlRead, dependencies=_auth)
async def update_dynamic_url(
    url_id: int,
    body: DynamicUrlCreate,
    svc: DashboardService = Depends(_svc),
):
    row = await svc.update_url(url_id, name=body.name, url=body.url, icon=body.icon)
    if not row:
        raise HTTPException(status_code=404, detail="URL not found")
    return row


# ─── App settings ───────────────────────────────────────

@router.get("/settings", response_model=list[AppSettingRead])
async def list_settings(svc: DashboardService = Depends(_svc)):
    return await svc.list_settings()


@router.get("/settings/{key}", response_model=AppSettingRead)
async def get_setting(key: str, svc: DashboardService = Depends(_svc)):
    row = await svc.get_setting(key)
    if not row:
        raise HTTPException(status_code=404, detail=f"Setting '{key}' not found")
    return row


@router.put("/settings/{key}", response_model=AppSettingRead, dependencies=_auth)
async def update_setting(
    key: str,
    body: AppSettingUpdate,
    svc: DashboardService = Depends(_svc),
):
    return await svc.set_setting(key, body.value)
