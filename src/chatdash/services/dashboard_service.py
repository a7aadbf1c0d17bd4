"""Dashboard service — shortcut links and key/value app settings.

Plain CRUD over two small tables. Neither is cached nor broadcast;
dashboards read them on page load.
"""

from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chatdash.db.models import AppSetting, DynamicUrl

logger = structlog.get_logger()

DEFAULT_URLS = [
    {"name": "My Portfolio", "url": "https://portfolio.example.com", "icon": "fas fa-server"},
    {"name": "Task Manager App", "url": "https://taskmanager.example.com", "icon": "fas fa-chart-line"},
    {"name": "Dockerfile Optimizer", "url": "https://dockerfile.example.com", "icon": "fas fa-cogs"},
    {"name": "DevOps Tools", "url": "https://tools.example.com", "icon": "fas fa-tools"},
]

DEFAULT_SETTINGS = {
    "learn_more_url": "https://learn.example.com",
    "github_url": "https://github.com/username",
    "email": "contact@example.com",
    "linkedin_url": "https://linkedin.com/in/username",
}


class DashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Dynamic URLs ────────────────────────────────────

    async def list_urls(self) -> list[DynamicUrl]:
        result = await self.db.execute(select(DynamicUrl).order_by(DynamicUrl.id))
        return list(result.scalars().all())

    async def create_url(self, name: str, url: str, icon: str) -> DynamicUrl:
        row = DynamicUrl(name=name, url=url, icon=icon)
        self.db.add(row)
        await self.db.commit()
        return row

    async def update_url(
        self, url_id: int, name: str, url: str, icon: str
    ) -> Optional[DynamicUrl]:
        """Replace a shortcut's fields. Returns None if it doesn't exist."""
        row = await self.db.get(DynamicUrl, url_id)
        if not row:
            return None
        row.name = name
        row.url = url
        row.icon = icon
        await self.db.commit()
        return row

    # ─── App settings ────────────────────────────────────

    async def list_settings(self) -> list[AppSetting]:
        result = await self.db.execute(select(AppSetting).order_by(AppSetting.id))
        return list(result.scalars().all())

    async def get_setting(self, key: str) -> Optional[AppSetting]:
        result = await self.db.execute(select(AppSetting).where(AppSetting.key == key))
        return result.scalars().first()

    async def set_setting(self, key: str, value: str) -> AppSetting:
        """Upsert by key."""
        row = await self.get_setting(key)
        if row:
            row.value = value
        else:
            row = AppSetting(key=key, value=value)
            self.db.add(row)
        await self.db.commit()
        logger.info("settings.updated", key=key)
        return row


async def seed_defaults(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Insert default shortcuts and settings into empty tables (first start)."""
    async with session_factory() as session:
        url_count = await session.scalar(select(func.count()).select_from(DynamicUrl))
        if not url_count:
            session.add_all(DynamicUrl(**u) for u in DEFAULT_URLS)

        existing = set(
            (await session.execute(select(AppSetting.key))).scalars().all()
        )
        session.add_all(
            AppSetting(key=k, value=v)
            for k, v in DEFAULT_SETTINGS.items()
            if k not in existing
        )
        await session.commit()
    logger.info("dashboard.defaults_seeded")
