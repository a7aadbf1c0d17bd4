"""Users API — public directory (no password hashes)."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatdash.db.engine import get_db
from chatdash.db.models import User
from chatdash.schemas.user import UserRead

router = APIRouter()


@router.get("/users", response_model=list[UserRead])
async def list_users(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())
