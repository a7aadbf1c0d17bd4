"""Auth API — registration, login, token refresh.

Routes:
- POST /auth/register → create a user account
- POST /auth/login → username/password → JWT pair
- POST /auth/refresh → refresh token → new JWT pair
- GET /auth/me → current user info
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatdash.auth.dependencies import CurrentIdentity, get_current_user
from chatdash.auth.jwt import (
    TokenError,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from chatdash.auth.password import hash_password, verify_password
from chatdash.db.engine import get_db
from chatdash.db.models import User
from chatdash.schemas.user import UserRead

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


def _tokens_for(user_id: int, username: str) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user_id, username),
        refresh_token=create_refresh_token(user_id, username),
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a new user account."""
    q = select(User).where(
        or_(User.username == body.username, User.email == body.email)
    )
    existing = (await db.execute(q)).scalars().first()
    if existing:
        field = "Username" if existing.username == body.username else "Email"
        raise HTTPException(status_code=409, detail=f"{field} already registered")

    user = User(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    q = select(User).where(User.username == body.username)
    user = (await db.execute(q)).scalars().first()

    if not user or not user.password_hash:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return _tokens_for(user.id, user.username)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest):
    """Exchange a refresh token for a new pair."""
    try:
        payload = verify_token(body.refresh_token, expected_type="refresh")
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return _tokens_for(int(payload["sub"]), payload.get("username", ""))


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, identity.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
