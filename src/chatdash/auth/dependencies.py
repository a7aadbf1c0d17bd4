"""FastAPI auth dependencies.

Used as Depends() in route handlers to extract and validate the caller's
identity from `Authorization: Bearer <access token>`. The token is
self-contained, so no database round-trip happens here.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from chatdash.auth.jwt import TokenError, verify_token


class CurrentIdentity:
    """The authenticated user making the request."""

    def __init__(self, user_id: int, username: str):
        self.user_id = user_id
        self.username = username

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id}, username={self.username!r})"


def identity_from_token(token: str) -> CurrentIdentity:
    """Decode an access token into an identity. Raises TokenError."""
    payload = verify_token(token, expected_type="access")
    try:
        return CurrentIdentity(
            user_id=int(payload["sub"]),
            username=payload.get("username", ""),
        )
    except (KeyError, ValueError):
        raise TokenError("Token subject is not a user id")


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Soft auth: None when no credentials are sent, 401 when they're bad."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    try:
        return identity_from_token(authorization[7:])
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Hard auth: 401 unless a valid access token was sent."""
    if not identity:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
