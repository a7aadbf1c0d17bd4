"""JWT token creation and verification.

- Access token: short-lived (60min), sent as `Authorization: Bearer ...`
  and as `?token=` on the WebSocket URL
- Refresh token: long-lived (30 days), only good for /auth/refresh

Claims: sub (user id as string), username, type, exp, iat.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from chatdash.config import settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def _encode(payload: dict) -> str:
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: int,
    username: str,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    return _encode({
        "sub": str(user_id),
        "username": username,
        "type": "access",
        "exp": now + timedelta(
            minutes=expires_minutes or settings.access_token_expire_minutes
        ),
        "iat": now,
    })


def create_refresh_token(
    user_id: int,
    username: str,
    expires_days: Optional[int] = None,
) -> str:
    """Create a JWT refresh token."""
    now = datetime.now(timezone.utc)
    return _encode({
        "sub": str(user_id),
        "username": username,
        "type": "refresh",
        "exp": now + timedelta(days=expires_days or settings.refresh_token_expire_days),
        "iat": now,
    })


def verify_token(token: str, expected_type: Optional[str] = None) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure, or if the token type doesn't match.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if expected_type and payload.get("type") != expected_type:
        raise TokenError(f"Not an {expected_type} token")
    return payload
