"""HS256 bearer tokens.

Only access tokens are issued; ``sub`` carries the user id and ``username`` is
included so the realtime channel can identify a client without a lookup.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from connectblog.config import get_settings


def create_access_token(user_id: int, username: str) -> str:
    """Create a signed access token for ``user_id``."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """Decode and validate a token.

    Raises:
        jwt.InvalidTokenError: On bad signature, expiry, issuer or token type.
    """
    settings = get_settings()
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp", "iss", "type"]},
    )
    if payload.get("type") != expected_type:
        msg = f"Expected {expected_type} token, got {payload.get('type')}"
        raise jwt.InvalidTokenError(msg)
    return payload


def user_id_from_token(token: str) -> int:
    """Return the user id carried by a valid access token."""
    payload = verify_token(token)
    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise jwt.InvalidTokenError("Malformed subject claim") from e
