"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.jwt import user_id_from_token
from connectblog.database import get_session
from connectblog.db.models import User
from connectblog.users.service import get_user_by_id

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Extract and verify the bearer token, return the User. 401 on any failure."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    try:
        user_id = user_id_from_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """Like get_current_user, but a missing or invalid token means anonymous."""
    if credentials is None:
        return None
    try:
        user_id = user_id_from_token(credentials.credentials)
    except jwt.InvalidTokenError:
        return None
    return await get_user_by_id(db, user_id)
