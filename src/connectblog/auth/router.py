"""Authentication endpoints: /api/auth/*."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.dependencies import get_current_user
from connectblog.auth.jwt import create_access_token
from connectblog.auth.schemas import LoginRequest, RegisterRequest, TokenResponse
from connectblog.auth.service import authenticate, register_user
from connectblog.config import get_settings
from connectblog.database import get_session
from connectblog.db.models import User
from connectblog.users.router import private_profile
from connectblog.users.schemas import PrivateUserResponse
from connectblog.users.service import get_profile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


async def _token_response(db: AsyncSession, user: User) -> TokenResponse:
    profile = await get_profile(db, user.id, private=True)
    return TokenResponse(
        token=create_access_token(user.id, user.username),
        user=private_profile(profile),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_session)):
    """Create an account and return a bearer token."""
    user = await register_user(
        db,
        body.username,
        body.email,
        body.password,
        password_min_length=get_settings().password_min_length,
    )
    await db.commit()
    logger.info("user_registered", user_id=user.id)
    return await _token_response(db, user)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_session)):
    user = await authenticate(db, body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return await _token_response(db, user)


@router.get("/me", response_model=PrivateUserResponse)
async def me(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_session)):
    return private_profile(await get_profile(db, user.id, private=True))
