"""Registration and credential checks."""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.auth.password import hash_password, verify_password
from connectblog.db.models import User
from connectblog.errors import ValidationFailed
from connectblog.users.service import get_user_by_email


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    *,
    password_min_length: int = 6,
) -> User:
    """Create a user. Raises ValidationFailed on weak password or taken username/email."""
    if len(password) < password_min_length:
        raise ValidationFailed(f"Password must be at least {password_min_length} characters")

    result = await db.execute(select(User.id).where(or_(User.username == username, User.email == email)))
    if result.first() is not None:
        raise ValidationFailed("User already exists")

    user = User(username=username, email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ValidationFailed("User already exists") from e
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user if the credentials match, else None."""
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user
