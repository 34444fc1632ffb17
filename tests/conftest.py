"""Shared test fixtures.

Every test that touches the database gets a fresh SQLite file schema built
from the ORM metadata, so no Postgres or Redis is needed.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime

_TEST_DIR = tempfile.mkdtemp(prefix="connectblog_test_")
os.environ["CB_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["CB_CACHE_BACKEND"] = "memory"
os.environ["CB_LOG_FORMAT"] = "console"
os.environ["CB_LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from connectblog.config import get_settings  # noqa: E402
from connectblog.database import close_db, get_engine, init_db, session_scope  # noqa: E402
from connectblog.db.base import Base  # noqa: E402
from connectblog.db.models import Post, User  # noqa: E402
from connectblog.main import create_app  # noqa: E402

get_settings.cache_clear()


@pytest_asyncio.fixture
async def app() -> AsyncGenerator[FastAPI, None]:
    """Application with an empty schema. Lifespan is not run; the DB is set up here."""
    settings = get_settings()
    await init_db(settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    application = create_app()
    yield application

    await application.state.dispatcher.drain(timeout=5)
    await close_db()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(app: FastAPI) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for arranging data and asserting on it."""
    async with session_scope() as session:
        yield session


@pytest.fixture
def drain(app: FastAPI) -> Callable[[], Awaitable[None]]:
    """Wait for fire-and-forget notification tasks before asserting."""

    async def _drain() -> None:
        await app.state.dispatcher.drain(timeout=5)

    return _drain


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make(username: str, **fields: object) -> User:
        user = User(
            username=username,
            email=f"{username.lower()}@example.com",
            password_hash="not-a-real-hash",
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_post(db_session: AsyncSession) -> Callable[..., Awaitable[Post]]:
    async def _make(
        author: User,
        title: str = "A post",
        content: str = "Some content",
        created_at: datetime | None = None,
        **fields: object,
    ) -> Post:
        post = Post(title=title, content=content, author_id=author.id, **fields)
        if created_at is not None:
            post.created_at = created_at
            post.updated_at = created_at
        db_session.add(post)
        await db_session.commit()
        return post

    return _make


@pytest.fixture
def register(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """Register through the API; returns {"id", "token", "headers", "username"}."""

    async def _register(username: str, password: str = "secret123") -> dict:
        response = await client.post(
            "/api/auth/register",
            json={"username": username, "email": f"{username.lower()}@example.com", "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return {
            "id": data["user"]["id"],
            "username": username,
            "token": data["token"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _register
