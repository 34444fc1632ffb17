"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from connectblog.auth.router import router as auth_router
from connectblog.background import BackgroundDispatcher
from connectblog.cache.backends import MemoryCacheBackend, RedisCacheBackend
from connectblog.cache.response_cache import ResponseCache
from connectblog.config import get_settings
from connectblog.database import close_db, init_db, session_scope
from connectblog.health.router import router as health_router
from connectblog.middleware import setup_middleware
from connectblog.posts.comment_router import router as comment_router
from connectblog.posts.router import router as posts_router
from connectblog.redis_client import close_redis, get_redis, init_redis
from connectblog.social.notification_router import router as notification_router
from connectblog.social.notification_service import NotificationEngine
from connectblog.social.presence import PresenceMap
from connectblog.users.router import router as users_router
from connectblog.ws.manager import ConnectionManager
from connectblog.ws.router import router as ws_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.cache_backend == "redis":
        await init_redis(settings.redis_url)
        app.state.response_cache.backend = RedisCacheBackend(get_redis())
    logger.info("startup_complete", environment=settings.environment, cache=settings.cache_backend)

    yield

    # Let in-flight notification tasks finish before their sessions go away.
    await app.state.dispatcher.drain(timeout=settings.shutdown_drain_timeout_seconds)
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ConnectBlog API",
        description="Backend API for ConnectBlog, a social blogging platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.presence = PresenceMap()
    app.state.connections = ConnectionManager()
    app.state.dispatcher = BackgroundDispatcher()
    app.state.notifier = NotificationEngine(
        session_scope,
        app.state.presence,
        app.state.connections,
        app.state.dispatcher,
    )
    app.state.response_cache = ResponseCache(MemoryCacheBackend(check_period=settings.cache_check_period_seconds))

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(posts_router)
    app.include_router(comment_router)
    app.include_router(notification_router)
    app.include_router(ws_router)

    return app


app = create_app()
