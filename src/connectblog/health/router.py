"""Liveness, readiness and version probes."""

from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from connectblog.config import get_settings
from connectblog.database import get_session
from connectblog.redis_client import get_redis, redis_enabled

router = APIRouter()


async def _probe(check: Callable[[], Awaitable[object]]) -> str:
    try:
        await check()
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> dict[str, object]:  # noqa: B008
    """Database is always checked; Redis only when the cache runs on it."""
    checks = {"database": await _probe(lambda: db.execute(text("SELECT 1")))}
    if redis_enabled():
        checks["redis"] = await _probe(lambda: get_redis().ping())

    status = "ready" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
