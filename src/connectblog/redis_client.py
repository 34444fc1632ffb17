"""Redis client, only created when the response cache is Redis-backed."""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    global _client  # noqa: PLW0603
    # Cache values are JSON bytes, so responses are not decoded.
    _client = redis.from_url(url, max_connections=50)  # type: ignore[no-untyped-call]


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    if _client is None:
        raise RuntimeError("Redis not initialized. Set CB_CACHE_BACKEND=redis.")
    return _client


def redis_enabled() -> bool:
    """Whether this process has a Redis client (i.e. the cache runs on Redis)."""
    return _client is not None
