"""Storage backends for the response cache.

Values are serialized JSON bytes, so a stored entry is an immutable snapshot
and later mutation of the response object cannot change what a hit returns.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol

import redis.asyncio as aioredis


class CacheBackend(Protocol):
    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl: int) -> None: ...


class MemoryCacheBackend:
    """Process-local TTL cache.

    Expired entries are evicted when read, and a write sweeps the whole map
    once ``check_period`` seconds have passed since the previous sweep, so
    keys that are never read again do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, check_period: float = 600.0) -> None:
        self._entries: dict[str, tuple[float, bytes]] = {}
        self._clock = clock
        self._check_period = check_period
        self._next_sweep = clock() + check_period

    async def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self.purge_expired()
            self._next_sweep = now + self._check_period
        self._entries[key] = (now + ttl, bytes(value))

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheBackend:
    """Shared cache for multi-process deployments, via SETEX."""

    def __init__(self, redis: aioredis.Redis, prefix: str = "cache:") -> None:
        self._redis = redis
        self._prefix = prefix

    async def get(self, key: str) -> bytes | None:
        value = await self._redis.get(self._prefix + key)
        if value is None:
            return None
        return value.encode() if isinstance(value, str) else value

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        await self._redis.setex(self._prefix + key, ttl, value)
