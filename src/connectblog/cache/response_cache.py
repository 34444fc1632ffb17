"""Viewer-partitioned response cache for read endpoints.

Key = viewer identity (or "anonymous") + route path + exact query string.
Entries expire by TTL only; writes do not invalidate, staleness up to the
TTL is accepted. Backend failures degrade to direct computation.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response

from connectblog.cache.backends import CacheBackend

logger = structlog.get_logger()

ANONYMOUS = "anonymous"


def cache_key(request: Request, viewer_id: int | None) -> str:
    viewer = str(viewer_id) if viewer_id is not None else ANONYMOUS
    return f"{viewer}:{request.url.path}?{request.url.query}"


class ResponseCache:
    """Read-through cache around a JSON-producing coroutine."""

    def __init__(self, backend: CacheBackend) -> None:
        self.backend = backend

    async def lookup(self, key: str) -> bytes | None:
        try:
            return await self.backend.get(key)
        except Exception:
            logger.warning("cache_get_failed", key=key, exc_info=True)
            return None

    async def store(self, key: str, body: bytes, ttl: int) -> None:
        try:
            await self.backend.set(key, body, ttl)
        except Exception:
            logger.warning("cache_set_failed", key=key, exc_info=True)

    async def respond(
        self,
        request: Request,
        viewer_id: int | None,
        ttl: int,
        compute: Callable[[], Awaitable[Any]],
    ) -> Response:
        """Serve from cache, or compute, store and serve.

        ``compute`` raising (an HTTP error, a domain error) propagates and
        nothing is stored.
        """
        if request.method != "GET":
            return _json_response(await compute(), "BYPASS")

        key = cache_key(request, viewer_id)
        cached = await self.lookup(key)
        if cached is not None:
            return Response(content=cached, media_type="application/json", headers={"X-Cache": "HIT"})

        body = _encode(await compute())
        await self.store(key, body, ttl)
        return Response(content=body, media_type="application/json", headers={"X-Cache": "MISS"})


def _encode(payload: Any) -> bytes:
    return json.dumps(jsonable_encoder(payload), separators=(",", ":")).encode()


def _json_response(payload: Any, status: str) -> Response:
    return Response(content=_encode(payload), media_type="application/json", headers={"X-Cache": status})
