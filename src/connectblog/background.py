"""Fire-and-forget task dispatch.

Side effects such as notification fan-out run after the triggering write has
committed, on their own task. The caller never awaits them and their failures
are logged, never propagated.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

logger = structlog.get_logger()


class BackgroundDispatcher:
    """Spawns detached tasks and holds strong references until they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        """Schedule ``coro`` on the running loop and return immediately."""
        task = asyncio.create_task(self._guard(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Coroutine[Any, Any, Any], name: str | None) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("background_task_cancelled", task=name)
            raise
        except Exception:
            logger.warning("background_task_failed", task=name, exc_info=True)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight tasks, including ones they spawn. Best effort."""
        while self._tasks:
            pending = list(self._tasks)
            _done, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                logger.warning("background_drain_timeout", remaining=len(not_done))
                for task in not_done:
                    task.cancel()
                return
