"""Unit tests for the fire-and-forget dispatcher."""

from __future__ import annotations

import asyncio

import pytest

from connectblog.background import BackgroundDispatcher

pytestmark = pytest.mark.asyncio


async def test_spawn_does_not_wait():
    dispatcher = BackgroundDispatcher()
    release = asyncio.Event()
    finished = []

    async def job():
        await release.wait()
        finished.append(True)

    dispatcher.spawn(job(), name="job")
    assert dispatcher.pending == 1
    assert finished == []

    release.set()
    await dispatcher.drain(timeout=1)
    assert finished == [True]
    assert dispatcher.pending == 0


async def test_failures_are_swallowed():
    dispatcher = BackgroundDispatcher()

    async def boom():
        raise RuntimeError("insert failed")

    task = dispatcher.spawn(boom(), name="boom")
    await dispatcher.drain(timeout=1)
    assert task.done()
    assert task.exception() is None


async def test_drain_waits_for_nested_spawns():
    dispatcher = BackgroundDispatcher()
    seen = []

    async def inner():
        seen.append("inner")

    async def outer():
        dispatcher.spawn(inner(), name="inner")

    dispatcher.spawn(outer(), name="outer")
    await dispatcher.drain(timeout=1)
    assert seen == ["inner"]


async def test_drain_timeout_cancels_stragglers():
    dispatcher = BackgroundDispatcher()

    async def hang():
        await asyncio.sleep(60)

    task = dispatcher.spawn(hang(), name="hang")
    await dispatcher.drain(timeout=0.01)
    await asyncio.wait([task], timeout=1)
    assert task.cancelled()
