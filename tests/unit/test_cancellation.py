"""CancellationToken / InFlightRegistry 테스트"""

from __future__ import annotations

import asyncio

import pytest

from localevents.core.exceptions import RequestCancelledException
from localevents.engine import CancellationToken, InFlightRegistry


def test_begin_supersedes_previous_token():
    registry = InFlightRegistry()
    first = registry.begin("events:a")
    second = registry.begin("events:a")

    assert first.cancelled
    assert not second.cancelled
    assert registry.is_current("events:a", second)
    assert registry.active_count == 1


def test_finish_ignores_stale_token():
    registry = InFlightRegistry()
    first = registry.begin("events:a")
    second = registry.begin("events:a")

    registry.finish("events:a", first)
    assert registry.is_current("events:a", second)

    registry.finish("events:a", second)
    assert registry.active_count == 0


def test_keys_are_independent():
    registry = InFlightRegistry()
    a = registry.begin("events:a")
    registry.begin("events:b")

    assert not a.cancelled
    assert registry.cancel_all() == 2
    assert a.cancelled


def test_raise_if_cancelled():
    token = CancellationToken("events:a")
    token.raise_if_cancelled()
    token.cancel()
    with pytest.raises(RequestCancelledException):
        token.raise_if_cancelled()


@pytest.mark.asyncio
async def test_run_returns_result():
    token = CancellationToken("events:a")

    async def work():
        await asyncio.sleep(0)
        return 42

    assert await token.run(work()) == 42


@pytest.mark.asyncio
async def test_run_aborts_pending_work_on_cancel():
    token = CancellationToken("events:a")
    started = asyncio.Event()
    aborted = asyncio.Event()

    async def slow():
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            aborted.set()
            raise

    task = asyncio.ensure_future(token.run(slow()))
    await started.wait()
    token.cancel()

    with pytest.raises(RequestCancelledException):
        await task
    assert aborted.is_set()
