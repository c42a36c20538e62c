"""Tests for the LatestWins generation guard."""

import asyncio

import pytest

from enodia_engine.errors import StaleResponse
from enodia_engine.latest import LatestWins

pytestmark = pytest.mark.unit


@pytest.mark.anyio
async def test_returns_result_when_current():
    guard = LatestWins()

    async def op():
        return 42

    assert await guard.run(op) == 42
    assert guard.generation == 1


@pytest.mark.anyio
async def test_older_result_is_stale():
    guard = LatestWins()
    gate = asyncio.Event()

    async def slow():
        await gate.wait()
        return "old"

    async def fast():
        return "new"

    first = asyncio.create_task(guard.run(slow))
    await asyncio.sleep(0)
    assert await guard.run(fast) == "new"
    gate.set()
    with pytest.raises(StaleResponse) as exc_info:
        await first
    assert exc_info.value.generation == 1
    assert exc_info.value.latest == 2


@pytest.mark.anyio
async def test_invalidate_makes_in_flight_stale():
    guard = LatestWins()
    gate = asyncio.Event()

    async def op():
        await gate.wait()
        return 1

    task = asyncio.create_task(guard.run(op))
    await asyncio.sleep(0)
    guard.invalidate()
    gate.set()
    with pytest.raises(StaleResponse):
        await task


@pytest.mark.anyio
async def test_debounce_skips_superseded_operation():
    guard = LatestWins(debounce=0.05)
    calls = []

    async def op(label):
        calls.append(label)
        return label

    first = asyncio.create_task(guard.run(lambda: op("a")))
    await asyncio.sleep(0)
    assert await guard.run(lambda: op("b")) == "b"
    with pytest.raises(StaleResponse):
        await first
    assert calls == ["b"]


def test_begin_and_is_current():
    guard = LatestWins()
    g1 = guard.begin()
    assert guard.is_current(g1)
    g2 = guard.begin()
    assert not guard.is_current(g1)
    assert guard.is_current(g2)


@pytest.mark.anyio
async def test_error_from_superseded_operation_is_stale():
    guard = LatestWins()
    gate = asyncio.Event()

    async def failing():
        await gate.wait()
        raise RuntimeError("upstream broke")

    async def fine():
        return "new"

    first = asyncio.create_task(guard.run(failing))
    await asyncio.sleep(0)
    await guard.run(fine)
    gate.set()
    with pytest.raises(StaleResponse) as exc_info:
        await first
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.anyio
async def test_error_from_current_operation_propagates():
    guard = LatestWins()

    async def failing():
        raise RuntimeError("upstream broke")

    with pytest.raises(RuntimeError):
        await guard.run(failing)
