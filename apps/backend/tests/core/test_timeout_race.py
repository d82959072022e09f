from __future__ import annotations

import asyncio

import pytest

from core.resilience.errors import TimeoutExceeded
from core.resilience.outcome import RetryableFailure, Success
from core.resilience.timeout import race


async def test_settled_attempt_wins() -> None:
    async def attempt() -> int:
        return 42

    assert await race(attempt, 100) == Success(42)


async def test_never_settling_attempt_times_out_and_is_cancelled() -> None:
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def attempt() -> None:
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    outcome = await race(attempt, 10)

    assert isinstance(outcome, RetryableFailure)
    assert isinstance(outcome.cause, TimeoutExceeded)
    assert outcome.cause.timeout_ms == 10
    assert "10ms" in outcome.cause.message
    assert started.is_set()
    await asyncio.wait_for(cancelled.wait(), 1)


async def test_attempt_failure_propagates_unchanged() -> None:
    async def attempt() -> None:
        raise KeyError("missing")

    with pytest.raises(KeyError):
        await race(attempt, 100)


async def test_synchronous_raise_propagates() -> None:
    def attempt():
        raise RuntimeError("raised before any awaitable existed")

    with pytest.raises(RuntimeError):
        await race(attempt, 100)
