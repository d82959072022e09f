"""Retry runs: attempt counts, waits and the errors that leave a run."""

from __future__ import annotations

import asyncio
import random

import httpx
import pytest

from core.resilience.backoff import BackoffScheduler
from core.resilience.errors import (
    RemoteOperationError,
    TimeoutExceeded,
    TransientTransportFailure,
    UnclassifiedError,
)
from core.resilience.orchestrator import RetryOrchestrator, with_retry
from core.resilience.outcome import Attempt
from core.resilience.policy import RetryPolicy


SCENARIO_POLICY = RetryPolicy(
    max_attempts=3, base_delay_ms=100, timeout_ms=1000, jitter_ms=50, delay_cap_ms=1000
)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds * 1000)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def attempts() -> list[Attempt]:
    return []


@pytest.fixture
def orchestrator(sleeper: RecordingSleep, attempts: list[Attempt]) -> RetryOrchestrator:
    scheduler = BackoffScheduler(rng=random.Random(1), sleep=sleeper)
    return RetryOrchestrator(scheduler=scheduler, on_attempt=attempts.append)


async def test_transport_failures_then_success(
    orchestrator: RetryOrchestrator, sleeper: RecordingSleep, attempts: list[Attempt]
) -> None:
    calls = 0

    async def attempt() -> int:
        nonlocal calls
        calls += 1
        if calls <= 2:
            raise httpx.ConnectError(
                "refused", request=httpx.Request("GET", "https://store.test")
            )
        return 42

    assert await orchestrator.run(attempt, SCENARIO_POLICY) == 42
    assert calls == 3
    assert len(sleeper.calls) == 2
    assert 100 <= sleeper.calls[0] <= 150
    assert 200 <= sleeper.calls[1] <= 250
    assert [a.succeeded for a in attempts] == [False, False, True]
    assert attempts[-1].delay_ms is None


async def test_fatal_failure_stops_after_one_call(
    orchestrator: RetryOrchestrator, sleeper: RecordingSleep
) -> None:
    calls = 0

    async def attempt() -> None:
        nonlocal calls
        calls += 1
        raise RemoteOperationError("bad payload", kind="validation", status_code=400)

    with pytest.raises(RemoteOperationError) as exc_info:
        await orchestrator.run(attempt, SCENARIO_POLICY)

    assert calls == 1
    assert sleeper.calls == []
    assert exc_info.value.kind == "validation"
    assert exc_info.value.attempts == 1
    assert exc_info.value.exhausted is False


@pytest.mark.parametrize("max_attempts", [1, 2, 5])
async def test_permanent_retryable_failure_makes_exactly_max_attempts(
    orchestrator: RetryOrchestrator, sleeper: RecordingSleep, max_attempts: int
) -> None:
    calls = 0

    async def attempt() -> None:
        nonlocal calls
        calls += 1
        raise TransientTransportFailure("offline")

    policy = RetryPolicy(max_attempts=max_attempts, base_delay_ms=10, delay_cap_ms=20)
    with pytest.raises(TransientTransportFailure) as exc_info:
        await orchestrator.run(attempt, policy)

    assert calls == max_attempts
    assert len(sleeper.calls) == max_attempts - 1
    assert all(d <= 20 for d in sleeper.calls)
    assert exc_info.value.attempts == max_attempts
    assert exc_info.value.exhausted is True


async def test_hanging_attempts_time_out_on_every_try(
    orchestrator: RetryOrchestrator, attempts: list[Attempt]
) -> None:
    calls = 0

    async def attempt() -> None:
        nonlocal calls
        calls += 1
        await asyncio.Event().wait()

    policy = RetryPolicy(max_attempts=3, base_delay_ms=1, timeout_ms=10, delay_cap_ms=5)
    with pytest.raises(TimeoutExceeded) as exc_info:
        await orchestrator.run(attempt, policy)

    assert calls == 3
    assert exc_info.value.exhausted is True
    assert [a.index for a in attempts] == [0, 1, 2]


async def test_unrecognised_error_fails_fast_with_original_as_cause(
    orchestrator: RetryOrchestrator,
) -> None:
    original = ZeroDivisionError("division by zero")

    async def attempt() -> None:
        raise original

    with pytest.raises(UnclassifiedError) as exc_info:
        await orchestrator.run(attempt, SCENARIO_POLICY)

    assert exc_info.value.__cause__ is original
    assert exc_info.value.attempts == 1


async def test_with_retry_decorator_passes_arguments(
    orchestrator: RetryOrchestrator,
) -> None:
    seen: list[tuple[int, str]] = []

    @with_retry(SCENARIO_POLICY, orchestrator=orchestrator)
    async def fetch(value: int, *, label: str) -> str:
        seen.append((value, label))
        if len(seen) == 1:
            raise TimeoutError()
        return f"{label}-{value}"

    assert await fetch(7, label="row") == "row-7"
    assert seen == [(7, "row"), (7, "row")]
    assert fetch.__name__ == "fetch"


async def test_before_retry_runs_ahead_of_each_retry(
    orchestrator: RetryOrchestrator,
) -> None:
    events: list[str] = []

    async def reset() -> None:
        events.append("reset")

    async def attempt() -> str:
        events.append("attempt")
        if events.count("attempt") < 3:
            raise TransientTransportFailure("dropped")
        return "ok"

    result = await orchestrator.run(
        attempt, SCENARIO_POLICY, operation="reads", before_retry=reset
    )

    assert result == "ok"
    assert events == ["attempt", "reset", "attempt", "reset", "attempt"]


async def test_before_retry_failure_is_classified(
    orchestrator: RetryOrchestrator, attempts: list[Attempt]
) -> None:
    calls = 0

    async def reset() -> None:
        raise ValueError("session unusable")

    async def attempt() -> None:
        nonlocal calls
        calls += 1
        raise TransientTransportFailure("dropped")

    with pytest.raises(UnclassifiedError) as exc_info:
        await orchestrator.run(attempt, SCENARIO_POLICY, before_retry=reset)

    assert calls == 1
    assert exc_info.value.attempts == 2
