from __future__ import annotations

import pytest

from core.resilience.degradation import (
    PROPAGATE,
    CallKind,
    DegradationPolicy,
    degrade_to,
    guarded_call,
)
from core.resilience.errors import RemoteOperationError, TransientTransportFailure
from core.resilience.policy import RetryPolicy


FAST = RetryPolicy(max_attempts=2, base_delay_ms=1, timeout_ms=100, jitter_ms=0, delay_cap_ms=1)


async def _offline() -> list[str]:
    raise TransientTransportFailure("offline")


async def test_read_returns_fallback_after_retries() -> None:
    result = await guarded_call(
        _offline, retry_policy=FAST, degradation=degrade_to(list), operation="read"
    )
    assert result == []


async def test_read_fallback_is_fresh_each_time() -> None:
    first = await guarded_call(
        _offline, retry_policy=FAST, degradation=degrade_to(list), operation="read"
    )
    first.append("mutated")
    second = await guarded_call(
        _offline, retry_policy=FAST, degradation=degrade_to(list), operation="read"
    )
    assert second == []


async def test_read_success_is_returned_untouched() -> None:
    async def ok() -> list[str]:
        return ["a"]

    result = await guarded_call(
        ok, retry_policy=FAST, degradation=degrade_to(list), operation="read"
    )
    assert result == ["a"]


async def test_write_failure_propagates() -> None:
    async def rejected() -> None:
        raise RemoteOperationError("duplicate", kind="conflict")

    with pytest.raises(RemoteOperationError):
        await guarded_call(
            rejected, retry_policy=FAST, degradation=PROPAGATE, operation="write"
        )


async def test_write_exhaustion_propagates_retryable_error() -> None:
    with pytest.raises(TransientTransportFailure) as exc_info:
        await guarded_call(
            _offline, retry_policy=FAST, degradation=PROPAGATE, operation="write"
        )
    assert exc_info.value.exhausted is True


def test_reads_need_a_fallback_and_writes_cannot_have_one() -> None:
    with pytest.raises(ValueError):
        DegradationPolicy(kind=CallKind.READ)
    with pytest.raises(ValueError):
        DegradationPolicy(kind=CallKind.WRITE, fallback=list)
