from __future__ import annotations

import random

import pytest

from core.config import get_settings
from core.resilience.backoff import BackoffScheduler
from core.resilience.policy import RetryPolicies, RetryPolicy, get_retry_policies


def test_delay_grows_exponentially_without_jitter() -> None:
    scheduler = BackoffScheduler()
    policy = RetryPolicy(base_delay_ms=100, jitter_ms=0, delay_cap_ms=10_000)

    assert [scheduler.delay_for(i, policy) for i in range(4)] == [100, 200, 400, 800]


def test_delay_never_exceeds_cap() -> None:
    scheduler = BackoffScheduler(rng=random.Random(7))
    policy = RetryPolicy(base_delay_ms=100, jitter_ms=50, delay_cap_ms=1000)

    delays = [scheduler.delay_for(i, policy) for i in range(20)]
    assert all(0 <= d <= 1000 for d in delays)
    assert delays[-1] == 1000


def test_jitter_stays_within_bounds() -> None:
    scheduler = BackoffScheduler(rng=random.Random(3))
    policy = RetryPolicy(base_delay_ms=100, jitter_ms=50, delay_cap_ms=1000)

    for _ in range(50):
        assert 100 <= scheduler.delay_for(0, policy) <= 150
        assert 200 <= scheduler.delay_for(1, policy) <= 250


def test_huge_attempt_index_saturates_at_cap() -> None:
    scheduler = BackoffScheduler()
    policy = RetryPolicy(base_delay_ms=100, jitter_ms=0, delay_cap_ms=1500)
    assert scheduler.delay_for(10_000, policy) == 1500


def test_zero_base_stays_zero_at_huge_attempt_index() -> None:
    scheduler = BackoffScheduler()
    policy = RetryPolicy(base_delay_ms=0, jitter_ms=0, delay_cap_ms=1500)
    assert scheduler.delay_for(10_000, policy) == 0
    assert scheduler.delay_for(3, policy) == 0


def test_negative_attempt_index_is_rejected() -> None:
    with pytest.raises(ValueError):
        BackoffScheduler().delay_for(-1, RetryPolicy())


async def test_wait_uses_injected_sleep() -> None:
    slept: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        slept.append(seconds)

    scheduler = BackoffScheduler(sleep=fake_sleep)
    await scheduler.wait(250)
    await scheduler.wait(-5)
    assert slept == [0.25, 0.0]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"base_delay_ms": -1},
        {"timeout_ms": 0},
        {"jitter_ms": -1},
        {"base_delay_ms": 500, "delay_cap_ms": 100},
        {"growth_factor": 1.0},
    ],
)
def test_invalid_policies_are_rejected(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_single_attempt_policy() -> None:
    policy = RetryPolicy.single_attempt(timeout_ms=300)
    assert policy.max_attempts == 1
    assert policy.timeout_ms == 300


def test_named_policies_follow_settings() -> None:
    settings = get_settings()
    policies = RetryPolicies.from_settings(settings)

    assert policies.fast_read.max_attempts == settings.READ_MAX_ATTEMPTS
    assert policies.dashboard_read.max_attempts == settings.DASHBOARD_MAX_ATTEMPTS
    assert policies.critical_write.max_attempts == settings.WRITE_MAX_ATTEMPTS
    assert policies.critical_write.timeout_ms == settings.WRITE_TIMEOUT_MS
    assert get_retry_policies() == policies
