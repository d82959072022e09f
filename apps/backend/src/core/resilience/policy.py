"""Retry policies.

Call sites pick one of a small set of named policies instead of tuning
attempts and delays inline. All durations are in milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from core.config import Settings, get_settings


DEFAULT_GROWTH_FACTOR = 2.0


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Immutable retry configuration for one remote call.

    ``max_attempts`` is the total number of tries, not the number of retries.
    """

    max_attempts: int = 3
    base_delay_ms: float = 200
    timeout_ms: float = 5000
    jitter_ms: float = 50
    delay_cap_ms: float = 1500
    growth_factor: float = DEFAULT_GROWTH_FACTOR

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be > 0")
        if self.jitter_ms < 0:
            raise ValueError("jitter_ms must be >= 0")
        if self.delay_cap_ms <= 0 or self.delay_cap_ms < self.base_delay_ms:
            raise ValueError("delay_cap_ms must be > 0 and >= base_delay_ms")
        if self.growth_factor <= 1:
            raise ValueError("growth_factor must be > 1")

    @classmethod
    def single_attempt(cls, timeout_ms: float = 5000) -> RetryPolicy:
        """Policy that races one attempt against ``timeout_ms`` and never retries."""
        return cls(max_attempts=1, base_delay_ms=0, timeout_ms=timeout_ms)


@dataclass(frozen=True, slots=True)
class RetryPolicies:
    """The named policies used across the services."""

    fast_read: RetryPolicy
    dashboard_read: RetryPolicy
    critical_write: RetryPolicy

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicies:
        jitter = settings.RETRY_JITTER_MS
        growth = settings.RETRY_GROWTH_FACTOR
        return cls(
            fast_read=RetryPolicy(
                max_attempts=settings.READ_MAX_ATTEMPTS,
                base_delay_ms=settings.READ_BASE_DELAY_MS,
                timeout_ms=settings.READ_TIMEOUT_MS,
                jitter_ms=jitter,
                delay_cap_ms=settings.READ_DELAY_CAP_MS,
                growth_factor=growth,
            ),
            dashboard_read=RetryPolicy(
                max_attempts=settings.DASHBOARD_MAX_ATTEMPTS,
                base_delay_ms=settings.DASHBOARD_BASE_DELAY_MS,
                timeout_ms=settings.DASHBOARD_TIMEOUT_MS,
                jitter_ms=jitter,
                delay_cap_ms=settings.DASHBOARD_DELAY_CAP_MS,
                growth_factor=growth,
            ),
            critical_write=RetryPolicy(
                max_attempts=settings.WRITE_MAX_ATTEMPTS,
                base_delay_ms=settings.WRITE_BASE_DELAY_MS,
                timeout_ms=settings.WRITE_TIMEOUT_MS,
                jitter_ms=jitter,
                delay_cap_ms=settings.WRITE_DELAY_CAP_MS,
                growth_factor=growth,
            ),
        )


@lru_cache
def get_retry_policies() -> RetryPolicies:
    return RetryPolicies.from_settings(get_settings())
