"""Exponential backoff with jitter and a hard cap."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable

from core.resilience.policy import RetryPolicy


Sleep = Callable[[float], Awaitable[None]]


class BackoffScheduler:
    """Compute retry delays and suspend the current task between attempts.

    The random source and the sleep function are injectable so tests can make
    delays deterministic and observe waits without real time passing.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._rng = rng or random.Random()
        self._sleep = sleep

    def delay_for(self, attempt_index: int, policy: RetryPolicy) -> float:
        """Return the delay in ms before retry number ``attempt_index`` (zero-based).

        ``min(base * growth**i + uniform(0, jitter), cap)``, never negative.
        """
        if attempt_index < 0:
            raise ValueError("attempt_index must be >= 0")
        try:
            exponential = policy.base_delay_ms * policy.growth_factor**attempt_index
        except OverflowError:
            exponential = 0.0 if policy.base_delay_ms == 0 else policy.delay_cap_ms
        jitter = self._rng.uniform(0, policy.jitter_ms) if policy.jitter_ms else 0.0
        return max(0.0, min(exponential + jitter, policy.delay_cap_ms))

    async def wait(self, delay_ms: float) -> None:
        """Suspend the calling task for ``delay_ms``; other tasks keep running."""
        await self._sleep(max(0.0, delay_ms) / 1000)


_default_scheduler = BackoffScheduler()


def delay_for(attempt_index: int, policy: RetryPolicy) -> float:
    return _default_scheduler.delay_for(attempt_index, policy)


async def wait(delay_ms: float) -> None:
    await _default_scheduler.wait(delay_ms)
