"""Race a single attempt against a deadline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from core.resilience.errors import TimeoutExceeded
from core.resilience.outcome import RetryableFailure, Success


T = TypeVar("T")

logger = logging.getLogger(__name__)

# Time a cancelled attempt gets to unwind before the caller moves on.
ABANDON_GRACE_S = 0.05


def _discard_abandoned(task: asyncio.Future[object]) -> None:
    # Retrieve the late result so asyncio never reports it as unhandled.
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(
            "Abandoned attempt settled after its deadline: %s", type(exc).__name__
        )


async def race(
    attempt_fn: Callable[[], Awaitable[T]], timeout_ms: float
) -> Success[T] | RetryableFailure:
    """Run ``attempt_fn()`` against a ``timeout_ms`` deadline.

    Returns ``Success`` when the attempt settles first, or a
    ``RetryableFailure(TimeoutExceeded)`` when the deadline does. On timeout
    the attempt task is cancelled and its eventual settlement is discarded.
    Failures of the attempt itself, including one raised synchronously by
    ``attempt_fn`` before any awaitable exists, propagate unchanged.
    """
    awaitable = attempt_fn()
    task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return Success(task.result())

    task.cancel()
    await asyncio.wait({task}, timeout=ABANDON_GRACE_S)
    task.add_done_callback(_discard_abandoned)
    return RetryableFailure(TimeoutExceeded(timeout_ms))
