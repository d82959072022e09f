"""Retry orchestration for remote calls.

Each attempt is raced against the policy timeout, failures are classified,
retryable ones are retried after an exponential backoff and fatal ones stop
the run at once. Built on tenacity's ``AsyncRetrying``.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import ParamSpec, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from core.error_handler import StructuredLogger
from core.resilience.backoff import BackoffScheduler
from core.resilience.classifier import is_retryable, to_outcome
from core.resilience.errors import RemoteCallError
from core.resilience.outcome import Attempt, Outcome, Success
from core.resilience.policy import RetryPolicy
from core.resilience.timeout import race


P = ParamSpec("P")
T = TypeVar("T")

AttemptObserver = Callable[[Attempt], None]

logger = StructuredLogger(__name__)


class RetryOrchestrator:
    """Drive attempt → classify → wait → retry until success or give-up.

    Attempts within one run are strictly sequential. A run never makes more
    than ``policy.max_attempts`` calls, and the error it raises carries the
    number of attempts made and whether retries were exhausted.
    """

    def __init__(
        self,
        scheduler: BackoffScheduler | None = None,
        on_attempt: AttemptObserver | None = None,
    ) -> None:
        self._scheduler = scheduler or BackoffScheduler()
        self._on_attempt = on_attempt

    async def run(
        self,
        attempt_fn: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        *,
        operation: str = "remote_call",
        before_retry: Callable[[], Awaitable[None]] | None = None,
    ) -> T:
        """Run ``attempt_fn`` under ``policy``.

        ``before_retry`` is awaited ahead of every attempt after the first, so
        callers can reset shared state such as a database session left in a
        failed transaction. Its own failures are classified like the attempt's.
        """
        attempts = 0
        next_delay_ms = 0.0

        async def _attempt_once(index: int) -> T:
            nonlocal attempts, next_delay_ms
            attempts += 1
            started_at = datetime.now(UTC)
            outcome: Outcome[T]
            try:
                if index > 0 and before_retry is not None:
                    await before_retry()
                outcome = await race(attempt_fn, policy.timeout_ms)
            except Exception as error:
                outcome = to_outcome(error)

            delay_ms: float | None = None
            if not isinstance(outcome, Success):
                if outcome.cause.retryable and index + 1 < policy.max_attempts:
                    delay_ms = self._scheduler.delay_for(index, policy)
                    next_delay_ms = delay_ms
            self._notify(Attempt(index, started_at, outcome, delay_ms))

            if isinstance(outcome, Success):
                return outcome.value
            raise outcome.cause

        def _wait(retry_state: RetryCallState) -> float:
            return next_delay_ms / 1000

        async def _sleep(seconds: float) -> None:
            await self._scheduler.wait(seconds * 1000)

        def _log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Remote call failed, retrying",
                operation=operation,
                attempt=retry_state.attempt_number,
                max_attempts=policy.max_attempts,
                delay_ms=round(next_delay_ms, 1),
                error_type=type(error).__name__,
                error=str(error),
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=_wait,
            retry=retry_if_exception(is_retryable),
            sleep=_sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    value = await _attempt_once(attempt.retry_state.attempt_number - 1)
        except RemoteCallError as exc:
            exc.attempts = attempts
            exc.exhausted = exc.retryable and attempts >= policy.max_attempts
            logger.error(
                "Remote call retries exhausted"
                if exc.exhausted
                else "Remote call failed",
                operation=operation,
                attempts=attempts,
                error_type=exc.error_type,
                error=exc.message,
                retryable=exc.retryable,
            )
            raise
        return value

    def _notify(self, attempt: Attempt) -> None:
        if self._on_attempt is not None:
            self._on_attempt(attempt)


def with_retry(
    policy: RetryPolicy,
    *,
    operation: str | None = None,
    orchestrator: RetryOrchestrator | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate a coroutine function so each call runs under ``policy``."""

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        name = operation or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            runner = orchestrator or RetryOrchestrator()
            return await runner.run(
                lambda: func(*args, **kwargs), policy, operation=name
            )

        return wrapper

    return decorator

