"""Per-call-site decision between degrading and propagating a failure.

Read paths (listing, counting, fetching for display) fall back to a declared
default so a page still renders. Write paths (create, update, assign, rate,
route) always propagate; a write never fails silently.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from core.error_handler import StructuredLogger
from core.resilience.errors import RemoteCallError
from core.resilience.orchestrator import RetryOrchestrator
from core.resilience.policy import RetryPolicy


T = TypeVar("T")

logger = StructuredLogger(__name__)


class CallKind(StrEnum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True, slots=True)
class DegradationPolicy:
    kind: CallKind
    # Builds a fresh default per failure so callers never share a mutable value.
    fallback: Callable[[], object] | None = None

    def __post_init__(self) -> None:
        if self.kind is CallKind.READ and self.fallback is None:
            raise ValueError("read call sites must declare a fallback")
        if self.kind is CallKind.WRITE and self.fallback is not None:
            raise ValueError("write call sites cannot degrade")


def degrade_to(factory: Callable[[], object]) -> DegradationPolicy:
    """Read-path policy returning ``factory()`` when the call fails."""
    return DegradationPolicy(kind=CallKind.READ, fallback=factory)


PROPAGATE = DegradationPolicy(kind=CallKind.WRITE)


async def guarded_call(
    attempt_fn: Callable[[], Awaitable[T]],
    *,
    retry_policy: RetryPolicy,
    degradation: DegradationPolicy,
    operation: str,
    orchestrator: RetryOrchestrator | None = None,
    before_retry: Callable[[], Awaitable[None]] | None = None,
) -> T:
    """Run ``attempt_fn`` under ``retry_policy`` and apply ``degradation`` on failure.

    Pass ``before_retry=db.rollback`` when the attempt uses a database session
    so a failed transaction is cleared before the next attempt.
    """
    runner = orchestrator or RetryOrchestrator()
    try:
        return await runner.run(
            attempt_fn, retry_policy, operation=operation, before_retry=before_retry
        )
    except RemoteCallError as exc:
        if degradation.kind is CallKind.WRITE or degradation.fallback is None:
            logger.error(
                "Write failed",
                operation=operation,
                error_type=exc.error_type,
                attempts=exc.attempts,
                retryable=exc.retryable,
            )
            raise
        logger.warning(
            "Read failed, returning fallback",
            operation=operation,
            error_type=exc.error_type,
            attempts=exc.attempts,
        )
        return degradation.fallback()  # type: ignore[return-value]
