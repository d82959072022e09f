"""Tagged results of a single remote-call attempt."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeAlias, TypeVar

from core.resilience.errors import RemoteCallError


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class RetryableFailure:
    cause: RemoteCallError


@dataclass(frozen=True, slots=True)
class FatalFailure:
    cause: RemoteCallError


Outcome: TypeAlias = Success[T] | RetryableFailure | FatalFailure


@dataclass(frozen=True, slots=True)
class Attempt:
    """Record of one orchestrator iteration, handed to observers then dropped."""

    index: int
    started_at: datetime
    outcome: Outcome[object]
    # Backoff before the next attempt, or None when this attempt ended the run.
    delay_ms: float | None = None

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Success)
