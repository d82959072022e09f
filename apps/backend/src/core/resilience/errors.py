"""Error taxonomy for remote calls.

Every failure raised out of the retry layer is one of these types. The
original exception (database driver error, httpx error, ...) is preserved as
``__cause__`` so nothing downstream needs to inspect foreign error shapes.
"""

from __future__ import annotations

from typing import ClassVar, Literal


RemoteErrorKind = Literal[
    "validation", "authorization", "not_found", "conflict", "remote"
]


class RemoteCallError(Exception):
    """Base class for classified remote-call failures."""

    retryable: ClassVar[bool] = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        # Filled in by the orchestrator when the error leaves a retry run.
        self.attempts: int = 0
        self.exhausted: bool = False

    @property
    def error_type(self) -> str:
        return type(self).__name__


class TimeoutExceeded(RemoteCallError):
    """An attempt did not settle before its deadline."""

    retryable = True

    def __init__(
        self, timeout_ms: float | None = None, message: str | None = None
    ) -> None:
        if message is None:
            message = (
                f"Request timed out after {timeout_ms:g}ms"
                if timeout_ms is not None
                else "Request timeout"
            )
        super().__init__(message)
        self.timeout_ms = timeout_ms


class TransientTransportFailure(RemoteCallError):
    """The call never reached the remote store (refused, DNS, offline)."""

    retryable = True


class RemoteOperationError(RemoteCallError):
    """The remote store reported an error; retrying cannot change it."""

    def __init__(
        self,
        message: str,
        *,
        kind: RemoteErrorKind = "remote",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind: RemoteErrorKind = kind
        self.status_code = status_code


class UnclassifiedError(RemoteCallError):
    """A failure with no distinguishing signal. Fatal so we fail fast."""
