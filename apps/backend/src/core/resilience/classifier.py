"""Classify caught failures as retryable or fatal.

Translation into the taxonomy in ``core.resilience.errors`` happens exactly
once, at the boundary where the collaborator's error is first caught. Only a
timeout or a transport failure that never reached the store is retryable;
anything the store itself reported, and anything unrecognised, is fatal.
"""

from __future__ import annotations

import socket
from enum import StrEnum

import httpx
from pydantic import ValidationError
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    NoResultFound,
    SQLAlchemyError,
)

from core.exceptions import DomainError
from core.resilience.errors import (
    RemoteCallError,
    RemoteErrorKind,
    RemoteOperationError,
    TimeoutExceeded,
    TransientTransportFailure,
    UnclassifiedError,
)
from core.resilience.outcome import FatalFailure, RetryableFailure


class Classification(StrEnum):
    RETRYABLE = "retryable"
    FATAL = "fatal"


_STATUS_KINDS: dict[int, RemoteErrorKind] = {
    400: "validation",
    401: "authorization",
    403: "authorization",
    404: "not_found",
    409: "conflict",
    422: "validation",
}


def _is_connection_level(error: BaseException | None) -> bool:
    return isinstance(error, ConnectionError | socket.gaierror | TimeoutError)


def _translate_sqlalchemy(error: SQLAlchemyError) -> RemoteCallError:
    if isinstance(error, DisconnectionError | InterfaceError):
        return TransientTransportFailure(f"Database connection lost: {error}")
    if isinstance(error, DBAPIError) and (
        error.connection_invalidated or _is_connection_level(error.orig)
    ):
        return TransientTransportFailure(f"Database connection lost: {error.orig}")
    if isinstance(error, IntegrityError):
        return RemoteOperationError(str(error.orig), kind="conflict")
    if isinstance(error, NoResultFound):
        return RemoteOperationError(str(error), kind="not_found")
    return RemoteOperationError(str(error), kind="remote")


def _translate_http_status(error: httpx.HTTPStatusError) -> RemoteOperationError:
    status_code = error.response.status_code
    return RemoteOperationError(
        f"Remote endpoint returned {status_code}",
        kind=_STATUS_KINDS.get(status_code, "remote"),
        status_code=status_code,
    )


def translate(error: BaseException) -> RemoteCallError:
    """Map any caught exception onto the remote-call taxonomy."""
    if isinstance(error, RemoteCallError):
        return error
    if isinstance(error, httpx.TimeoutException):
        return TimeoutExceeded(message=f"HTTP request timed out: {error}")
    if isinstance(error, TimeoutError):
        return TimeoutExceeded(message=str(error) or None)
    if isinstance(error, httpx.NetworkError):
        return TransientTransportFailure(f"Network error: {error}")
    if isinstance(error, ConnectionError | socket.gaierror):
        return TransientTransportFailure(f"Connection failed: {error}")
    if isinstance(error, httpx.HTTPStatusError):
        return _translate_http_status(error)
    if isinstance(error, SQLAlchemyError):
        return _translate_sqlalchemy(error)
    if isinstance(error, ValidationError):
        return RemoteOperationError(
            f"Invalid data: {error.error_count()} validation error(s)",
            kind="validation",
        )
    if isinstance(error, DomainError):
        kind: RemoteErrorKind = (
            "not_found" if error.kind == "not_found" else "remote"
        )
        return RemoteOperationError(str(error), kind=kind)
    return UnclassifiedError(f"{type(error).__name__}: {error}")


def classify(error: BaseException) -> Classification:
    """Decide whether another attempt could change the outcome."""
    if translate(error).retryable:
        return Classification.RETRYABLE
    return Classification.FATAL


def to_outcome(error: BaseException) -> RetryableFailure | FatalFailure:
    """Translate ``error`` and wrap it in the matching failure outcome."""
    cause = translate(error)
    if cause is not error:
        cause.__cause__ = error
    if cause.retryable:
        return RetryableFailure(cause)
    return FatalFailure(cause)


def is_retryable(error: BaseException) -> bool:
    return classify(error) is Classification.RETRYABLE
