"""Translation of foreign failures into the remote-call taxonomy."""

from __future__ import annotations

import httpx
import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, NoResultFound, OperationalError

from core.exceptions import ProjectNotFoundError
from core.resilience.classifier import (
    Classification,
    classify,
    is_retryable,
    to_outcome,
    translate,
)
from core.resilience.errors import (
    RemoteOperationError,
    TimeoutExceeded,
    TransientTransportFailure,
    UnclassifiedError,
)
from core.resilience.outcome import FatalFailure, RetryableFailure


REQUEST = httpx.Request("GET", "https://store.test/rest/v1/projects")


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    response = httpx.Response(status_code, request=REQUEST)
    return httpx.HTTPStatusError("boom", request=REQUEST, response=response)


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("connection refused", request=REQUEST),
        ConnectionRefusedError("refused"),
        DBAPIError("SELECT 1", {}, ConnectionResetError("reset")),
    ],
)
def test_transport_failures_are_retryable(error: BaseException) -> None:
    translated = translate(error)
    assert isinstance(translated, TransientTransportFailure)
    assert classify(error) is Classification.RETRYABLE


@pytest.mark.parametrize(
    "error",
    [httpx.ReadTimeout("slow", request=REQUEST), TimeoutError()],
)
def test_timeouts_are_retryable(error: BaseException) -> None:
    assert isinstance(translate(error), TimeoutExceeded)
    assert is_retryable(error)


def test_invalidated_connection_is_retryable() -> None:
    error = OperationalError("SELECT 1", {}, Exception("server closed"))
    error.connection_invalidated = True
    assert isinstance(translate(error), TransientTransportFailure)


@pytest.mark.parametrize(
    ("status_code", "kind"),
    [
        (400, "validation"),
        (401, "authorization"),
        (403, "authorization"),
        (404, "not_found"),
        (409, "conflict"),
        (500, "remote"),
        (503, "remote"),
    ],
)
def test_http_status_errors_are_fatal_with_kind(status_code: int, kind: str) -> None:
    translated = translate(_status_error(status_code))
    assert isinstance(translated, RemoteOperationError)
    assert translated.kind == kind
    assert translated.status_code == status_code
    assert classify(_status_error(status_code)) is Classification.FATAL


def test_store_reported_errors_are_fatal() -> None:
    conflict = translate(IntegrityError("INSERT", {}, Exception("duplicate key")))
    missing = translate(NoResultFound("no row"))
    generic = translate(OperationalError("SELECT", {}, Exception("syntax error")))

    assert isinstance(conflict, RemoteOperationError) and conflict.kind == "conflict"
    assert isinstance(missing, RemoteOperationError) and missing.kind == "not_found"
    assert isinstance(generic, RemoteOperationError) and generic.kind == "remote"
    assert not any(e.retryable for e in (conflict, missing, generic))


def test_domain_not_found_maps_to_not_found_kind() -> None:
    translated = translate(ProjectNotFoundError("Project 1 not found"))
    assert isinstance(translated, RemoteOperationError)
    assert translated.kind == "not_found"
    assert "Project 1" in translated.message


def test_unrecognised_errors_are_fatal() -> None:
    translated = translate(ValueError("weird"))
    assert isinstance(translated, UnclassifiedError)
    assert not is_retryable(ValueError("weird"))


def test_already_classified_errors_pass_through() -> None:
    original = TimeoutExceeded(250)
    assert translate(original) is original


def test_to_outcome_preserves_the_original_as_cause() -> None:
    source = httpx.ConnectError("down", request=REQUEST)
    outcome = to_outcome(source)
    assert isinstance(outcome, RetryableFailure)
    assert outcome.cause.__cause__ is source

    fatal = to_outcome(KeyError("x"))
    assert isinstance(fatal, FatalFailure)
    assert isinstance(fatal.cause, UnclassifiedError)
