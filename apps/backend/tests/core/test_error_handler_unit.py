"""Global exception handling through a small FastAPI app.

Uses the installed exception handler and ExceptionNormalizationMiddleware so
the public contract of the error envelope is what gets asserted.
"""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import patch

import pytest
from fastapi import FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from core.error_handler import (
    ExceptionNormalizationMiddleware,
    global_exception_handler,
)
from core.exceptions import CreatorNotFoundError
from core.middleware import CorrelationIdMiddleware
from core.resilience.errors import (
    RemoteOperationError,
    TimeoutExceeded,
    TransientTransportFailure,
    UnclassifiedError,
)


class Rating(BaseModel):
    rating: int = Field(ge=1, le=5)


def _exhausted(error: TransientTransportFailure | TimeoutExceeded):
    error.attempts = 3
    error.exhausted = True
    return error


def build_test_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ExceptionNormalizationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)

    @app.post("/ratings")
    async def create_rating(rating: Rating):  # pragma: no cover - via client
        return {"ok": True}

    @app.get("/offline")
    async def offline():
        raise _exhausted(TransientTransportFailure("connection refused"))

    @app.get("/slow")
    async def slow():
        raise _exhausted(TimeoutExceeded(5000))

    @app.get("/conflict")
    async def conflict():
        raise RemoteOperationError("duplicate key", kind="conflict")

    @app.get("/unclassified")
    async def unclassified():
        raise UnclassifiedError("KeyError: 'x'")

    @app.get("/missing-creator")
    async def missing_creator():
        raise CreatorNotFoundError("Creator 1 not found")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("Exploded with secret=should_not_leak")

    @app.get("/unauthorized")
    async def unauthorized():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return app


@pytest.fixture(params=["development", "production"])
def env(request: pytest.FixtureRequest) -> Generator[str, None, None]:
    with patch("core.error_handler.get_settings") as mocked:
        mocked.return_value.ENVIRONMENT = request.param
        yield request.param


@pytest.fixture
def client(env: str) -> TestClient:
    return TestClient(build_test_app())


def test_exhausted_transport_failure_is_503_and_retryable(client: TestClient, env: str):
    response = client.get("/offline")

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["error"]["type"] == "remote_unavailable"
    assert body["error"]["retryable"] is True
    assert body["error"]["correlation_id"] == response.headers["X-Correlation-ID"]
    if env == "production":
        assert "attempts" not in body["error"]
        assert "details" not in body["error"]
    else:
        assert body["error"]["attempts"] == 3
        assert body["error"]["exception_type"] == "TransientTransportFailure"


def test_timeout_is_503(client: TestClient):
    response = client.get("/slow")
    assert response.status_code == 503
    assert response.json()["error"]["retryable"] is True


def test_remote_operation_error_maps_kind_to_status(client: TestClient):
    response = client.get("/conflict")

    assert response.status_code == 409
    body = response.json()
    assert body["error"]["type"] == "remote_error"
    assert body["error"]["retryable"] is False


def test_unclassified_remote_error_is_500(client: TestClient):
    response = client.get("/unclassified")
    assert response.status_code == 500
    assert response.json()["error"]["type"] == "internal_server_error"


def test_domain_not_found_is_404(client: TestClient):
    response = client.get("/missing-creator")
    assert response.status_code == 404
    assert response.json()["error"]["type"] == "domain_error"


def test_unhandled_exception_hides_internals_in_production(
    client: TestClient, env: str
):
    response = client.get("/boom")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["type"] == "internal_server_error"
    if env == "production":
        assert "traceback" not in error
        assert "should_not_leak" not in response.text
    else:
        assert error["exception_type"] == "RuntimeError"
        assert "traceback" in error


def test_validation_error_is_422(client: TestClient, env: str):
    response = client.post("/ratings", json={"rating": 9})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["type"] == "validation_error"
    assert ("validation_errors" in error) is (env != "production")


def test_http_exception_keeps_status_and_headers(client: TestClient):
    response = client.get("/unauthorized")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"]["type"] == "unauthorized"


def test_incoming_correlation_id_is_echoed(client: TestClient):
    response = client.get("/conflict", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert response.json()["error"]["correlation_id"] == "abc-123"
