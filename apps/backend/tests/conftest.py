"""Shared test fixtures for pytest.

Environment defaults are set before any application import so the cached
settings (and the retry policies built from them) use tiny backoff delays
and no jitter.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import timedelta

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient


os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
for _prefix in ("READ", "DASHBOARD", "WRITE"):
    os.environ.setdefault(f"{_prefix}_BASE_DELAY_MS", "1")
    os.environ.setdefault(f"{_prefix}_DELAY_CAP_MS", "5")
    os.environ.setdefault(f"{_prefix}_TIMEOUT_MS", "500")
os.environ.setdefault("RETRY_JITTER_MS", "0")

from core.security import create_access_token
from dependencies.auth import get_current_user
from dependencies.db import get_db
from main import app
from schemas.auth import CurrentUser
from services.realtime import InMemoryEventBroker


class _FakeSession:
    """Stand-in for an AsyncSession; route tests patch the service layer."""

    async def execute(self, _stmt):  # pragma: no cover - services are patched
        raise AssertionError("route tests must not reach the database")

    async def commit(self):  # pragma: no cover - no-op
        return None

    async def rollback(self):  # pragma: no cover - no-op
        return None

    async def close(self):  # pragma: no cover - no-op
        return None


async def _override_get_db() -> AsyncGenerator[_FakeSession, None]:
    fake = _FakeSession()
    try:
        yield fake
    finally:
        await fake.close()


def make_token(user_id: str | None = None, role: str = "business", **extra) -> str:
    """Sign a bearer token the way the identity provider would."""
    claims = {"sub": user_id or str(uuid.uuid4()), "role": role, **extra}
    return create_access_token(claims, expires_delta=timedelta(minutes=5))


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return make_token


@pytest.fixture
def user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def event_broker() -> Generator[InMemoryEventBroker, None, None]:
    broker = InMemoryEventBroker()
    previous = getattr(app.state, "event_broker", None)
    app.state.event_broker = broker
    yield broker
    app.state.event_broker = previous


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Plain client: real auth dependency, fake database."""
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


def _client_as(role: str, user_id: str) -> Callable[[], CurrentUser]:
    async def _override() -> CurrentUser:
        return CurrentUser(id=user_id, role=role)

    return _override


@pytest_asyncio.fixture
async def async_client_factory(
    event_broker: InMemoryEventBroker,
) -> AsyncGenerator[Callable[..., AsyncClient], None]:
    """Build async clients authenticated as ``role`` with a fake database."""
    opened: list[AsyncClient] = []

    def _factory(role: str = "business", user_id: str | None = None) -> AsyncClient:
        app.dependency_overrides[get_db] = _override_get_db
        app.dependency_overrides[get_current_user] = _client_as(
            role, user_id or str(uuid.uuid4())
        )
        transport = ASGITransport(app=app)
        new_client = AsyncClient(transport=transport, base_url="http://testserver")
        opened.append(new_client)
        return new_client

    yield _factory
    for opened_client in opened:
        await opened_client.aclose()
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def async_client(
    async_client_factory: Callable[..., AsyncClient], user_id: str
) -> AsyncClient:
    """Async client authenticated as a business user."""
    return async_client_factory("business", user_id)
