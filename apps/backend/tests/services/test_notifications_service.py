"""Stored notifications: degrading reads, propagating writes, ownership."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotificationNotFoundError
from core.resilience.errors import TransientTransportFailure
from core.resilience.policy import get_retry_policies
from crud.notifications import notification_crud
from schemas.notifications import NotificationCreate
from services import notifications


USER = uuid.uuid4()


def _notification(**overrides):
    values = {
        "id": uuid.uuid4(),
        "user_id": USER,
        "title": "Assigned",
        "message": "You have a new project",
        "type": "success",
        "category": "assignment",
        "related_id": None,
        "is_read": False,
        "read_at": None,
        "created_at": datetime(2026, 1, 5, tzinfo=UTC),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock(spec=AsyncSession)


async def test_list_returns_the_users_notifications(db):
    rows = [_notification(), _notification(is_read=True)]
    with patch.object(notification_crud, "list_for_user", AsyncMock(return_value=rows)) as listed:
        items = await notifications.get_user_notifications(db, str(USER))

    assert [n.id for n in items] == [r.id for r in rows]
    listed.assert_awaited_once_with(db, USER)


async def test_list_for_empty_or_bad_id_is_empty(db):
    assert await notifications.get_user_notifications(db, "") == []
    assert await notifications.get_user_notifications(db, "nope") == []


async def test_list_degrades_to_empty_when_store_is_down(db):
    listed = AsyncMock(side_effect=TransientTransportFailure("offline"))
    with patch.object(notification_crud, "list_for_user", listed):
        assert await notifications.get_user_notifications(db, str(USER)) == []

    assert listed.await_count == get_retry_policies().fast_read.max_attempts
    assert db.rollback.await_count == listed.await_count - 1


async def test_unread_count_degrades_to_zero(db):
    with patch.object(
        notification_crud,
        "unread_count",
        AsyncMock(side_effect=ConnectionResetError("reset")),
    ):
        assert await notifications.get_unread_notifications_count(db, str(USER)) == 0

    with patch.object(notification_crud, "unread_count", AsyncMock(return_value=3)):
        assert await notifications.get_unread_notifications_count(db, str(USER)) == 3


async def test_mark_read_of_someone_elses_notification_is_not_found(db):
    with patch.object(notification_crud, "mark_read", AsyncMock(return_value=None)):
        with pytest.raises(NotificationNotFoundError):
            await notifications.mark_notification_as_read(db, str(USER), uuid.uuid4())


async def test_mark_read_returns_the_updated_row(db):
    read_at = datetime(2026, 1, 6, tzinfo=UTC)
    row = _notification(is_read=True, read_at=read_at)
    with patch.object(notification_crud, "mark_read", AsyncMock(return_value=row)) as mark:
        result = await notifications.mark_notification_as_read(db, str(USER), row.id)

    assert result.is_read is True
    assert result.read_at == read_at
    mark.assert_awaited_once_with(db, row.id, USER)


async def test_mark_all_read_propagates_failure(db):
    mark_all = AsyncMock(side_effect=TransientTransportFailure("offline"))
    with patch.object(notification_crud, "mark_all_read", mark_all):
        with pytest.raises(TransientTransportFailure) as exc_info:
            await notifications.mark_all_notifications_as_read(db, str(USER))

    assert exc_info.value.exhausted is True
    assert mark_all.await_count == get_retry_policies().critical_write.max_attempts


async def test_delete_missing_notification_is_not_found(db):
    with patch.object(notification_crud, "delete", AsyncMock(return_value=False)):
        with pytest.raises(NotificationNotFoundError):
            await notifications.delete_notification(db, str(USER), uuid.uuid4())


async def test_create_notification_passes_every_field(db):
    payload = NotificationCreate(
        user_id=USER, title="Assigned", message="You have a new project", type="success"
    )
    with patch.object(
        notification_crud, "create", AsyncMock(return_value=_notification())
    ) as create:
        result = await notifications.create_notification(db, payload)

    assert result.user_id == USER
    kwargs = create.await_args.kwargs
    assert (kwargs["type"], kwargs["category"]) == ("success", "general")


async def test_activity_feed_uses_limit_and_degrades(db):
    entry = SimpleNamespace(
        id=uuid.uuid4(),
        project_id=uuid.uuid4(),
        action="lead_routed",
        details={"matched": 1},
        created_at=None,
    )
    with patch.object(notification_crud, "activity_feed", AsyncMock(return_value=[entry])) as feed:
        entries = await notifications.get_activity_feed(db, str(USER), limit=5)

    assert [e.action for e in entries] == ["lead_routed"]
    feed.assert_awaited_once_with(db, USER, 5)

    with patch.object(
        notification_crud,
        "activity_feed",
        AsyncMock(side_effect=TransientTransportFailure("offline")),
    ):
        assert await notifications.get_activity_feed(db, str(USER)) == []
