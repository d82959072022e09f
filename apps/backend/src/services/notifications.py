"""Stored notifications and the activity feed.

Reads degrade so a notification bell never breaks a page: the list falls back
to empty and the unread count to zero. Creating, marking and deleting are
writes and propagate.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotificationNotFoundError
from core.resilience.degradation import PROPAGATE, degrade_to, guarded_call
from core.resilience.policy import get_retry_policies
from crud.notifications import notification_crud
from schemas.notifications import (
    ActivityEntry,
    NotificationCreate,
    NotificationResponse,
)


DEFAULT_ACTIVITY_LIMIT = 20


def _parse_id(user_id: str) -> UUID | None:
    try:
        return UUID(user_id)
    except (TypeError, ValueError):
        return None


async def create_notification(
    db: AsyncSession, payload: NotificationCreate
) -> NotificationResponse:
    notification = await guarded_call(
        lambda: notification_crud.create(db, **payload.model_dump()),
        retry_policy=get_retry_policies().critical_write,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="notifications.create",
    )
    return NotificationResponse.model_validate(notification)


async def get_user_notifications(
    db: AsyncSession, user_id: str
) -> list[NotificationResponse]:
    """Notifications of ``user_id``, newest first; empty for an empty or bad id."""
    parsed = _parse_id(user_id) if user_id else None
    if parsed is None:
        return []

    rows = await guarded_call(
        lambda: notification_crud.list_for_user(db, parsed),
        retry_policy=get_retry_policies().fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="notifications.list",
    )
    return [NotificationResponse.model_validate(row) for row in rows]


async def get_unread_notifications_count(db: AsyncSession, user_id: str) -> int:
    parsed = _parse_id(user_id) if user_id else None
    if parsed is None:
        return 0

    return await guarded_call(
        lambda: notification_crud.unread_count(db, parsed),
        retry_policy=get_retry_policies().fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(lambda: 0),
        operation="notifications.unread_count",
    )


async def mark_notification_as_read(
    db: AsyncSession, user_id: str, notification_id: UUID
) -> NotificationResponse:
    """Mark one of the caller's notifications read.

    Raises:
        NotificationNotFoundError: when no such notification belongs to ``user_id``.
    """
    parsed = _parse_id(user_id)
    if parsed is None:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")

    notification = await guarded_call(
        lambda: notification_crud.mark_read(db, notification_id, parsed),
        retry_policy=get_retry_policies().critical_write,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="notifications.mark_read",
    )
    if notification is None:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")
    return NotificationResponse.model_validate(notification)


async def mark_all_notifications_as_read(db: AsyncSession, user_id: str) -> int:
    parsed = _parse_id(user_id)
    if parsed is None:
        return 0

    return await guarded_call(
        lambda: notification_crud.mark_all_read(db, parsed),
        retry_policy=get_retry_policies().critical_write,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="notifications.mark_all_read",
    )


async def delete_notification(
    db: AsyncSession, user_id: str, notification_id: UUID
) -> None:
    parsed = _parse_id(user_id)
    deleted = parsed is not None and await guarded_call(
        lambda: notification_crud.delete(db, notification_id, parsed),
        retry_policy=get_retry_policies().critical_write,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="notifications.delete",
    )
    if not deleted:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")


async def get_activity_feed(
    db: AsyncSession, user_id: str, limit: int = DEFAULT_ACTIVITY_LIMIT
) -> list[ActivityEntry]:
    parsed = _parse_id(user_id) if user_id else None
    if parsed is None:
        return []

    rows = await guarded_call(
        lambda: notification_crud.activity_feed(db, parsed, limit),
        retry_policy=get_retry_policies().fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="notifications.activity_feed",
    )
    return [ActivityEntry.model_validate(row) for row in rows]
