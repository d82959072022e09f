"""The caller's notifications: stored list, read state, activity and the live stream."""

import asyncio
from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import StreamingResponse

from dependencies.auth import CurrentUserDep
from dependencies.db import DbSession
from dependencies.realtime import Broker
from schemas.api import ApiResponse
from schemas.notifications import (
    ActivityEntry,
    MarkAllReadResult,
    NotificationEvent,
    NotificationResponse,
    UnreadCount,
)
from services import notifications
from services.realtime import SubscriptionRegistry, notifications_channel


router = APIRouter(prefix="/notifications", tags=["notifications"])

KEEPALIVE_SECONDS = 15.0


async def _event_stream(
    request: Request, registry: SubscriptionRegistry, channel: str
) -> AsyncIterator[str]:
    async with registry:
        subscription = registry.subscribe(channel)
        events = aiter(subscription)
        while not await request.is_disconnected():
            try:
                event = await asyncio.wait_for(anext(events), KEEPALIVE_SECONDS)
            except TimeoutError:
                yield NotificationEvent(event="ping", channel=channel).to_sse()
                continue
            except StopAsyncIteration:
                break
            yield event.to_sse()


@router.get("/stream", response_class=StreamingResponse)
async def stream_notifications(
    request: Request, current_user: CurrentUserDep, broker: Broker
) -> StreamingResponse:
    """Stream ``notifications:{user_id}`` until the client disconnects."""
    registry = SubscriptionRegistry(broker)
    channel = notifications_channel(current_user.id)
    return StreamingResponse(
        _event_stream(request, registry, channel),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("", response_model=ApiResponse[list[NotificationResponse]])
async def list_notifications(
    db: DbSession, current_user: CurrentUserDep
) -> ApiResponse[list[NotificationResponse]]:
    items = await notifications.get_user_notifications(db, current_user.id)
    return ApiResponse(data=items, message=f"Found {len(items)} notification(s)")


@router.get("/unread-count", response_model=ApiResponse[UnreadCount])
async def unread_count(
    db: DbSession, current_user: CurrentUserDep
) -> ApiResponse[UnreadCount]:
    count = await notifications.get_unread_notifications_count(db, current_user.id)
    return ApiResponse(data=UnreadCount(count=count), message="Unread count retrieved")


@router.get("/activity", response_model=ApiResponse[list[ActivityEntry]])
async def activity_feed(
    db: DbSession,
    current_user: CurrentUserDep,
    limit: int = Query(notifications.DEFAULT_ACTIVITY_LIMIT, ge=1, le=100),
) -> ApiResponse[list[ActivityEntry]]:
    entries = await notifications.get_activity_feed(db, current_user.id, limit)
    return ApiResponse(data=entries, message="Activity feed retrieved")


@router.post("/read-all", response_model=ApiResponse[MarkAllReadResult])
async def mark_all_read(
    db: DbSession, current_user: CurrentUserDep
) -> ApiResponse[MarkAllReadResult]:
    updated = await notifications.mark_all_notifications_as_read(db, current_user.id)
    return ApiResponse(
        data=MarkAllReadResult(updated=updated), message="Notifications marked as read"
    )


@router.post(
    "/{notification_id}/read",
    response_model=ApiResponse[NotificationResponse],
    responses={404: {"description": "Notification not found"}},
)
async def mark_read(
    notification_id: UUID, db: DbSession, current_user: CurrentUserDep
) -> ApiResponse[NotificationResponse]:
    notification = await notifications.mark_notification_as_read(
        db, current_user.id, notification_id
    )
    return ApiResponse(data=notification, message="Notification marked as read")


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Notification not found"}},
)
async def delete_notification(
    notification_id: UUID, db: DbSession, current_user: CurrentUserDep
) -> None:
    await notifications.delete_notification(db, current_user.id, notification_id)
