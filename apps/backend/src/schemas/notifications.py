"""Schemas for stored notifications, the activity feed and the SSE stream."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


MAX_SSE_EVENT_BYTES: int = 16_384


class NotificationEvent(BaseModel):
    """Envelope for one realtime event on a channel."""

    event: Literal[
        "assignment.created",
        "lead.routed",
        "project.updated",
        "notification",
        "ping",
    ]
    channel: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(extra="forbid")

    def to_sse(self) -> str:
        """Serialize event to SSE format with size validation."""
        payload = self.model_dump_json()
        if len(payload.encode("utf-8")) > MAX_SSE_EVENT_BYTES:
            raise ValueError("SSE payload exceeded MAX_SSE_EVENT_BYTES")
        return f"event: {self.event}\ndata: {payload}\n\n"


NotificationType = Literal["info", "success", "warning", "error"]


class NotificationCreate(BaseModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationType = "info"
    category: str = Field("general", max_length=50)
    related_id: UUID | None = None


class NotificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    message: str
    type: str
    category: str
    related_id: UUID | None = None
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    count: int = 0


class MarkAllReadResult(BaseModel):
    updated: int = 0


class ActivityEntry(BaseModel):
    id: UUID
    project_id: UUID
    action: str
    details: dict[str, Any] | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
