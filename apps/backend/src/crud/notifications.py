"""CRUD operations for stored notifications and the activity feed."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.notifications import Notification
from models.projects import ProjectActivity


class NotificationCRUD:
    """Notifications are always scoped to their owner; other users' rows are invisible."""

    async def create(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        title: str,
        message: str,
        type: str = "info",
        category: str = "general",
        related_id: UUID | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            category=category,
            related_id=related_id,
            is_read=False,
        )
        db.add(notification)
        try:
            await db.commit()
            await db.refresh(notification)
        except Exception:
            await db.rollback()
            raise
        return notification

    async def list_for_user(self, db: AsyncSession, user_id: UUID) -> list[Notification]:
        statement = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        statement = select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
        result = await db.execute(statement)
        return int(result.scalar_one())

    async def mark_read(
        self, db: AsyncSession, notification_id: UUID, user_id: UUID
    ) -> Notification | None:
        """Mark one notification read. Re-marking keeps the first ``read_at``."""
        statement = (
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(
                is_read=True,
                read_at=func.coalesce(Notification.read_at, datetime.now(UTC)),
            )
            .returning(Notification)
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(statement)
            notification = result.scalar_one_or_none()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return notification

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> int:
        """Mark every unread notification of ``user_id`` read; returns how many changed."""
        statement = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=datetime.now(UTC))
        )
        try:
            result = await db.execute(statement)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return result.rowcount or 0

    async def delete(self, db: AsyncSession, notification_id: UUID, user_id: UUID) -> bool:
        statement = delete(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
        try:
            result = await db.execute(statement)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return bool(result.rowcount)

    async def activity_feed(
        self, db: AsyncSession, user_id: UUID, limit: int
    ) -> list[ProjectActivity]:
        """Project activity performed by ``user_id``, newest first."""
        statement = (
            select(ProjectActivity)
            .where(ProjectActivity.user_id == user_id)
            .order_by(ProjectActivity.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())


notification_crud = NotificationCRUD()
