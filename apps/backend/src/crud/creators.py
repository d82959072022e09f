"""CRUD operations for creator profiles, preferences and ratings."""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.creators import CreatorPreferences, CreatorProfile, CreatorRating
from models.profiles import UserProfile


class CreatorCRUD:
    """CRUD operations for the creator marketplace."""

    async def list_approved(self, db: AsyncSession) -> list[CreatorProfile]:
        statement = (
            select(CreatorProfile)
            .where(CreatorProfile.status == "approved")
            .order_by(CreatorProfile.created_at)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def get_profile(
        self, db: AsyncSession, creator_id: UUID
    ) -> CreatorProfile | None:
        result = await db.execute(
            select(CreatorProfile).where(CreatorProfile.id == creator_id)
        )
        return result.scalar_one_or_none()

    async def list_user_profiles(
        self, db: AsyncSession, user_ids: Iterable[UUID]
    ) -> list[UserProfile]:
        ids = list(user_ids)
        if not ids:
            return []
        result = await db.execute(select(UserProfile).where(UserProfile.id.in_(ids)))
        return list(result.scalars().all())

    async def list_preferences(
        self, db: AsyncSession, creator_ids: Iterable[UUID] | None = None
    ) -> list[CreatorPreferences]:
        statement = select(CreatorPreferences)
        if creator_ids is not None:
            statement = statement.where(
                CreatorPreferences.creator_id.in_(list(creator_ids))
            )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def get_preferences(
        self, db: AsyncSession, creator_id: UUID
    ) -> CreatorPreferences | None:
        result = await db.execute(
            select(CreatorPreferences).where(
                CreatorPreferences.creator_id == creator_id
            )
        )
        return result.scalar_one_or_none()

    async def list_ratings(
        self, db: AsyncSession, creator_ids: Iterable[UUID] | None = None
    ) -> list[CreatorRating]:
        statement = select(CreatorRating).order_by(CreatorRating.created_at.desc())
        if creator_ids is not None:
            statement = statement.where(CreatorRating.creator_id.in_(list(creator_ids)))
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def upsert_rating(
        self,
        db: AsyncSession,
        *,
        creator_id: UUID,
        client_id: UUID,
        rating: int,
        review: str | None = None,
        project_id: UUID | None = None,
    ) -> CreatorRating:
        """Insert or replace the rating keyed by (creator, client, project)."""
        statement = (
            insert(CreatorRating)
            .values(
                creator_id=creator_id,
                client_id=client_id,
                project_id=project_id,
                rating=rating,
                review=review,
            )
            .on_conflict_do_update(
                index_elements=["creator_id", "client_id", "project_id"],
                set_={"rating": rating, "review": review},
            )
            .returning(CreatorRating)
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(statement)
            row = result.scalar_one()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return row

    async def upsert_preferences(
        self, db: AsyncSession, creator_id: UUID, values: dict[str, Any]
    ) -> CreatorPreferences:
        """Insert or update the single preferences row of ``creator_id``."""
        statement = (
            insert(CreatorPreferences)
            .values(creator_id=creator_id, **values)
            .on_conflict_do_update(
                index_elements=["creator_id"],
                set_={**values, "updated_at": func.now()},
            )
            .returning(CreatorPreferences)
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(statement)
            row = result.scalar_one()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return row


creator_crud = CreatorCRUD()
