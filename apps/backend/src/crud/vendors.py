"""CRUD operations for vendor lead routing."""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.profiles import CoverageArea, Profile
from models.projects import ProjectActivity, ProjectRouting


class VendorCRUD:
    """Vendor lookup plus the routing and activity rows routing writes."""

    async def list_approved(self, db: AsyncSession) -> list[Profile]:
        statement = (
            select(Profile)
            .where(Profile.role == "vendor", Profile.is_approved.is_(True))
            .order_by(Profile.created_at)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def coverage_states(
        self, db: AsyncSession, area_ids: Iterable[UUID]
    ) -> dict[UUID, str]:
        ids = list(area_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(CoverageArea.id, CoverageArea.state).where(CoverageArea.id.in_(ids))
        )
        return {area_id: state for area_id, state in result.all()}

    async def record_routing(
        self,
        db: AsyncSession,
        project_id: UUID,
        vendor_ids: list[UUID],
        activity: dict[str, Any],
        *,
        action: str,
        user_id: UUID | None = None,
    ) -> None:
        """Insert routing rows and one activity entry in a single transaction.

        Existing (project, vendor) rows are left untouched, so routing the same
        project twice is harmless.
        """
        try:
            if vendor_ids:
                await db.execute(
                    insert(ProjectRouting)
                    .values(
                        [
                            {"project_id": project_id, "vendor_id": vid, "status": "routed"}
                            for vid in vendor_ids
                        ]
                    )
                    .on_conflict_do_nothing(index_elements=["project_id", "vendor_id"])
                )
            db.add(
                ProjectActivity(
                    project_id=project_id,
                    user_id=user_id,
                    action=action,
                    details=activity,
                )
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise


vendor_crud = VendorCRUD()
