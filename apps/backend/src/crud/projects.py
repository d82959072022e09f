"""CRUD operations for projects."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.projects import Project


class ProjectCRUD:
    """Read access to projects; creation happens in the intake flow."""

    async def get(self, db: AsyncSession, project_id: UUID) -> Project | None:
        result = await db.execute(select(Project).where(Project.id == project_id))
        return result.scalar_one_or_none()

    async def list_for_client(self, db: AsyncSession, client_id: UUID) -> list[Project]:
        """Projects owned by ``client_id``, newest first."""
        statement = (
            select(Project)
            .where(Project.client_id == client_id)
            .order_by(Project.created_at.desc())
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def client_totals(
        self, db: AsyncSession, client_id: UUID
    ) -> tuple[int, Decimal]:
        """Return ``(project_count, total_budget)`` for one client."""
        statement = select(
            func.count(Project.id), func.coalesce(func.sum(Project.budget), 0)
        ).where(Project.client_id == client_id)
        result = await db.execute(statement)
        count, total = result.one()
        return int(count or 0), Decimal(total or 0)


project_crud = ProjectCRUD()
