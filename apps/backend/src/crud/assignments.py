"""CRUD operations for project assignments."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.projects import Project, ProjectAssignment


class AssignmentCRUD:
    """CRUD operations for creators staffed on projects."""

    async def list_for_project(
        self, db: AsyncSession, project_id: UUID
    ) -> list[ProjectAssignment]:
        statement = (
            select(ProjectAssignment)
            .where(ProjectAssignment.project_id == project_id)
            .order_by(ProjectAssignment.created_at)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def list_for_creator(
        self, db: AsyncSession, creator_id: UUID
    ) -> list[tuple[ProjectAssignment, Project | None]]:
        """Assignments of ``creator_id`` joined with their project, if visible."""
        statement = (
            select(ProjectAssignment, Project)
            .join(Project, Project.id == ProjectAssignment.project_id, isouter=True)
            .where(ProjectAssignment.creator_id == creator_id)
        )
        result = await db.execute(statement)
        return [(row[0], row[1]) for row in result.all()]

    async def active_counts(self, db: AsyncSession) -> dict[UUID, int]:
        """Number of active assignments per creator."""
        statement = (
            select(ProjectAssignment.creator_id, func.count(ProjectAssignment.id))
            .where(ProjectAssignment.status == "active")
            .group_by(ProjectAssignment.creator_id)
        )
        result = await db.execute(statement)
        return {creator_id: int(count) for creator_id, count in result.all()}

    async def upsert(
        self,
        db: AsyncSession,
        *,
        project_id: UUID,
        creator_id: UUID,
        role: str,
    ) -> ProjectAssignment:
        """Assign ``creator_id`` to ``project_id``; re-assigning updates the role.

        Keyed on (project, creator), so a retried write lands on the same row.
        """
        statement = (
            insert(ProjectAssignment)
            .values(project_id=project_id, creator_id=creator_id, role=role)
            .on_conflict_do_update(
                index_elements=["project_id", "creator_id"],
                set_={"role": role, "status": "active"},
            )
            .returning(ProjectAssignment)
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(statement)
            assignment = result.scalar_one()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return assignment


assignment_crud = AssignmentCRUD()
