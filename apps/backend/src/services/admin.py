"""Admin dashboard and creator staffing."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.resilience.degradation import PROPAGATE, degrade_to, guarded_call
from core.resilience.policy import get_retry_policies
from crud.assignments import assignment_crud
from crud.dashboard import DashboardCounts, dashboard_crud
from schemas.admin import (
    AssignmentResponse,
    DashboardMetrics,
    DashboardStats,
    RecentProject,
)


logger = logging.getLogger(__name__)


def match_rate(total_routed: int, total_projects: int) -> float:
    """Routed leads per project as a percentage, one decimal."""
    if total_projects <= 0:
        return 0.0
    return round(total_routed / total_projects * 100, 1)


def _metrics(counts: DashboardCounts) -> DashboardMetrics:
    return DashboardMetrics(
        total_businesses=counts.total_businesses,
        total_vendors=counts.total_vendors,
        approved_vendors=counts.approved_vendors,
        pending_vendors=counts.total_vendors - counts.approved_vendors,
        total_projects=counts.total_projects,
        open_projects=counts.open_projects,
        total_bids=counts.total_bids,
        match_rate=match_rate(counts.total_routed, counts.total_projects),
        pending_payments=counts.pending_payments,
        total_pending_amount=float(counts.total_pending_amount),
    )


async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    """Marketplace-wide metrics; zeros when the store cannot be reached."""
    policies = get_retry_policies()
    counts = await guarded_call(
        lambda: dashboard_crud.counts(db),
        retry_policy=policies.dashboard_read,
        before_retry=db.rollback,
        degradation=degrade_to(lambda: None),
        operation="admin.dashboard_counts",
    )
    recent = await guarded_call(
        lambda: dashboard_crud.recent_projects(db),
        retry_policy=policies.dashboard_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="admin.recent_projects",
    )
    return DashboardStats(
        metrics=_metrics(counts) if counts is not None else DashboardMetrics(),
        recent_projects=[RecentProject.model_validate(p) for p in recent],
    )


async def get_project_assignments(
    db: AsyncSession, project_id: UUID
) -> list[AssignmentResponse]:
    rows = await guarded_call(
        lambda: assignment_crud.list_for_project(db, project_id),
        retry_policy=get_retry_policies().dashboard_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="admin.project_assignments",
    )
    return [AssignmentResponse.model_validate(r) for r in rows]


async def assign_creator_to_project(
    db: AsyncSession,
    project_id: UUID,
    creator_id: UUID,
    role: str = "contributor",
) -> AssignmentResponse:
    """Staff ``creator_id`` on ``project_id``.

    The write is an upsert on (project, creator), so when a timed-out attempt
    was in fact acknowledged the retry updates the same row.
    """
    logger.info("Assigning creator %s to project %s", creator_id, project_id)
    assignment = await guarded_call(
        lambda: assignment_crud.upsert(
            db, project_id=project_id, creator_id=creator_id, role=role
        ),
        retry_policy=get_retry_policies().critical_write,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="admin.assign_creator",
    )
    return AssignmentResponse.model_validate(assignment)
