"""Client portal reads. All of them degrade; a client dashboard always renders."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.resilience.degradation import degrade_to, guarded_call
from core.resilience.policy import get_retry_policies
from crud.creators import creator_crud
from crud.projects import project_crud
from schemas.client import ClientProfile, ClientProject, ClientStats


def placeholder_profile(client_id: str) -> ClientProfile:
    return ClientProfile(id=client_id, name="User", email="")


def _parse_id(client_id: str) -> UUID | None:
    try:
        return UUID(client_id)
    except (TypeError, ValueError):
        return None


async def get_client_projects(db: AsyncSession, client_id: str) -> list[ClientProject]:
    """Projects of ``client_id``, newest first; empty for an empty or bad id."""
    parsed = _parse_id(client_id) if client_id else None
    if parsed is None:
        return []

    projects = await guarded_call(
        lambda: project_crud.list_for_client(db, parsed),
        retry_policy=get_retry_policies().fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="client.list_projects",
    )
    return [ClientProject.model_validate(p) for p in projects]


async def get_client_profile(db: AsyncSession, client_id: str) -> ClientProfile:
    """Display profile of ``client_id``, or a placeholder when unavailable."""
    parsed = _parse_id(client_id) if client_id else None
    if parsed is None:
        return placeholder_profile(client_id)

    users = await guarded_call(
        lambda: creator_crud.list_user_profiles(db, [parsed]),
        retry_policy=get_retry_policies().fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="client.get_profile",
    )
    if not users:
        return placeholder_profile(client_id)
    user = users[0]
    return ClientProfile(id=str(user.id), name=user.name or "User", email=user.email or "")


async def get_client_stats(db: AsyncSession, client_id: str) -> ClientStats:
    parsed = _parse_id(client_id) if client_id else None
    if parsed is None:
        return ClientStats()

    totals = await guarded_call(
        lambda: project_crud.client_totals(db, parsed),
        retry_policy=get_retry_policies().fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(lambda: None),
        operation="client.stats",
    )
    if totals is None:
        return ClientStats()

    count, total_budget = totals
    # Spend tracking lives with payments; until then nothing counts as spent.
    return ClientStats(
        active_projects=count,
        total_budget=float(total_budget),
        budget_remaining=float(total_budget),
        total_spent=0.0,
        budget_utilization=0.0,
    )
