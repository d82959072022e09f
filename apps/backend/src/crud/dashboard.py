"""Aggregate counts for the admin dashboard."""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.payments import Payment
from models.profiles import Profile
from models.projects import Project, ProjectRouting, VendorResponse


@dataclass(frozen=True, slots=True)
class DashboardCounts:
    total_businesses: int
    total_vendors: int
    approved_vendors: int
    total_projects: int
    open_projects: int
    total_bids: int
    total_routed: int
    pending_payments: int
    total_pending_amount: Decimal


class DashboardCRUD:
    async def counts(self, db: AsyncSession) -> DashboardCounts:
        profiles = (
            await db.execute(
                select(
                    func.count(case((Profile.role == "business", 1))),
                    func.count(case((Profile.role == "vendor", 1))),
                    func.count(
                        case(((Profile.role == "vendor") & Profile.is_approved, 1))
                    ),
                )
            )
        ).one()
        projects = (
            await db.execute(
                select(
                    func.count(Project.id),
                    func.count(case((Project.status == "open", 1))),
                )
            )
        ).one()
        total_bids = (await db.execute(select(func.count(VendorResponse.id)))).scalar_one()
        total_routed = (
            await db.execute(select(func.count(ProjectRouting.id)))
        ).scalar_one()
        payments = (
            await db.execute(
                select(
                    func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0)
                ).where(Payment.status == "pending")
            )
        ).one()

        return DashboardCounts(
            total_businesses=int(profiles[0] or 0),
            total_vendors=int(profiles[1] or 0),
            approved_vendors=int(profiles[2] or 0),
            total_projects=int(projects[0] or 0),
            open_projects=int(projects[1] or 0),
            total_bids=int(total_bids or 0),
            total_routed=int(total_routed or 0),
            pending_payments=int(payments[0] or 0),
            total_pending_amount=Decimal(payments[1] or 0),
        )

    async def recent_projects(self, db: AsyncSession, limit: int = 5) -> list[Project]:
        result = await db.execute(
            select(Project).order_by(Project.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())


dashboard_crud = DashboardCRUD()
