"""Route a project lead to the approved vendors who can serve it.

A vendor qualifies only when it offers the project's service category and
covers the project's state. Every qualifying vendor gets a routing row; the
project's activity log records either ``routed`` or ``routing_failed``.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ProjectNotFoundError
from core.resilience.degradation import PROPAGATE, guarded_call
from core.resilience.policy import get_retry_policies
from crud.projects import project_crud
from crud.vendors import vendor_crud
from models.profiles import Profile
from schemas.admin import RoutedVendor, RoutingResult
from services.matching import Candidate, Requirements, route_vendors


logger = logging.getLogger(__name__)


def _vendor_candidates(
    vendors: list[Profile], states_by_area: dict[UUID, str]
) -> list[Candidate]:
    return [
        Candidate(
            id=str(vendor.user_id),
            services=tuple(str(s) for s in vendor.vendor_services or ()),
            coverage_states=tuple(
                states_by_area[area]
                for area in vendor.vendor_coverage_areas or ()
                if area in states_by_area
            ),
        )
        for vendor in vendors
    ]


async def route_project_to_vendors(
    db: AsyncSession, project_id: UUID, *, routed_by: UUID | None = None
) -> RoutingResult:
    """Match ``project_id`` against approved vendors and persist the routing.

    Raises ``ProjectNotFoundError`` (as a classified not-found remote error)
    when the project does not exist.
    """
    write_policy = get_retry_policies().critical_write

    async def _load() -> tuple[Requirements, list[Candidate]]:
        project = await project_crud.get(db, project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        vendors = await vendor_crud.list_approved(db)
        area_ids = {area for v in vendors for area in v.vendor_coverage_areas or ()}
        states = await vendor_crud.coverage_states(db, area_ids)
        requirements = Requirements(
            service_id=str(project.service_category_id)
            if project.service_category_id
            else None,
            state=project.project_state,
        )
        return requirements, _vendor_candidates(vendors, states)

    requirements, candidates = await guarded_call(
        _load,
        retry_policy=write_policy,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="routing.load",
    )

    matched = route_vendors(requirements, candidates)
    vendor_ids = [UUID(m.candidate.id) for m in matched]
    if vendor_ids:
        action = "routed"
        details = {
            "matched_vendors": len(vendor_ids),
            "matched_vendor_ids": [str(v) for v in vendor_ids],
        }
    else:
        action = "routing_failed"
        details = {"reason": "No matching vendors found"}

    await guarded_call(
        lambda: vendor_crud.record_routing(
            db, project_id, vendor_ids, details, action=action, user_id=routed_by
        ),
        retry_policy=write_policy,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="routing.record",
    )
    logger.info(
        "Routed project %s to %d of %d vendors",
        project_id,
        len(vendor_ids),
        len(candidates),
    )
    return RoutingResult(
        project_id=project_id,
        matched_vendors=len(matched),
        matched=[
            RoutedVendor(
                vendor_id=UUID(m.candidate.id), score=m.score, reasons=list(m.reasons)
            )
            for m in matched
        ],
    )
