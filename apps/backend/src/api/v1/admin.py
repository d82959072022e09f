"""Admin endpoints. Every route requires the ``admin`` role."""

from uuid import UUID

from fastapi import APIRouter, Depends

from dependencies.auth import AdminUser, require_admin
from dependencies.db import DbSession
from dependencies.realtime import Broker
from schemas.admin import (
    AssignCreatorRequest,
    AssignmentResponse,
    DashboardStats,
    RoutingResult,
)
from schemas.api import ApiResponse
from schemas.notifications import NotificationCreate, NotificationEvent
from services import admin, notifications
from services.lead_routing import route_project_to_vendors
from services.realtime import notifications_channel


router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


@router.get("/stats", response_model=ApiResponse[DashboardStats])
async def dashboard_stats(db: DbSession) -> ApiResponse[DashboardStats]:
    stats = await admin.get_dashboard_stats(db)
    return ApiResponse(data=stats, message="Dashboard stats retrieved")


@router.post(
    "/assign-creator",
    response_model=ApiResponse[AssignmentResponse],
    responses={503: {"description": "Store unavailable after retries"}},
)
async def assign_creator(
    payload: AssignCreatorRequest, db: DbSession, broker: Broker
) -> ApiResponse[AssignmentResponse]:
    assignment = await admin.assign_creator_to_project(
        db, payload.project_id, payload.creator_id, payload.role
    )
    notification = await notifications.create_notification(
        db,
        NotificationCreate(
            user_id=payload.creator_id,
            title="New project assignment",
            message=f"You have been assigned to a project as {assignment.role}.",
            type="success",
            category="assignment",
            related_id=payload.project_id,
        ),
    )
    channel = notifications_channel(str(payload.creator_id))
    broker.publish(
        channel,
        NotificationEvent(
            event="assignment.created",
            channel=channel,
            data={
                "project_id": str(payload.project_id),
                "role": assignment.role,
                "notification_id": str(notification.id),
            },
        ),
    )
    return ApiResponse(data=assignment, message="Creator assigned")


@router.get(
    "/project-assignments/{project_id}",
    response_model=ApiResponse[list[AssignmentResponse]],
)
async def project_assignments(
    project_id: UUID, db: DbSession
) -> ApiResponse[list[AssignmentResponse]]:
    assignments = await admin.get_project_assignments(db, project_id)
    return ApiResponse(data=assignments, message=f"Found {len(assignments)} assignment(s)")


@router.post("/routing/{project_id}", response_model=ApiResponse[RoutingResult])
async def trigger_routing(
    project_id: UUID, db: DbSession, broker: Broker, current_user: AdminUser
) -> ApiResponse[RoutingResult]:
    result = await route_project_to_vendors(
        db, project_id, routed_by=UUID(current_user.id)
    )
    for vendor in result.matched:
        channel = notifications_channel(str(vendor.vendor_id))
        broker.publish(
            channel,
            NotificationEvent(
                event="lead.routed",
                channel=channel,
                data={"project_id": str(project_id), "score": vendor.score},
            ),
        )
    return ApiResponse(
        data=result, message=f"Routed to {result.matched_vendors} vendor(s)"
    )
