from fastapi import APIRouter

from dependencies.auth import CurrentUserDep
from dependencies.db import DbSession
from schemas.api import ApiResponse
from schemas.client import ClientProfile, ClientProject, ClientStats
from services import client_portal


router = APIRouter(prefix="/client", tags=["client"])


@router.get("/projects", response_model=ApiResponse[list[ClientProject]])
async def my_projects(
    db: DbSession, current_user: CurrentUserDep
) -> ApiResponse[list[ClientProject]]:
    projects = await client_portal.get_client_projects(db, current_user.id)
    return ApiResponse(data=projects, message=f"Found {len(projects)} project(s)")


@router.get("/profile", response_model=ApiResponse[ClientProfile])
async def my_profile(
    db: DbSession, current_user: CurrentUserDep
) -> ApiResponse[ClientProfile]:
    profile = await client_portal.get_client_profile(db, current_user.id)
    return ApiResponse(data=profile, message="Profile retrieved")


@router.get("/stats", response_model=ApiResponse[ClientStats])
async def my_stats(db: DbSession, current_user: CurrentUserDep) -> ApiResponse[ClientStats]:
    stats = await client_portal.get_client_stats(db, current_user.id)
    return ApiResponse(data=stats, message="Stats retrieved")
