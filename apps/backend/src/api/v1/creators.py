"""Creator marketplace endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from core.exceptions import CreatorNotFoundError
from dependencies.auth import CreatorUser, CurrentUserDep
from dependencies.db import DbSession
from schemas.api import ApiResponse
from schemas.marketplace import (
    CreatorDetail,
    CreatorFilters,
    CreatorPreferencesResponse,
    CreatorPreferencesUpdate,
    CreatorSummary,
    RatingCreate,
    RatingResponse,
)
from services import marketplace


router = APIRouter(prefix="/creators", tags=["creators"])


@router.get(
    "",
    summary="List approved creators",
    response_model=ApiResponse[list[CreatorSummary]],
)
async def list_creators(
    db: DbSession,
    filters: Annotated[CreatorFilters, Query()],
) -> ApiResponse[list[CreatorSummary]]:
    creators = await marketplace.get_approved_creators(db, filters)
    return ApiResponse(
        data=creators, message=f"Found {len(creators)} creator(s)"
    )


@router.put(
    "/me/preferences",
    summary="Update my creator preferences",
    response_model=ApiResponse[CreatorPreferencesResponse],
    responses={403: {"description": "Caller is not a creator"}},
)
async def update_my_preferences(
    payload: CreatorPreferencesUpdate,
    db: DbSession,
    current_user: CreatorUser,
) -> ApiResponse[CreatorPreferencesResponse]:
    prefs = await marketplace.update_creator_preferences(
        db, UUID(current_user.id), payload
    )
    return ApiResponse(data=prefs, message="Preferences updated")


@router.get(
    "/{creator_id}",
    summary="Get a creator profile",
    response_model=ApiResponse[CreatorDetail],
    responses={404: {"description": "Creator not found"}},
)
async def get_creator(creator_id: UUID, db: DbSession) -> ApiResponse[CreatorDetail]:
    profile = await marketplace.get_creator_profile(db, creator_id)
    if profile is None:
        raise CreatorNotFoundError(f"Creator {creator_id} not found")
    return ApiResponse(data=profile, message="Creator retrieved")


@router.post(
    "/{creator_id}/ratings",
    summary="Rate a creator",
    response_model=ApiResponse[RatingResponse],
    status_code=201,
)
async def rate_creator(
    creator_id: UUID,
    payload: RatingCreate,
    db: DbSession,
    current_user: CurrentUserDep,
) -> ApiResponse[RatingResponse]:
    rating = await marketplace.rate_creator(
        db,
        creator_id=creator_id,
        client_id=UUID(current_user.id),
        rating=payload.rating,
        review=payload.review,
        project_id=payload.project_id,
    )
    return ApiResponse(data=rating, message="Rating saved")
