from uuid import UUID

from fastapi import APIRouter, Query

from dependencies.db import DbSession
from schemas.api import ApiResponse
from schemas.marketplace import CreatorMatch
from services.marketplace import find_matching_creators


router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "/{project_id}/matches",
    summary="Recommend creators for a project",
    response_model=ApiResponse[list[CreatorMatch]],
)
async def get_project_matches(
    project_id: UUID,
    db: DbSession,
    limit: int | None = Query(default=None, ge=1, le=50),
) -> ApiResponse[list[CreatorMatch]]:
    """Best-matching creators, highest score first.

    An empty list means nothing could be matched or loaded; it is not proof
    that no creator fits.
    """
    matches = await find_matching_creators(db, project_id, limit)
    return ApiResponse(data=matches, message=f"Found {len(matches)} match(es)")
