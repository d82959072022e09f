from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


AVAILABILITY_PATTERN = r"^(available|busy|unavailable)$"
TIER_PATTERN = r"^(essential|standard|visionary)$"


class UserSummary(BaseModel):
    id: UUID
    name: str | None = None
    email: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CreatorPreferencesResponse(BaseModel):
    creator_id: UUID
    preferred_project_types: list[str] = Field(default_factory=list)
    preferred_project_tiers: list[str] = Field(default_factory=list)
    hourly_rate: float | None = None
    availability_status: str | None = None
    max_concurrent_projects: int | None = None

    model_config = ConfigDict(from_attributes=True)


class CreatorPreferencesUpdate(BaseModel):
    """Partial update of a creator's preferences; unset fields are untouched."""

    preferred_project_types: list[str] | None = None
    preferred_project_tiers: list[str] | None = Field(
        default=None, description="Project tiers the creator wants to work on"
    )
    hourly_rate: float | None = Field(default=None, ge=0)
    availability_status: str | None = Field(
        default=None, pattern=AVAILABILITY_PATTERN
    )
    max_concurrent_projects: int | None = Field(default=None, ge=1, le=50)


class RatingResponse(BaseModel):
    id: UUID
    creator_id: UUID
    client_id: UUID
    project_id: UUID | None = None
    rating: int
    review: str | None = None
    created_at: datetime | None = None
    client: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class RatingCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Star rating from 1 to 5")
    review: str | None = Field(default=None, max_length=5000)
    project_id: UUID | None = None


class CreatorSummary(BaseModel):
    """A marketplace listing entry."""

    id: UUID
    bio: str | None = None
    skills: list[str] = Field(default_factory=list)
    day_rate: float | None = None
    status: str
    user: UserSummary | None = None
    preferences: CreatorPreferencesResponse | None = None
    average_rating: float = 0.0
    rating_count: int = 0


class AssignedProject(BaseModel):
    id: UUID
    project_id: UUID
    role: str
    title: str | None = None
    tier: str | None = None
    status: str | None = None


class CreatorDetail(CreatorSummary):
    ratings: list[RatingResponse] = Field(default_factory=list)
    projects: list[AssignedProject] = Field(default_factory=list)


class CreatorFilters(BaseModel):
    availability: str | None = Field(default=None, pattern=AVAILABILITY_PATTERN)
    min_rating: float | None = Field(default=None, ge=0, le=5)
    skill: str | None = Field(default=None, min_length=1, max_length=100)


class CreatorMatch(BaseModel):
    id: UUID
    skills: list[str] = Field(default_factory=list)
    day_rate: float | None = None
    match_score: int
    reasons: list[str] = Field(default_factory=list)
