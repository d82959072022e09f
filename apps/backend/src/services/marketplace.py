"""Creator marketplace: listings, profiles, matching, ratings and preferences.

Listing and profile reads degrade to empty results when the store stays
unreachable; ratings and preference updates always surface failures.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.exceptions import ProjectNotFoundError
from core.resilience.degradation import PROPAGATE, degrade_to, guarded_call
from core.resilience.policy import get_retry_policies
from crud.assignments import assignment_crud
from crud.creators import creator_crud
from crud.projects import project_crud
from models.creators import CreatorPreferences, CreatorProfile, CreatorRating
from models.profiles import UserProfile
from schemas.marketplace import (
    AssignedProject,
    CreatorDetail,
    CreatorFilters,
    CreatorMatch,
    CreatorPreferencesResponse,
    CreatorPreferencesUpdate,
    CreatorSummary,
    RatingResponse,
    UserSummary,
)
from services.matching import Candidate, Requirements, rank


logger = logging.getLogger(__name__)


def _to_float(value: Decimal | float | None) -> float | None:
    if value is None:
        return None
    return float(value)


def average_rating(ratings: Iterable[CreatorRating | RatingResponse]) -> float:
    """Mean rating rounded to one decimal; 0.0 when there are none."""
    values = [r.rating or 0 for r in ratings]
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def _preferences_response(
    prefs: CreatorPreferences | None,
) -> CreatorPreferencesResponse | None:
    if prefs is None:
        return None
    return CreatorPreferencesResponse(
        creator_id=prefs.creator_id,
        preferred_project_types=list(prefs.preferred_project_types or []),
        preferred_project_tiers=list(prefs.preferred_project_tiers or []),
        hourly_rate=_to_float(prefs.hourly_rate),
        availability_status=prefs.availability_status,
        max_concurrent_projects=prefs.max_concurrent_projects,
    )


def _summary(
    profile: CreatorProfile,
    user: UserProfile | None,
    prefs: CreatorPreferences | None,
    ratings: list[CreatorRating],
) -> CreatorSummary:
    return CreatorSummary(
        id=profile.id,
        bio=profile.bio,
        skills=list(profile.skills or []),
        day_rate=_to_float(profile.day_rate),
        status=profile.status,
        user=UserSummary.model_validate(user) if user is not None else None,
        preferences=_preferences_response(prefs),
        average_rating=average_rating(ratings),
        rating_count=len(ratings),
    )


def _apply_filters(
    creators: list[CreatorSummary], filters: CreatorFilters | None
) -> list[CreatorSummary]:
    if filters is None:
        return creators
    result = creators
    if filters.availability:
        result = [
            c
            for c in result
            if c.preferences is not None
            and c.preferences.availability_status == filters.availability
        ]
    if filters.min_rating:
        result = [c for c in result if c.average_rating >= filters.min_rating]
    if filters.skill:
        needle = filters.skill.lower()
        result = [c for c in result if any(needle in s.lower() for s in c.skills)]
    return result


async def get_approved_creators(
    db: AsyncSession, filters: CreatorFilters | None = None
) -> list[CreatorSummary]:
    """Approved creators enriched with user data, preferences and ratings.

    Enrichment lookups degrade independently: a failed ratings query still
    lists the creators, just without ratings.
    """
    policies = get_retry_policies()
    profiles = await guarded_call(
        lambda: creator_crud.list_approved(db),
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="creators.list_approved",
    )
    if not profiles:
        return []

    ids = [p.id for p in profiles]
    users = await guarded_call(
        lambda: creator_crud.list_user_profiles(db, ids),
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="creators.list_user_profiles",
    )
    ratings = await guarded_call(
        lambda: creator_crud.list_ratings(db, ids),
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="creators.list_ratings",
    )
    preferences = await guarded_call(
        lambda: creator_crud.list_preferences(db, ids),
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="creators.list_preferences",
    )

    users_by_id = {u.id: u for u in users}
    prefs_by_id = {p.creator_id: p for p in preferences}
    ratings_by_id: dict[UUID, list[CreatorRating]] = defaultdict(list)
    for rating in ratings:
        ratings_by_id[rating.creator_id].append(rating)

    enriched = [
        _summary(
            profile,
            users_by_id.get(profile.id),
            prefs_by_id.get(profile.id),
            ratings_by_id.get(profile.id, []),
        )
        for profile in profiles
    ]
    return _apply_filters(enriched, filters)


async def get_creator_profile(
    db: AsyncSession, creator_id: UUID
) -> CreatorDetail | None:
    """Full creator profile, or None when it cannot be loaded."""
    policies = get_retry_policies()
    profile = await guarded_call(
        lambda: creator_crud.get_profile(db, creator_id),
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(lambda: None),
        operation="creators.get_profile",
    )
    if profile is None:
        return None

    async def _load_ratings() -> list[RatingResponse]:
        ratings = await creator_crud.list_ratings(db, [creator_id])
        clients = await creator_crud.list_user_profiles(
            db, {r.client_id for r in ratings}
        )
        clients_by_id = {c.id: UserSummary.model_validate(c) for c in clients}
        return [
            RatingResponse.model_validate(r).model_copy(
                update={"client": clients_by_id.get(r.client_id)}
            )
            for r in ratings
        ]

    async def _load_projects() -> list[AssignedProject]:
        rows = await assignment_crud.list_for_creator(db, creator_id)
        return [
            AssignedProject(
                id=assignment.id,
                project_id=assignment.project_id,
                role=assignment.role,
                title=project.title if project else None,
                tier=project.tier if project else None,
                status=project.status if project else None,
            )
            for assignment, project in rows
        ]

    users = await guarded_call(
        lambda: creator_crud.list_user_profiles(db, [creator_id]),
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="creators.get_user",
    )
    ratings = await guarded_call(
        _load_ratings,
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="creators.get_ratings",
    )
    prefs = await guarded_call(
        lambda: creator_crud.get_preferences(db, creator_id),
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(lambda: None),
        operation="creators.get_preferences",
    )
    projects = await guarded_call(
        _load_projects,
        retry_policy=policies.fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(list),
        operation="creators.get_projects",
    )

    return CreatorDetail(
        id=profile.id,
        bio=profile.bio,
        skills=list(profile.skills or []),
        day_rate=_to_float(profile.day_rate),
        status=profile.status,
        user=UserSummary.model_validate(users[0]) if users else None,
        preferences=_preferences_response(prefs),
        average_rating=average_rating(ratings),
        rating_count=len(ratings),
        ratings=ratings,
        projects=projects,
    )


def build_candidates(
    profiles: list[CreatorProfile],
    preferences: list[CreatorPreferences],
    active_counts: dict[UUID, int],
) -> list[Candidate]:
    """Snapshot creators into matching candidates, keeping input order."""
    prefs_by_id = {p.creator_id: p for p in preferences}
    default_capacity = get_settings().DEFAULT_MAX_CONCURRENT_PROJECTS
    candidates = []
    for profile in profiles:
        prefs = prefs_by_id.get(profile.id)
        candidates.append(
            Candidate(
                id=str(profile.id),
                skills=tuple(profile.skills or ()),
                day_rate=_to_float(profile.day_rate),
                availability=prefs.availability_status if prefs else None,
                preferred_tiers=tuple(prefs.preferred_project_tiers or ())
                if prefs
                else (),
                current_load=active_counts.get(profile.id, 0),
                max_concurrent=(prefs.max_concurrent_projects if prefs else None)
                or default_capacity,
            )
        )
    return candidates


async def find_matching_creators(
    db: AsyncSession, project_id: UUID, limit: int | None = None
) -> list[CreatorMatch]:
    """Best creators for ``project_id``; empty when nothing can be loaded."""
    limit = get_settings().MATCH_RESULT_LIMIT if limit is None else limit

    async def _load() -> tuple[Requirements, list[Candidate]]:
        project = await project_crud.get(db, project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        profiles = await creator_crud.list_approved(db)
        preferences = await creator_crud.list_preferences(db, [p.id for p in profiles])
        counts = await assignment_crud.active_counts(db)
        requirements = Requirements(
            goals=project.goals,
            tier=project.tier,
            budget=_to_float(project.budget),
        )
        return requirements, build_candidates(profiles, preferences, counts)

    loaded = await guarded_call(
        _load,
        retry_policy=get_retry_policies().fast_read,
        before_retry=db.rollback,
        degradation=degrade_to(lambda: None),
        operation="creators.find_matches",
    )
    if loaded is None:
        return []

    requirements, candidates = loaded
    ranked = rank(requirements, candidates, limit=limit)
    logger.info(
        "Matched %d of %d creators for project %s",
        len(ranked),
        len(candidates),
        project_id,
    )
    return [
        CreatorMatch(
            id=UUID(r.candidate.id),
            skills=list(r.candidate.skills),
            day_rate=r.candidate.day_rate,
            match_score=r.score,
            reasons=list(r.reasons),
        )
        for r in ranked
    ]


async def rate_creator(
    db: AsyncSession,
    *,
    creator_id: UUID,
    client_id: UUID,
    rating: int,
    review: str | None = None,
    project_id: UUID | None = None,
) -> RatingResponse:
    """Record a client's rating; one rating per (creator, client, project)."""
    row = await guarded_call(
        lambda: creator_crud.upsert_rating(
            db,
            creator_id=creator_id,
            client_id=client_id,
            rating=rating,
            review=review or None,
            project_id=project_id,
        ),
        retry_policy=get_retry_policies().critical_write,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="creators.rate",
    )
    return RatingResponse.model_validate(row)


async def update_creator_preferences(
    db: AsyncSession, creator_id: UUID, update: CreatorPreferencesUpdate
) -> CreatorPreferencesResponse:
    values = update.model_dump(exclude_unset=True)
    row = await guarded_call(
        lambda: creator_crud.upsert_preferences(db, creator_id, values),
        retry_policy=get_retry_policies().critical_write,
        before_retry=db.rollback,
        degradation=PROPAGATE,
        operation="creators.update_preferences",
    )
    return CreatorPreferencesResponse.model_validate(row)
