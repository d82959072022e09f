"""Additive weighted scoring of candidates against project requirements.

Each criterion awards a fixed number of points when satisfied and may veto a
candidate outright (a hard constraint). Vetoed or zero-scoring candidates are
dropped; the rest are ranked by score with ties kept in input order.

Everything here is pure: no I/O, no caching, and inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field


DEFAULT_MATCH_LIMIT = 5
DEFAULT_MAX_CONCURRENT = 3

SKILL_POINTS = 1
TIER_POINTS = 3
BUDGET_POINTS = 1
AVAILABLE_POINTS = 2
BUSY_POINTS = 1
CAPACITY_POINTS = 1
SERVICE_POINTS = 50
LOCATION_POINTS = 50


@dataclass(frozen=True, slots=True)
class Candidate:
    """Read-only snapshot of a creator or vendor taken for one matching call."""

    id: str
    skills: tuple[str, ...] = ()
    day_rate: float | None = None
    availability: str | None = None
    preferred_tiers: tuple[str, ...] = ()
    current_load: int = 0
    max_concurrent: int | None = None
    at_capacity: bool | None = None
    # Vendor routing only
    services: tuple[str, ...] = ()
    coverage_states: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Requirements:
    skills: tuple[str, ...] = ()
    goals: str | None = None
    tier: str | None = None
    budget: float | None = None
    service_id: str | None = None
    state: str | None = None


@dataclass(frozen=True, slots=True)
class CriterionResult:
    points: int = 0
    excluded: bool = False
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class MatchScore:
    candidate_id: str
    score: int
    tie_break: int
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RankedCandidate:
    candidate: Candidate
    score: int
    reasons: tuple[str, ...] = field(default_factory=tuple)


Criterion = Callable[[Requirements, Candidate], CriterionResult]

_NO_MATCH = CriterionResult()
_EXCLUDED = CriterionResult(excluded=True)


def skill_overlap(requirements: Requirements, candidate: Candidate) -> CriterionResult:
    """+1 per candidate skill named in the requested skills or the goals text.

    Zero overlap excludes the candidate only when explicit skills were
    requested. Hits in the goals text add points but never exclude.
    """
    requested = {s.strip().lower() for s in requirements.skills if s.strip()}
    goals = (requirements.goals or "").lower()
    if not requested and not goals:
        return _NO_MATCH

    matched = [
        skill
        for skill in candidate.skills
        if skill.strip()
        and (skill.strip().lower() in requested or skill.strip().lower() in goals)
    ]
    if not matched:
        return _EXCLUDED if requested else _NO_MATCH
    return CriterionResult(
        points=SKILL_POINTS * len(matched),
        reason=f"Skills: {', '.join(matched)}",
    )


def tier_preference(requirements: Requirements, candidate: Candidate) -> CriterionResult:
    if requirements.tier and requirements.tier in candidate.preferred_tiers:
        return CriterionResult(points=TIER_POINTS, reason=f"Prefers {requirements.tier}")
    return _NO_MATCH


def budget_fit(requirements: Requirements, candidate: Candidate) -> CriterionResult:
    if candidate.day_rate is None or requirements.budget is None:
        return _NO_MATCH
    if candidate.day_rate <= requirements.budget:
        return CriterionResult(points=BUDGET_POINTS, reason="Within budget")
    return _NO_MATCH


def availability(requirements: Requirements, candidate: Candidate) -> CriterionResult:
    status = (candidate.availability or "").lower()
    if status == "available":
        return CriterionResult(points=AVAILABLE_POINTS, reason="Available")
    if status == "busy":
        return CriterionResult(points=BUSY_POINTS, reason="Busy")
    return _EXCLUDED


def workload(requirements: Requirements, candidate: Candidate) -> CriterionResult:
    if candidate.at_capacity is not None:
        full = candidate.at_capacity
    else:
        capacity = candidate.max_concurrent or DEFAULT_MAX_CONCURRENT
        full = candidate.current_load >= capacity
    if full:
        return _EXCLUDED
    return CriterionResult(points=CAPACITY_POINTS, reason="Has capacity")


def service_match(requirements: Requirements, candidate: Candidate) -> CriterionResult:
    if requirements.service_id and requirements.service_id in candidate.services:
        return CriterionResult(points=SERVICE_POINTS, reason="Service match")
    return _EXCLUDED


def location_match(requirements: Requirements, candidate: Candidate) -> CriterionResult:
    """Project state, upper-cased, must equal a stored coverage state exactly."""
    state = (requirements.state or "").strip().upper()
    if state and state in candidate.coverage_states:
        return CriterionResult(points=LOCATION_POINTS, reason="Location match")
    return _EXCLUDED


CREATOR_CRITERIA: tuple[Criterion, ...] = (
    skill_overlap,
    tier_preference,
    budget_fit,
    availability,
    workload,
)

VENDOR_CRITERIA: tuple[Criterion, ...] = (service_match, location_match)


def score(
    requirements: Requirements,
    candidate: Candidate,
    position: int,
    criteria: Sequence[Criterion] = CREATOR_CRITERIA,
) -> MatchScore | None:
    """Score one candidate, or return None when a hard constraint excludes it."""
    total = 0
    reasons: list[str] = []
    for criterion in criteria:
        result = criterion(requirements, candidate)
        if result.excluded:
            return None
        total += result.points
        if result.reason:
            reasons.append(result.reason)
    return MatchScore(
        candidate_id=candidate.id,
        score=total,
        tie_break=position,
        reasons=tuple(reasons),
    )


def rank(
    requirements: Requirements,
    candidates: Iterable[Candidate],
    limit: int | None = DEFAULT_MATCH_LIMIT,
    criteria: Sequence[Criterion] = CREATOR_CRITERIA,
) -> list[RankedCandidate]:
    """Rank ``candidates`` best-first, dropping excluded and zero scores.

    Ties keep input order. ``limit=None`` returns every surviving candidate.
    """
    pool = list(candidates)
    scored: list[tuple[MatchScore, Candidate]] = []
    for position, candidate in enumerate(pool):
        match = score(requirements, candidate, position, criteria)
        if match is not None and match.score > 0:
            scored.append((match, candidate))

    scored.sort(key=lambda item: (-item[0].score, item[0].tie_break))
    if limit is not None:
        scored = scored[: max(limit, 0)]
    return [
        RankedCandidate(candidate=candidate, score=match.score, reasons=match.reasons)
        for match, candidate in scored
    ]


def route_vendors(
    requirements: Requirements,
    vendors: Iterable[Candidate],
    limit: int | None = None,
) -> list[RankedCandidate]:
    """Vendors offering the project's service in the project's state."""
    return rank(requirements, vendors, limit=limit, criteria=VENDOR_CRITERIA)
