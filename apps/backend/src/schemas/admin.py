from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DashboardMetrics(BaseModel):
    total_businesses: int = 0
    total_vendors: int = 0
    approved_vendors: int = 0
    pending_vendors: int = 0
    total_projects: int = 0
    open_projects: int = 0
    total_bids: int = 0
    match_rate: float = Field(default=0.0, description="Routed leads per project, %")
    pending_payments: int = 0
    total_pending_amount: float = 0.0


class RecentProject(BaseModel):
    id: UUID
    title: str
    status: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class DashboardStats(BaseModel):
    metrics: DashboardMetrics = Field(default_factory=DashboardMetrics)
    recent_projects: list[RecentProject] = Field(default_factory=list)


class AssignCreatorRequest(BaseModel):
    project_id: UUID
    creator_id: UUID
    role: str = Field(default="contributor", min_length=1, max_length=50)


class AssignmentResponse(BaseModel):
    id: UUID
    project_id: UUID
    creator_id: UUID
    role: str
    status: str = "active"
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RoutedVendor(BaseModel):
    vendor_id: UUID
    score: int
    reasons: list[str] = Field(default_factory=list)


class RoutingResult(BaseModel):
    project_id: UUID
    matched_vendors: int
    matched: list[RoutedVendor] = Field(default_factory=list)
