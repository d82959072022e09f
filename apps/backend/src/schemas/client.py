from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ClientProject(BaseModel):
    id: UUID
    title: str
    description: str | None = None
    status: str
    tier: str | None = None
    budget: float | None = None
    client_id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
    next_milestone: str = "Project in progress"
    milestone_due_date: datetime | None = None
    deliverable_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class ClientProfile(BaseModel):
    id: str
    name: str = "User"
    email: str = ""


class ClientStats(BaseModel):
    active_projects: int = 0
    total_budget: float = 0.0
    budget_remaining: float = 0.0
    total_spent: float = 0.0
    budget_utilization: float = Field(default=0.0, description="Percent of budget spent")
