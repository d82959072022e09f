from typing import Literal

from pydantic import BaseModel, Field


Role = Literal["admin", "business", "vendor", "creator"]


class TokenData(BaseModel):
    sub: str | None = Field(
        default=None,
        description="Subject (user identifier) of the token",
    )
    role: str | None = Field(
        default=None,
        description="Marketplace role claim",
    )
    scopes: list[str] = Field(
        default_factory=list,
        description="Scopes/permissions associated with the token",
    )


class CurrentUser(BaseModel):
    """The caller, as asserted by a verified bearer token."""

    id: str = Field(..., description="User identifier from the `sub` claim")
    role: Role = Field(default="business", description="Marketplace role")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
