"""Assignment rule schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from leadflow.core.enums import RuleType


class RuleCreateRequest(BaseModel):
    type: RuleType
    condition: str = Field(min_length=1, max_length=255)
    assigned_users: list[int] = Field(default_factory=list)
    is_active: bool = True
    organization_id: int | None = None


class RuleUpdateRequest(BaseModel):
    type: RuleType | None = None
    condition: str | None = Field(default=None, min_length=1, max_length=255)
    assigned_users: list[int] | None = None
    is_active: bool | None = None


class RuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    type: RuleType
    condition: str
    assigned_users: list[int]
    is_active: bool
    created_at: datetime | None = None
