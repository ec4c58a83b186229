"""Budget schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leadflow.core.enums import BudgetStatus


class BudgetCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=100000)
    amount: float | None = Field(default=None, ge=0)
    contact_id: int | None = None
    lead_id: int | None = None
    template_id: int | None = None
    assigned_to: int | None = None
    organization_id: int | None = None
    branch_id: int | None = None

    @model_validator(mode="after")
    def _single_owner(self) -> "BudgetCreateRequest":
        if self.contact_id is not None and self.lead_id is not None:
            raise ValueError("contact_id and lead_id are mutually exclusive")
        return self


class BudgetUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=100000)
    amount: float | None = Field(default=None, ge=0)
    template_id: int | None = None


class BudgetStatusUpdateRequest(BaseModel):
    status: BudgetStatus


class BudgetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    amount: float | None = None
    status: BudgetStatus
    contact_id: int | None = None
    lead_id: int | None = None
    template_id: int | None = None
    slug: str
    assigned_to: int | None = None
    organization_id: int
    branch_id: int
    created_at: datetime | None = None


class PublicBudgetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    description: str = ""
    amount: float | None = None
    status: BudgetStatus
    slug: str


class BudgetVersionResponse(BaseModel):
    """`created_by` is only disclosed to super admins."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    budget_id: int
    version_number: int
    title: str
    description: str = ""
    amount: float | None = None
    status: BudgetStatus
    template_id: int | None = None
    change_summary: str = ""
    created_by: int | None = None
    created_at: datetime | None = None
