"""Contact request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ContactCreateRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=40)
    email: str | None = Field(default=None, max_length=320)
    city: str | None = Field(default=None, max_length=120)
    province: str | None = Field(default=None, max_length=120)
    tag: str | None = Field(default=None, max_length=60)
    assigned_to: int | None = None
    origin: str | None = Field(default=None, max_length=255)
    pax_count: int | None = Field(default=None, ge=1)
    estimated_travel_date: str | None = Field(default=None, max_length=120)
    destination_of_interest: str | None = Field(default=None, max_length=255)
    estimated_budget: float | None = Field(default=None, ge=0)
    additional_notes: str | None = Field(default=None, max_length=4000)
    organization_id: int | None = None
    branch_id: int | None = None


class ContactUpdateRequest(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, min_length=1, max_length=40)
    email: str | None = Field(default=None, max_length=320)
    city: str | None = Field(default=None, max_length=120)
    province: str | None = Field(default=None, max_length=120)
    tag: str | None = Field(default=None, max_length=60)
    assigned_to: int | None = None
    origin: str | None = Field(default=None, max_length=255)
    pax_count: int | None = Field(default=None, ge=1)
    estimated_travel_date: str | None = Field(default=None, max_length=120)
    destination_of_interest: str | None = Field(default=None, max_length=255)
    estimated_budget: float | None = Field(default=None, ge=0)
    additional_notes: str | None = Field(default=None, max_length=4000)


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    phone: str
    email: str | None = None
    city: str = ""
    province: str = ""
    tag: str = ""
    assigned_to: int | None = None
    origin: str | None = None
    pax_count: int | None = None
    estimated_travel_date: str | None = None
    destination_of_interest: str | None = None
    estimated_budget: float | None = None
    additional_notes: str | None = None
    original_lead_id: int | None = None
    original_lead_status: str | None = None
    original_lead_inquiry_number: str | None = None
    organization_id: int
    branch_id: int
    created_at: datetime | None = None
