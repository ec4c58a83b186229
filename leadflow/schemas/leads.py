"""Lead request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from leadflow.core.enums import LeadStatus


class LeadCreateRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=40)
    email: str | None = Field(default=None, max_length=320)
    origin: str | None = Field(default=None, max_length=255)
    province: str | None = Field(default=None, max_length=120)
    pax_count: int = Field(default=1, ge=1)
    estimated_travel_date: str | None = Field(default=None, max_length=120)
    assigned_to: int | None = None
    organization_id: int | None = None
    branch_id: int | None = None


class LeadUpdateRequest(BaseModel):
    """Partial update; only fields sent by the client are applied."""

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, min_length=1, max_length=40)
    email: str | None = Field(default=None, max_length=320)
    origin: str | None = Field(default=None, max_length=255)
    province: str | None = Field(default=None, max_length=120)
    pax_count: int | None = Field(default=None, ge=1)
    estimated_travel_date: str | None = Field(default=None, max_length=120)
    assigned_to: int | None = None
    status: LeadStatus | None = None


class LeadStatusUpdateRequest(BaseModel):
    status: LeadStatus


class LeadAssignmentRequest(BaseModel):
    assigned_to: int | None = None


class LeadArchiveRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class LeadFilterParams(BaseModel):
    status: LeadStatus | None = None
    assigned_to: int | None = None
    name: str | None = None
    phone: str | None = None
    origin: str | None = None
    pax: str | None = None
    search: str | None = None
    include_converted: bool = False
    include_archived: bool = False


class BulkAssignRequest(BaseModel):
    lead_ids: list[int] | Literal["all_filtered"]
    assigned_to: int | None = None
    filters: LeadFilterParams | None = None


class BulkAssignResponse(BaseModel):
    succeeded: int
    failed: int
    failed_ids: list[int] = Field(default_factory=list)


class LeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    inquiry_number: str
    full_name: str
    phone: str
    email: str | None = None
    origin: str = ""
    province: str = ""
    pax_count: int = 1
    estimated_travel_date: str | None = None
    status: LeadStatus
    assigned_to: int | None = None
    converted_to_contact: bool | None = False
    archived_reason: str | None = None
    archived_at: datetime | None = None
    organization_id: int
    branch_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StatusChangeResponse(BaseModel):
    lead: LeadResponse
    previous_status: LeadStatus
    contact_created: bool
    contact_id: int | None = None
    notice: str | None = None


class AssignmentResponse(BaseModel):
    lead: LeadResponse
    previous_assignee: int | None = None
    new_assignee: int | None = None
    changed: bool
    contact_created: bool = False
    contact_id: int | None = None


class LeadImportResponse(BaseModel):
    created: int
    auto_assigned: int
    lead_ids: list[int] = Field(default_factory=list)
