"""History entry response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LeadHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    action: str
    description: str
    user_id: int | None = None
    created_at: datetime


class ContactHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contact_id: int
    action: str
    description: str
    user_id: int | None = None
    created_at: datetime
