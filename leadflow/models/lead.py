"""Lead model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leadflow.core.enums import LeadStatus
from leadflow.models.base import AuditMixin, Base, TenantScopedMixin, value_enum


class Lead(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "leads"
    __table_args__ = (
        Index("idx_leads_org_branch_status", "organization_id", "branch_id", "status"),
        Index("idx_leads_assigned_to", "assigned_to"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inquiry_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320))
    origin: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    province: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    pax_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    estimated_travel_date: Mapped[str | None] = mapped_column(String(120))
    status: Mapped[LeadStatus] = mapped_column(value_enum(LeadStatus), default=LeadStatus.NEW, nullable=False)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    converted_to_contact: Mapped[bool | None] = mapped_column(Boolean, default=False)
    archived_reason: Mapped[str | None] = mapped_column(Text)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
