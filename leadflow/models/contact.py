"""Contact model module."""

from __future__ import annotations

from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from leadflow.models.base import AuditMixin, Base, TenantScopedMixin


class Contact(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "contacts"
    __table_args__ = (
        # One contact per originating lead; NULLs (direct contacts) are not constrained.
        UniqueConstraint("original_lead_id", name="uq_contacts_original_lead_id"),
        Index("idx_contacts_org_branch", "organization_id", "branch_id"),
        Index("idx_contacts_assigned_to", "assigned_to"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320))
    city: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    province: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    tag: Mapped[str] = mapped_column(String(60), default="", nullable=False)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    origin: Mapped[str | None] = mapped_column(String(255))
    pax_count: Mapped[int | None] = mapped_column(Integer)
    estimated_travel_date: Mapped[str | None] = mapped_column(String(120))
    destination_of_interest: Mapped[str | None] = mapped_column(String(255))
    estimated_budget: Mapped[float | None] = mapped_column(Float)
    additional_notes: Mapped[str | None] = mapped_column(Text)

    # Lineage: weak back-reference to the lead this contact was derived from.
    original_lead_id: Mapped[int | None] = mapped_column(Integer)
    original_lead_status: Mapped[str | None] = mapped_column(String(40))
    original_lead_inquiry_number: Mapped[str | None] = mapped_column(String(40))
