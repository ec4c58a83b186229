"""Budget (quote) model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from leadflow.core.enums import BudgetStatus
from leadflow.models.base import AuditMixin, Base, TenantScopedMixin, utcnow, value_enum


class Budget(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "budgets"
    __table_args__ = (
        CheckConstraint("NOT (contact_id IS NOT NULL AND lead_id IS NOT NULL)", name="ck_budgets_single_owner"),
        Index("idx_budgets_org_branch_status", "organization_id", "branch_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    amount: Mapped[float | None] = mapped_column(Float)
    status: Mapped[BudgetStatus] = mapped_column(
        value_enum(BudgetStatus, length=20), default=BudgetStatus.NOT_SENT, nullable=False
    )
    contact_id: Mapped[int | None] = mapped_column(ForeignKey("contacts.id", ondelete="SET NULL"))
    lead_id: Mapped[int | None] = mapped_column(ForeignKey("leads.id", ondelete="SET NULL"))
    template_id: Mapped[int | None] = mapped_column(Integer)
    slug: Mapped[str] = mapped_column(String(80), unique=True, nullable=False)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))


class BudgetVersion(Base):
    """Snapshot of a budget's content after each change; version numbers start at 1 per budget."""

    __tablename__ = "budget_history"
    __table_args__ = (UniqueConstraint("budget_id", "version_number", name="uq_budget_history_version"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    budget_id: Mapped[int] = mapped_column(ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    amount: Mapped[float | None] = mapped_column(Float)
    status: Mapped[BudgetStatus] = mapped_column(value_enum(BudgetStatus, length=20), nullable=False)
    template_id: Mapped[int | None] = mapped_column(Integer)
    change_summary: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
