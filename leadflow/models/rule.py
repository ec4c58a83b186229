"""Assignment rule model module."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from leadflow.core.enums import RuleType
from leadflow.models.base import AuditMixin, Base, value_enum


class Rule(Base, AuditMixin):
    __tablename__ = "rules"
    __table_args__ = (Index("idx_rules_org_active", "organization_id", "is_active"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[RuleType] = mapped_column(value_enum(RuleType, length=20), nullable=False)
    condition: Mapped[str] = mapped_column(String(255), nullable=False)
    assigned_users: Mapped[list[int]] = mapped_column(JSON, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
