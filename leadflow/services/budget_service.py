"""Budgets (quotes) with unique public slugs and numbered content versions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from leadflow.auth.tenant_context import TenantContext, apply_visibility, is_visible
from leadflow.core.enums import BUDGET_STATUS_LABELS, BudgetStatus
from leadflow.core.exceptions import NotFoundError, ValidationError
from leadflow.models import Budget, BudgetVersion
from leadflow.services.base_service import BaseService
from leadflow.services.queries import get_assignable_user, get_visible_contact, get_visible_lead, resolve_scope
from leadflow.utils.slug import generate_budget_slug, generate_unique_slug
from leadflow.utils.validators import sanitize_text

logger = logging.getLogger(__name__)

SLUG_ATTEMPTS = 3
VERSIONED_FIELDS = ("title", "description", "amount", "status", "template_id")
CONTENT_FIELDS = ("title", "description", "amount", "template_id")


def _budget_status(value: Any) -> BudgetStatus:
    try:
        return BudgetStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Estado de presupuesto inválido: {value}") from exc


def clean_budget_fields(data: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    if not partial or "title" in data:
        title = sanitize_text(data.get("title"), max_len=255)
        if not title:
            raise ValidationError("El título es requerido.")
        cleaned["title"] = title
    if not partial or "description" in data:
        cleaned["description"] = sanitize_text(data.get("description"))
    if not partial or "amount" in data:
        amount = data.get("amount")
        if amount is not None:
            amount = float(amount)
            if amount < 0:
                raise ValidationError("El monto no puede ser negativo.")
        cleaned["amount"] = amount
    if not partial or "template_id" in data:
        template_id = data.get("template_id")
        cleaned["template_id"] = int(template_id) if template_id is not None else None
    return cleaned


class BudgetService(BaseService):
    def _unique_slug(self, base_slug: str) -> str:
        existing = [
            slug
            for (slug,) in self.db.query(Budget.slug).filter(
                or_(Budget.slug == base_slug, Budget.slug.like(f"{base_slug}-%"))
            )
        ]
        return generate_unique_slug(base_slug, existing)

    def _append_version(self, budget: Budget, user_id: int | None, summary: str) -> BudgetVersion:
        """Stage a snapshot of `budget` in the current unit of work."""
        latest = (
            self.db.query(func.max(BudgetVersion.version_number))
            .filter(BudgetVersion.budget_id == budget.id)
            .scalar()
        )
        version = BudgetVersion(
            budget_id=budget.id,
            version_number=(latest or 0) + 1,
            change_summary=summary[:255],
            created_by=user_id,
            **{field: getattr(budget, field) for field in VERSIONED_FIELDS},
        )
        self.db.add(version)
        return version

    def get_budget(self, budget_id: int, context: TenantContext) -> Budget:
        budget = self.db.get(Budget, budget_id)
        if budget is None or not is_visible(budget, context):
            raise NotFoundError(f"Presupuesto no encontrado: {budget_id}")
        return budget

    def get_budget_by_slug(self, slug: str) -> Budget:
        """Public lookup used by shared budget links."""
        budget = self.db.query(Budget).filter(Budget.slug == slug).first()
        if budget is None:
            raise NotFoundError(f"Presupuesto no encontrado: {slug}")
        return budget

    def list_budgets(self, context: TenantContext, status: BudgetStatus | str | None = None) -> list[Budget]:
        query = apply_visibility(self.db.query(Budget), Budget, context)
        if status is not None:
            query = query.filter(Budget.status == _budget_status(status))
        return query.order_by(Budget.created_at.desc(), Budget.id.desc()).all()

    def create_budget(self, data: Mapping[str, Any], context: TenantContext) -> Budget:
        contact_id = data.get("contact_id")
        lead_id = data.get("lead_id")
        if contact_id is not None and lead_id is not None:
            raise ValidationError("Un presupuesto no puede asociarse a un contacto y a un lead a la vez.")
        fields = clean_budget_fields(data)

        contact_name = lead_name = None
        if contact_id is not None:
            owner = get_visible_contact(self.db, int(contact_id), context)
            contact_name = owner.full_name
            organization_id, branch_id = owner.organization_id, owner.branch_id
        elif lead_id is not None:
            owner = get_visible_lead(self.db, int(lead_id), context)
            lead_name = owner.full_name
            organization_id, branch_id = owner.organization_id, owner.branch_id
        else:
            organization_id, branch_id = resolve_scope(self.db, data, context, "El presupuesto", "presupuestos")

        assigned_to = data.get("assigned_to")
        if assigned_to is not None:
            assigned_to = get_assignable_user(self.db, int(assigned_to), organization_id).id
        else:
            assigned_to = context.user_id

        base_slug = generate_budget_slug(contact_name=contact_name, lead_name=lead_name, budget_title=fields["title"])
        for attempt in range(1, SLUG_ATTEMPTS + 1):
            budget = Budget(
                organization_id=organization_id,
                branch_id=int(branch_id),
                status=BudgetStatus.NOT_SENT,
                contact_id=contact_id,
                lead_id=lead_id,
                assigned_to=assigned_to,
                slug=self._unique_slug(base_slug),
                **fields,
            )
            self.db.add(budget)
            try:
                self.db.flush()
            except IntegrityError:
                # Another writer took the same slug between lookup and insert.
                self.rollback()
                if attempt == SLUG_ATTEMPTS:
                    raise
                continue
            self._append_version(budget, context.user_id, "Versión inicial")
            self.commit()
            break

        self.db.refresh(budget)
        self.log_event(logger, "budget.created", context, budget_id=budget.id, slug=budget.slug)
        return budget

    def update_budget(self, budget_id: int, data: Mapping[str, Any], context: TenantContext) -> Budget:
        """Edit content fields; every effective change becomes a new version."""
        budget = self.get_budget(budget_id, context)
        fields = clean_budget_fields({key: data[key] for key in CONTENT_FIELDS if key in data}, partial=True)
        changed = [key for key, value in fields.items() if getattr(budget, key) != value]
        if not changed:
            return budget

        for key in changed:
            setattr(budget, key, fields[key])
        version = self._append_version(budget, context.user_id, f"Campos actualizados: {', '.join(changed)}")
        self.commit()
        self.db.refresh(budget)
        self.log_event(
            logger,
            "budget.updated",
            context,
            budget_id=budget.id,
            fields=changed,
            version_number=version.version_number,
        )
        return budget

    def update_budget_status(self, budget_id: int, status: BudgetStatus | str, context: TenantContext) -> Budget:
        budget = self.get_budget(budget_id, context)
        target = _budget_status(status)
        if budget.status is target:
            return budget

        budget.status = target
        self._append_version(budget, context.user_id, f"Estado cambiado a {BUDGET_STATUS_LABELS[target]}")
        self.commit()
        self.db.refresh(budget)
        self.log_event(logger, "budget.status_changed", context, budget_id=budget.id, status=budget.status.value)
        return budget

    def list_budget_history(self, budget_id: int, context: TenantContext) -> list[BudgetVersion]:
        """Versions of a visible budget, newest first."""
        budget = self.get_budget(budget_id, context)
        return (
            self.db.query(BudgetVersion)
            .filter(BudgetVersion.budget_id == budget.id)
            .order_by(BudgetVersion.version_number.desc())
            .all()
        )

    def restore_version(self, budget_id: int, version_number: int, context: TenantContext) -> Budget:
        """Copy a stored version's content back onto the budget, recorded as a new version."""
        budget = self.get_budget(budget_id, context)
        source = (
            self.db.query(BudgetVersion)
            .filter(BudgetVersion.budget_id == budget.id)
            .filter(BudgetVersion.version_number == version_number)
            .first()
        )
        if source is None:
            raise NotFoundError(f"Versión {version_number} no encontrada para el presupuesto {budget_id}")

        for field in VERSIONED_FIELDS:
            setattr(budget, field, getattr(source, field))
        version = self._append_version(budget, context.user_id, f"Restaurado a la versión {version_number}")
        self.commit()
        self.db.refresh(budget)
        self.log_event(
            logger,
            "budget.version_restored",
            context,
            budget_id=budget.id,
            restored_version=version_number,
            version_number=version.version_number,
        )
        return budget
