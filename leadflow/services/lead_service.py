"""Lead lifecycle operations: intake, edits, status changes, archive and delete."""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leadflow.auth.tenant_context import TenantContext
from leadflow.core.config import get_config
from leadflow.core.enums import HistoryAction, HistoryEntity, LeadStatus, UserRole
from leadflow.core.exceptions import AuthorizationError, ServiceError, ValidationError
from leadflow.models import Budget, Contact, Lead, LeadHistory, Rule
from leadflow.models.base import utcnow
from leadflow.orchestration.state_machine import plan_status_change
from leadflow.services.assignment_service import AssignmentOutcome, AssignmentService, BulkAssignResult
from leadflow.services.base_service import BaseService
from leadflow.services.contact_converter import ContactConverter
from leadflow.services.history_recorder import HistoryRecorder
from leadflow.services.queries import (
    LeadFilters,
    assignable_user_ids,
    get_assignable_user,
    get_visible_lead,
    query_active_rules,
    query_visible_leads,
    resolve_scope,
    user_label,
)
from leadflow.services.rule_matcher import select_assignee
from leadflow.utils.ids import new_inquiry_number
from leadflow.utils.validators import (
    format_phone_number,
    is_valid_email,
    is_valid_phone,
    optional_text,
    sanitize_text,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("full_name", "phone", "email", "origin", "province", "pax_count", "estimated_travel_date")
DELETE_FORBIDDEN_MESSAGE = "Solo un Super Admin puede eliminar leads"
AUTO_ASSIGN_PREFIX = "Asignación automática por regla"

# (digits, attempts): widen the random suffix when the short form keeps colliding.
INQUIRY_NUMBER_ATTEMPTS = ((3, 5), (5, 5))


@dataclass
class StatusChangeOutcome:
    lead: Lead
    previous_status: LeadStatus
    status: LeadStatus
    contact: Contact | None = None
    contact_created: bool = False
    notice: str | None = None


def parse_pax_count(value: Any) -> int:
    """Passenger count from an int or free text such as `"4 adultos"`; blank means 1."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1
    if isinstance(value, bool):
        raise ValidationError("Cantidad de pasajeros inválida.")
    if isinstance(value, int):
        count = value
    else:
        match = re.search(r"\d+", str(value))
        if match is None:
            raise ValidationError("Cantidad de pasajeros inválida.")
        count = int(match.group())
    if count < 1:
        raise ValidationError("La cantidad de pasajeros debe ser al menos 1.")
    return count


def clean_lead_fields(data: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    """Validate and normalize descriptive lead fields.

    With `partial=True` only keys present in `data` are returned; otherwise
    required fields must be present and defaults are filled in.
    """
    cleaned: dict[str, Any] = {}

    if not partial or "full_name" in data:
        full_name = sanitize_text(data.get("full_name"), max_len=255)
        if not full_name:
            raise ValidationError("El nombre es requerido.")
        cleaned["full_name"] = full_name

    if not partial or "phone" in data:
        phone = sanitize_text(data.get("phone"), max_len=40)
        if not phone:
            raise ValidationError("El teléfono es requerido.")
        if not is_valid_phone(phone):
            raise ValidationError("El teléfono debe tener al menos 8 dígitos.")
        cleaned["phone"] = format_phone_number(phone)

    if not partial or "email" in data:
        email = optional_text(data.get("email"), max_len=320)
        if email is not None and not is_valid_email(email):
            raise ValidationError("Email inválido.")
        cleaned["email"] = email

    for key, max_len in (("origin", 255), ("province", 120)):
        if not partial or key in data:
            cleaned[key] = sanitize_text(data.get(key), max_len=max_len)

    if not partial or "pax_count" in data:
        cleaned["pax_count"] = parse_pax_count(data.get("pax_count"))

    if not partial or "estimated_travel_date" in data:
        cleaned["estimated_travel_date"] = optional_text(data.get("estimated_travel_date"), max_len=120)

    return cleaned


class LeadService(BaseService):
    """Lead operations scoped by the caller's tenant context."""

    def __init__(
        self,
        db: Session | None = None,
        history: HistoryRecorder | None = None,
        converter: ContactConverter | None = None,
        assignments: AssignmentService | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(db, history)
        self.converter = converter or ContactConverter(self.db, self.history)
        self.assignments = assignments or AssignmentService(self.db, self.history, self.converter)
        self.rng = rng
        self.config = get_config()

    def next_inquiry_number(self, reserved: set[str] | None = None) -> str:
        reserved = reserved if reserved is not None else set()
        for digits, attempts in INQUIRY_NUMBER_ATTEMPTS:
            for _ in range(attempts):
                candidate = new_inquiry_number(self.config.INQUIRY_PREFIX, rng=self.rng, digits=digits)
                if candidate in reserved:
                    continue
                if self.db.query(Lead.id).filter(Lead.inquiry_number == candidate).first() is None:
                    reserved.add(candidate)
                    return candidate
        raise ServiceError("No se pudo generar un número de consulta único.")

    def match_assignee(self, lead: Lead, rules: Sequence[Rule] | None = None) -> int | None:
        """Run the rule matcher for `lead` over the active users of its organization."""
        if not self.config.AUTO_ASSIGN_ENABLED:
            return None
        if rules is None:
            rules = query_active_rules(self.db, lead.organization_id).all()
        eligible = assignable_user_ids(self.db, lead.organization_id)
        return select_assignee(lead, rules, rng=self.rng, eligible=eligible)

    def prepare_lead(
        self,
        data: Mapping[str, Any],
        context: TenantContext,
        rules: Sequence[Rule] | None = None,
        reserved_numbers: set[str] | None = None,
    ) -> tuple[Lead, bool]:
        """Build a validated, unsaved lead. Returns `(lead, auto_assigned)`."""
        fields = clean_lead_fields(data)
        organization_id, branch_id = resolve_scope(self.db, data, context, "El lead", "leads")
        lead = Lead(organization_id=organization_id, branch_id=branch_id, **fields)

        auto_assigned = False
        explicit = data.get("assigned_to")
        if explicit is not None:
            lead.assigned_to = get_assignable_user(self.db, int(explicit), organization_id).id
        else:
            matched = self.match_assignee(lead, rules)
            if matched is not None:
                lead.assigned_to = matched
                auto_assigned = True

        lead.status = LeadStatus.ASSIGNED if lead.assigned_to is not None else LeadStatus.NEW
        lead.converted_to_contact = False
        lead.inquiry_number = self.next_inquiry_number(reserved_numbers)
        return lead, auto_assigned

    def create_lead(self, data: Mapping[str, Any], context: TenantContext) -> Lead:
        lead, auto_assigned = self.prepare_lead(data, context)
        self.db.add(lead)
        try:
            self.commit()
        except SQLAlchemyError:
            logger.exception("lead.create_failed", extra={"event": "lead.create_failed", "user_id": context.user_id})
            raise
        self.db.refresh(lead)

        entries = [
            (lead.id, HistoryEntity.LEAD, HistoryAction.LEAD_CREATED,
             f"Lead creado: {lead.full_name} ({lead.inquiry_number})", context.user_id),
        ]
        if auto_assigned:
            entries.append(
                (lead.id, HistoryEntity.LEAD, HistoryAction.ASSIGNMENT_CHANGE,
                 f"{AUTO_ASSIGN_PREFIX}: {user_label(self.db, None)} -> {user_label(self.db, lead.assigned_to)}",
                 context.user_id)
            )
        self.history.record_many(entries)
        self.log_event(
            logger,
            "lead.created",
            context,
            lead_id=lead.id,
            inquiry_number=lead.inquiry_number,
            auto_assigned=auto_assigned,
        )
        return lead

    def get_lead(self, lead_id: int, context: TenantContext) -> Lead:
        return get_visible_lead(self.db, lead_id, context)

    def list_leads(self, context: TenantContext, filters: LeadFilters | None = None) -> list[Lead]:
        return query_visible_leads(self.db, context, filters).all()

    def get_lead_history(self, lead_id: int, context: TenantContext) -> list[LeadHistory]:
        lead = get_visible_lead(self.db, lead_id, context)
        return self.history.list_for(lead.id, HistoryEntity.LEAD)

    def update_lead(self, lead_id: int, data: Mapping[str, Any], context: TenantContext) -> Lead:
        """Partial update; `assigned_to` and `status` keys go through the coordinator and state machine."""
        lead = get_visible_lead(self.db, lead_id, context)

        fields = clean_lead_fields({key: data[key] for key in EDITABLE_FIELDS if key in data}, partial=True)
        self._check_transitions(lead, data)
        changed = [key for key, value in fields.items() if getattr(lead, key) != value]
        for key in changed:
            setattr(lead, key, fields[key])
        if changed:
            self.commit()
            self.db.refresh(lead)
            self.history.record(
                lead.id,
                HistoryEntity.LEAD,
                HistoryAction.LEAD_UPDATED,
                f"Campos actualizados: {', '.join(changed)}",
                context.user_id,
            )

        if "assigned_to" in data:
            self.assignments.apply_assignment(lead, data["assigned_to"], context)
        elif lead.assigned_to is None and LeadStatus(lead.status) is not LeadStatus.ARCHIVED:
            matched = self.match_assignee(lead)
            if matched is not None:
                self.assignments.apply_assignment(lead, matched, context, description_prefix=AUTO_ASSIGN_PREFIX)

        if data.get("status") is not None:
            self._apply_status(lead, data["status"], context)

        self.log_event(logger, "lead.updated", context, lead_id=lead.id, fields=changed)
        return lead

    def _check_transitions(self, lead: Lead, data: Mapping[str, Any]) -> None:
        """Raise for an assignment or status change that would fail, before any field is written."""
        status, assignee = lead.status, lead.assigned_to
        if "assigned_to" in data:
            plan = self.assignments.plan_assignment(lead, data["assigned_to"])
            if plan is not None:
                status, assignee = plan.status, data["assigned_to"]
        if data.get("status") is not None:
            plan_status_change(status, data["status"], assignee)

    def update_lead_status(self, lead_id: int, status: LeadStatus | str, context: TenantContext) -> StatusChangeOutcome:
        lead = get_visible_lead(self.db, lead_id, context)
        return self._apply_status(lead, status, context)

    def update_lead_assignment(self, lead_id: int, user_id: int | None, context: TenantContext) -> AssignmentOutcome:
        return self.assignments.reassign(lead_id, user_id, context)

    def bulk_assign(
        self,
        selection: Sequence[int] | str,
        user_id: int | None,
        context: TenantContext,
        filters: LeadFilters | None = None,
    ) -> BulkAssignResult:
        return self.assignments.bulk_assign(selection, user_id, context, filters)

    def archive_lead(self, lead_id: int, reason: str | None, context: TenantContext) -> Lead:
        lead = get_visible_lead(self.db, lead_id, context)
        return self._apply_status(lead, LeadStatus.ARCHIVED, context, reason=reason).lead

    def delete_lead(self, lead_id: int, context: TenantContext) -> None:
        if context.role != UserRole.SUPER_ADMIN.value:
            raise AuthorizationError(DELETE_FORBIDDEN_MESSAGE)

        lead = get_visible_lead(self.db, lead_id, context)
        inquiry_number = lead.inquiry_number
        self.db.query(LeadHistory).filter(LeadHistory.lead_id == lead.id).delete(synchronize_session=False)
        self.db.query(Budget).filter(Budget.lead_id == lead.id).update(
            {Budget.lead_id: None}, synchronize_session=False
        )
        self.db.delete(lead)
        try:
            self.commit()
        except SQLAlchemyError:
            logger.exception("lead.delete_failed", extra={"event": "lead.delete_failed", "lead_id": lead_id})
            raise
        self.log_event(
            logger,
            "lead.deleted",
            context,
            level=logging.WARNING,
            lead_id=lead_id,
            inquiry_number=inquiry_number,
        )

    def _apply_status(
        self,
        lead: Lead,
        target: LeadStatus | str,
        context: TenantContext,
        reason: str | None = None,
    ) -> StatusChangeOutcome:
        previous = LeadStatus(lead.status)
        plan = plan_status_change(previous, target, lead.assigned_to)

        lead.status = plan.status
        if plan.converted_to_contact is not None:
            lead.converted_to_contact = plan.converted_to_contact
        description = plan.description
        if plan.archive:
            lead.archived_at = utcnow()
            lead.archived_reason = optional_text(reason, max_len=2000)
            if lead.archived_reason:
                description = f"{plan.description}: {lead.archived_reason}"

        contact: Contact | None = None
        created = False
        try:
            if plan.convert:
                contact, created = self.converter.convert(lead, plan.contact_tag)
            self.commit()
        except SQLAlchemyError:
            self.rollback()
            logger.exception(
                "lead.status_change_failed",
                extra={"event": "lead.status_change_failed", "lead_id": lead.id, "user_id": context.user_id},
            )
            raise
        self.db.refresh(lead)

        self.history.record(lead.id, HistoryEntity.LEAD, plan.history_action, description, context.user_id)
        if created:
            self.converter.record_lineage(contact, lead, context.user_id)

        self.log_event(
            logger,
            "lead.status_changed",
            context,
            lead_id=lead.id,
            previous_status=previous.value,
            status=plan.status.value,
            contact_created=created,
        )
        return StatusChangeOutcome(
            lead=lead,
            previous_status=previous,
            status=plan.status,
            contact=contact,
            contact_created=created,
            notice=plan.notice,
        )
