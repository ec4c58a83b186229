"""Single and bulk lead assignment with contact materialization."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leadflow.auth.tenant_context import TenantContext
from leadflow.core.config import get_config
from leadflow.core.enums import HistoryEntity
from leadflow.core.exceptions import LeadFlowException, ValidationError
from leadflow.models import Contact, Lead
from leadflow.orchestration.state_machine import TransitionPlan, plan_first_assign, plan_reassign, plan_unassign
from leadflow.services.base_service import BaseService
from leadflow.services.contact_converter import ContactConverter
from leadflow.services.history_recorder import HistoryRecorder
from leadflow.services.queries import (
    LeadFilters,
    get_assignable_user,
    get_visible_lead,
    query_visible_leads,
    user_label,
)

logger = logging.getLogger(__name__)

ALL_FILTERED = "all_filtered"


@dataclass
class AssignmentOutcome:
    lead: Lead
    previous_assignee: int | None
    new_assignee: int | None
    changed: bool
    contact: Contact | None = None
    contact_created: bool = False


@dataclass
class BulkAssignResult:
    succeeded: int = 0
    failed: int = 0
    failed_ids: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


class AssignmentService(BaseService):
    """Applies assignee changes through the lead state machine."""

    def __init__(
        self,
        db: Session | None = None,
        history: HistoryRecorder | None = None,
        converter: ContactConverter | None = None,
    ) -> None:
        super().__init__(db, history)
        self.converter = converter or ContactConverter(self.db, self.history)

    def reassign(self, lead_id: int, new_assignee: int | None, context: TenantContext) -> AssignmentOutcome:
        lead = get_visible_lead(self.db, lead_id, context)
        return self.apply_assignment(lead, new_assignee, context)

    def plan_assignment(self, lead: Lead, new_assignee: int | None) -> TransitionPlan | None:
        """Validate moving `lead` to `new_assignee` without touching it; None when nothing changes."""
        if lead.assigned_to == new_assignee:
            return None
        if new_assignee is None:
            return plan_unassign(lead.status)
        get_assignable_user(self.db, new_assignee, lead.organization_id)
        if lead.assigned_to is None:
            return plan_first_assign(lead.status)
        return plan_reassign(lead.status)

    def apply_assignment(
        self,
        lead: Lead,
        new_assignee: int | None,
        context: TenantContext,
        description_prefix: str = "Asignación cambiada",
    ) -> AssignmentOutcome:
        previous = lead.assigned_to
        plan = self.plan_assignment(lead, new_assignee)
        if plan is None:
            return AssignmentOutcome(lead=lead, previous_assignee=previous, new_assignee=new_assignee, changed=False)

        lead.assigned_to = new_assignee
        lead.status = plan.status
        if plan.converted_to_contact is not None:
            lead.converted_to_contact = plan.converted_to_contact

        contact: Contact | None = None
        created = False
        try:
            if plan.convert:
                contact, created = self.converter.convert(lead, plan.contact_tag)
            self.commit()
        except SQLAlchemyError:
            self.rollback()
            logger.exception(
                "lead.assignment_failed",
                extra={"event": "lead.assignment_failed", "lead_id": lead.id, "user_id": context.user_id},
            )
            raise
        self.db.refresh(lead)

        self.history.record(
            lead.id,
            HistoryEntity.LEAD,
            plan.history_action,
            f"{description_prefix}: {user_label(self.db, previous)} -> {user_label(self.db, new_assignee)}",
            context.user_id,
        )
        if created:
            self.converter.record_lineage(contact, lead, context.user_id)

        self.log_event(
            logger,
            "lead.assignment_changed",
            context,
            lead_id=lead.id,
            previous_assignee=previous,
            new_assignee=new_assignee,
            contact_created=created,
        )
        return AssignmentOutcome(
            lead=lead,
            previous_assignee=previous,
            new_assignee=new_assignee,
            changed=True,
            contact=contact,
            contact_created=created,
        )

    def resolve_selection(
        self,
        selection: Sequence[int] | str,
        context: TenantContext,
        filters: LeadFilters | None = None,
    ) -> list[int]:
        if isinstance(selection, str):
            if selection != ALL_FILTERED:
                raise ValidationError(f"Selección inválida: {selection}")
            return [lead_id for (lead_id,) in query_visible_leads(self.db, context, filters).with_entities(Lead.id)]
        return list(dict.fromkeys(int(lead_id) for lead_id in selection))

    def bulk_assign(
        self,
        selection: Sequence[int] | str,
        new_assignee: int | None,
        context: TenantContext,
        filters: LeadFilters | None = None,
    ) -> BulkAssignResult:
        """Assign every selected lead independently; failures are counted, not raised."""
        lead_ids = self.resolve_selection(selection, context, filters)
        limit = get_config().BULK_ASSIGN_MAX
        if len(lead_ids) > limit:
            raise ValidationError(f"La asignación masiva admite como máximo {limit} leads.")

        result = BulkAssignResult()
        for lead_id in lead_ids:
            try:
                self.reassign(lead_id, new_assignee, context)
            except (LeadFlowException, SQLAlchemyError) as exc:
                self.rollback()
                result.failed += 1
                result.failed_ids.append(lead_id)
                self.log_event(
                    logger,
                    "lead.bulk_assign.item_failed",
                    context,
                    level=logging.WARNING,
                    lead_id=lead_id,
                    error=str(exc),
                )
            else:
                result.succeeded += 1

        self.log_event(
            logger,
            "lead.bulk_assign.completed",
            context,
            new_assignee=new_assignee,
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result
