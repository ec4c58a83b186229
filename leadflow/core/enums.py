"""Canonical enum values for leads, contacts, rules and budgets."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ORG_ADMIN = "org_admin"
    BRANCH_MANAGER = "branch_manager"
    SALES_AGENT = "sales_agent"


class LeadStatus(str, enum.Enum):
    """Lead pipeline status; `ARCHIVED` is absorbing."""

    NEW = "new"
    ASSIGNED = "assigned"
    CONTACTED = "contacted"
    FOLLOWED = "followed"
    INTERESTED = "interested"
    RESERVED = "reserved"
    LIQUIDATED = "liquidated"
    EFFECTIVE_RESERVATION = "effective_reservation"
    ARCHIVED = "archived"


# Entering any of these with an assignee present materializes a Contact.
CONTACT_QUALIFYING_STATUSES = frozenset(
    {
        LeadStatus.CONTACTED,
        LeadStatus.FOLLOWED,
        LeadStatus.INTERESTED,
        LeadStatus.RESERVED,
        LeadStatus.LIQUIDATED,
        LeadStatus.EFFECTIVE_RESERVATION,
    }
)


class RuleType(str, enum.Enum):
    CAMPAIGN = "campaign"
    PROVINCE = "province"


class HistoryEntity(str, enum.Enum):
    LEAD = "lead"
    CONTACT = "contact"


class HistoryAction(str, enum.Enum):
    LEAD_CREATED = "lead_created"
    LEAD_UPDATED = "lead_updated"
    LEAD_IMPORTED = "lead_imported"
    STATUS_CHANGE = "status_change"
    ASSIGNMENT_CHANGE = "assignment_change"
    CONVERTED_TO_CONTACT = "converted_to_contact"
    LEAD_ARCHIVED = "lead_archived"
    CONTACT_CREATED = "contact_created"
    CONTACT_UPDATED = "contact_updated"
    CONTACT_CREATED_FROM_LEAD = "contact_created_from_lead"


class BudgetStatus(str, enum.Enum):
    NOT_SENT = "not_sent"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"


BUDGET_STATUS_LABELS = {
    BudgetStatus.NOT_SENT: "No enviado",
    BudgetStatus.SENT: "Enviado",
    BudgetStatus.APPROVED: "Aprobado",
    BudgetStatus.REJECTED: "Rechazado",
}


STATUS_LABELS = {
    LeadStatus.NEW: "Nuevo",
    LeadStatus.ASSIGNED: "Asignado",
    LeadStatus.CONTACTED: "Contactado",
    LeadStatus.FOLLOWED: "Seguido",
    LeadStatus.INTERESTED: "Interesado",
    LeadStatus.RESERVED: "Reservado",
    LeadStatus.LIQUIDATED: "Liquidado",
    LeadStatus.EFFECTIVE_RESERVATION: "Reserva Efectiva",
    LeadStatus.ARCHIVED: "Archivado",
}
