"""Visibility-aware lookups and scope checks shared by the lead, contact, budget and assignment services."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from leadflow.auth.tenant_context import TenantContext, apply_visibility, is_visible
from leadflow.core.enums import LeadStatus, UserRole
from leadflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from leadflow.models import Branch, Contact, Lead, Rule, User

UNASSIGNED_LABEL = "sin asignar"
CROSS_BRANCH_ROLES = frozenset({UserRole.SUPER_ADMIN.value, UserRole.ORG_ADMIN.value})


@dataclass(frozen=True)
class LeadFilters:
    status: LeadStatus | None = None
    assigned_to: int | None = None
    name: str | None = None
    phone: str | None = None
    origin: str | None = None
    pax: str | None = None
    search: str | None = None
    include_converted: bool = False
    include_archived: bool = False


def get_visible_lead(db: Session, lead_id: int, context: TenantContext) -> Lead:
    lead = db.get(Lead, lead_id)
    # Invisible rows are reported as missing so ids do not leak across tenants.
    if lead is None or not is_visible(lead, context):
        raise NotFoundError(f"Lead no encontrado: {lead_id}")
    return lead


def get_visible_contact(db: Session, contact_id: int, context: TenantContext) -> Contact:
    contact = db.get(Contact, contact_id)
    if contact is None or not is_visible(contact, context):
        raise NotFoundError(f"Contacto no encontrado: {contact_id}")
    return contact


def get_assignable_user(db: Session, user_id: int, organization_id: int) -> User:
    """Return an active user of `organization_id` or raise ValidationError."""
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise ValidationError(f"Usuario inválido para asignación: {user_id}")
    if user.organization_id != organization_id:
        raise ValidationError("El usuario asignado no pertenece a la organización del lead.")
    return user


def resolve_scope(
    db: Session, data: Mapping[str, Any], context: TenantContext, subject: str, plural: str
) -> tuple[int, int]:
    """Organization and branch for a new row: the caller's own unless an admin picks another.

    Only super admins may name an organization; only super and organization
    admins may name a branch other than their own, and the branch must belong
    to the resolved organization.
    """
    organization_id = context.organization_id
    if context.is_super_admin and data.get("organization_id") is not None:
        organization_id = int(data["organization_id"])
    branch_id = data.get("branch_id") or context.branch_id
    if organization_id is None or branch_id is None:
        raise ValidationError(f"{subject} requiere una organización y una sucursal.")

    branch_id = int(branch_id)
    if branch_id != context.branch_id and context.role not in CROSS_BRANCH_ROLES:
        raise AuthorizationError(f"No puede crear {plural} en otra sucursal.")
    branch = db.get(Branch, branch_id)
    if branch is None or branch.organization_id != organization_id:
        raise ValidationError("La sucursal no pertenece a la organización.")
    return organization_id, branch_id


def assignable_user_ids(db: Session, organization_id: int) -> set[int]:
    """Ids of the active users of `organization_id`; the only valid auto-assignment targets."""
    return {
        user_id
        for (user_id,) in db.query(User.id)
        .filter(User.organization_id == organization_id)
        .filter(User.is_active.is_(True))
    }


def user_label(db: Session, user_id: int | None) -> str:
    if user_id is None:
        return UNASSIGNED_LABEL
    user = db.get(User, user_id)
    return user.full_name if user is not None else f"usuario #{user_id}"


def query_visible_leads(db: Session, context: TenantContext, filters: LeadFilters | None = None):
    filters = filters or LeadFilters()
    query = apply_visibility(db.query(Lead), Lead, context)

    if not filters.include_converted:
        query = query.filter(or_(Lead.converted_to_contact.is_(None), Lead.converted_to_contact.is_(False)))
    if filters.status is not None:
        query = query.filter(Lead.status == filters.status)
    elif not filters.include_archived:
        query = query.filter(Lead.status != LeadStatus.ARCHIVED)
    if filters.assigned_to is not None:
        query = query.filter(Lead.assigned_to == filters.assigned_to)
    if filters.name:
        query = query.filter(Lead.full_name.ilike(f"%{filters.name.strip()}%"))
    if filters.phone:
        query = query.filter(Lead.phone.contains(filters.phone.strip()))
    if filters.origin:
        query = query.filter(Lead.origin.ilike(f"%{filters.origin.strip()}%"))
    if filters.pax:
        query = query.filter(cast(Lead.pax_count, String).contains(filters.pax.strip()))
    if filters.search:
        term = filters.search.strip()
        query = query.filter(or_(Lead.full_name.ilike(f"%{term}%"), Lead.phone.contains(term)))

    return query.order_by(Lead.created_at.desc(), Lead.id.desc())


def query_active_rules(db: Session, organization_id: int):
    """Active rules of an organization in evaluation order (oldest first)."""
    return (
        db.query(Rule)
        .filter(Rule.organization_id == organization_id)
        .filter(Rule.is_active.is_(True))
        .order_by(Rule.created_at.asc(), Rule.id.asc())
    )
