"""Contact reads and direct contact maintenance."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import or_

from leadflow.auth.tenant_context import TenantContext, apply_visibility
from leadflow.core.enums import HistoryAction, HistoryEntity, UserRole
from leadflow.core.exceptions import ValidationError
from leadflow.models import Contact, ContactHistory
from leadflow.services.base_service import BaseService
from leadflow.services.queries import get_assignable_user, get_visible_contact, resolve_scope
from leadflow.utils.validators import (
    format_phone_number,
    is_valid_email,
    is_valid_phone,
    optional_text,
    sanitize_text,
)

logger = logging.getLogger(__name__)

CONTACT_TEXT_FIELDS = {
    "full_name": 255,
    "phone": 40,
    "city": 120,
    "province": 120,
    "tag": 60,
}
CONTACT_OPTIONAL_FIELDS = {
    "email": 320,
    "origin": 255,
    "estimated_travel_date": 120,
    "destination_of_interest": 255,
    "additional_notes": 4000,
}


def clean_contact_fields(data: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, max_len in CONTACT_TEXT_FIELDS.items():
        if not partial or key in data:
            cleaned[key] = sanitize_text(data.get(key), max_len=max_len)
    for key, max_len in CONTACT_OPTIONAL_FIELDS.items():
        if not partial or key in data:
            cleaned[key] = optional_text(data.get(key), max_len=max_len)

    if "full_name" in cleaned and not cleaned["full_name"]:
        raise ValidationError("El nombre es requerido.")
    if "phone" in cleaned:
        if not is_valid_phone(cleaned["phone"]):
            raise ValidationError("El teléfono debe tener al menos 8 dígitos.")
        cleaned["phone"] = format_phone_number(cleaned["phone"])
    if cleaned.get("email") and not is_valid_email(cleaned["email"]):
        raise ValidationError("Email inválido.")

    if not partial or "pax_count" in data:
        pax_count = data.get("pax_count")
        if pax_count is not None and int(pax_count) < 1:
            raise ValidationError("La cantidad de pasajeros debe ser al menos 1.")
        cleaned["pax_count"] = pax_count
    if not partial or "estimated_budget" in data:
        budget = data.get("estimated_budget")
        if budget is not None and float(budget) < 0:
            raise ValidationError("El presupuesto estimado no puede ser negativo.")
        cleaned["estimated_budget"] = budget
    return cleaned


class ContactService(BaseService):
    def list_contacts(self, context: TenantContext, filters: Mapping[str, Any] | None = None) -> list[Contact]:
        filters = filters or {}
        query = apply_visibility(self.db.query(Contact), Contact, context)
        if filters.get("tag"):
            query = query.filter(Contact.tag == filters["tag"])
        if filters.get("assigned_to") is not None:
            query = query.filter(Contact.assigned_to == filters["assigned_to"])
        if filters.get("search"):
            term = str(filters["search"]).strip()
            query = query.filter(or_(Contact.full_name.ilike(f"%{term}%"), Contact.phone.contains(term)))
        return query.order_by(Contact.created_at.desc(), Contact.id.desc()).all()

    def get_contact(self, contact_id: int, context: TenantContext) -> Contact:
        return get_visible_contact(self.db, contact_id, context)

    def create_contact(self, data: Mapping[str, Any], context: TenantContext) -> Contact:
        fields = clean_contact_fields(data)
        organization_id, branch_id = resolve_scope(self.db, data, context, "El contacto", "contactos")

        assigned_to = data.get("assigned_to")
        if assigned_to is None and context.role == UserRole.SALES_AGENT.value:
            assigned_to = context.user_id
        if assigned_to is not None:
            assigned_to = get_assignable_user(self.db, int(assigned_to), organization_id).id

        contact = Contact(organization_id=organization_id, branch_id=branch_id, assigned_to=assigned_to, **fields)
        self.db.add(contact)
        self.commit()
        self.db.refresh(contact)

        self.history.record(
            contact.id,
            HistoryEntity.CONTACT,
            HistoryAction.CONTACT_CREATED,
            f"Contacto creado: {contact.full_name}",
            context.user_id,
        )
        self.log_event(logger, "contact.created", context, contact_id=contact.id)
        return contact

    def update_contact(self, contact_id: int, data: Mapping[str, Any], context: TenantContext) -> Contact:
        contact = get_visible_contact(self.db, contact_id, context)
        fields = clean_contact_fields(data, partial=True)
        if "assigned_to" in data:
            assigned_to = data["assigned_to"]
            if assigned_to is not None:
                assigned_to = get_assignable_user(self.db, int(assigned_to), contact.organization_id).id
            fields["assigned_to"] = assigned_to

        changed = [key for key, value in fields.items() if getattr(contact, key) != value]
        if not changed:
            return contact
        for key in changed:
            setattr(contact, key, fields[key])
        self.commit()
        self.db.refresh(contact)

        self.history.record(
            contact.id,
            HistoryEntity.CONTACT,
            HistoryAction.CONTACT_UPDATED,
            f"Campos actualizados: {', '.join(changed)}",
            context.user_id,
        )
        self.log_event(logger, "contact.updated", context, contact_id=contact.id, fields=changed)
        return contact

    def get_contact_history(self, contact_id: int, context: TenantContext) -> list[ContactHistory]:
        contact = get_visible_contact(self.db, contact_id, context)
        return self.history.list_for(contact.id, HistoryEntity.CONTACT)
