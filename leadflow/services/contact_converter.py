"""Materializes a Contact from a Lead, at most once per lead."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from leadflow.core.enums import HistoryAction, HistoryEntity
from leadflow.core.exceptions import ValidationError
from leadflow.models import Contact, Lead
from leadflow.services.history_recorder import HistoryRecorder

logger = logging.getLogger(__name__)


class ContactConverter:
    """Creates lineage-tracked contacts inside the caller's transaction.

    The caller owns the commit so the lead update and the contact insert land
    together. Uniqueness of `contacts.original_lead_id` makes the guard atomic:
    a concurrent insert that wins the race is re-read instead of duplicated.
    """

    def __init__(self, db: Session, history: HistoryRecorder | None = None) -> None:
        self.db = db
        self.history = history or HistoryRecorder(db)

    def find_existing(self, lead_id: int) -> Contact | None:
        return self.db.query(Contact).filter(Contact.original_lead_id == lead_id).first()

    def convert(self, lead: Lead, qualifying_status: str) -> tuple[Contact, bool]:
        """Return `(contact, created)` for `lead`."""
        if lead.assigned_to is None:
            raise ValidationError("El lead debe tener un agente asignado para convertirse en contacto.")

        existing = self.find_existing(lead.id)
        if existing is not None:
            return existing, False

        contact = Contact(
            full_name=lead.full_name,
            phone=lead.phone,
            email=None,
            city=lead.province,
            province=lead.province,
            tag=qualifying_status,
            assigned_to=lead.assigned_to,
            organization_id=lead.organization_id,
            branch_id=lead.branch_id,
            origin=lead.origin,
            pax_count=lead.pax_count,
            estimated_travel_date=lead.estimated_travel_date,
            original_lead_id=lead.id,
            original_lead_status=qualifying_status,
            original_lead_inquiry_number=lead.inquiry_number,
        )
        # Flush pending lead changes first so the savepoint nests in an open transaction.
        self.db.flush()
        try:
            with self.db.begin_nested():
                self.db.add(contact)
        except IntegrityError:
            winner = self.find_existing(lead.id)
            if winner is None:
                raise
            logger.info(
                "contact.conversion_race_resolved",
                extra={"event": "contact.conversion_race_resolved", "lead_id": lead.id, "contact_id": winner.id},
            )
            return winner, False
        return contact, True

    def record_lineage(self, contact: Contact, lead: Lead, acting_user_id: int | None) -> None:
        """Append the contact-side history entry once the conversion is committed."""
        self.history.record(
            contact.id,
            HistoryEntity.CONTACT,
            HistoryAction.CONTACT_CREATED_FROM_LEAD,
            f"Contacto creado desde el lead {lead.inquiry_number} con estado {contact.original_lead_status}",
            acting_user_id,
        )
