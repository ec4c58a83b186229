from __future__ import annotations

import pytest

from leadflow.core.enums import HistoryEntity, LeadStatus
from leadflow.core.exceptions import ValidationError
from leadflow.models import Contact
from leadflow.services.contact_converter import ContactConverter
from leadflow.services.lead_service import LeadService


def _assigned_lead(session, tenant, lead_payload):
    service = LeadService(db=session)
    return service.create_lead(
        lead_payload(province="Córdoba", assigned_to=tenant.users.agent_a.id),
        tenant.ctx.manager,
    )


def test_convert_copies_lead_fields_and_lineage(session, tenant, lead_payload):
    lead = _assigned_lead(session, tenant, lead_payload)
    converter = ContactConverter(session)

    lead.status = LeadStatus.INTERESTED
    contact, created = converter.convert(lead, "interested")
    session.commit()

    assert created is True
    assert contact.full_name == lead.full_name
    assert contact.phone == lead.phone
    assert contact.email is None
    assert contact.city == "Córdoba"
    assert contact.province == "Córdoba"
    assert contact.tag == "interested"
    assert contact.assigned_to == tenant.users.agent_a.id
    assert contact.original_lead_id == lead.id
    assert contact.original_lead_status == "interested"
    assert contact.original_lead_inquiry_number == lead.inquiry_number
    assert contact.organization_id == lead.organization_id
    assert contact.branch_id == lead.branch_id


def test_convert_is_idempotent(session, tenant, lead_payload):
    lead = _assigned_lead(session, tenant, lead_payload)
    converter = ContactConverter(session)

    lead.status = LeadStatus.CONTACTED
    first, created_first = converter.convert(lead, "contacted")
    session.commit()
    lead.status = LeadStatus.RESERVED
    second, created_second = converter.convert(lead, "reserved")
    session.commit()

    assert created_first is True
    assert created_second is False
    assert first.id == second.id
    assert session.query(Contact).filter(Contact.original_lead_id == lead.id).count() == 1


def test_convert_requires_assignee(session, tenant, lead_payload):
    lead = LeadService(db=session).create_lead(lead_payload(), tenant.ctx.manager)
    assert lead.assigned_to is None

    with pytest.raises(ValidationError):
        ContactConverter(session).convert(lead, "interested")


def test_concurrent_insert_is_resolved_by_rereading_winner(session, tenant, lead_payload, monkeypatch):
    lead = _assigned_lead(session, tenant, lead_payload)
    winner = Contact(
        full_name=lead.full_name,
        phone=lead.phone,
        organization_id=lead.organization_id,
        branch_id=lead.branch_id,
        tag="assigned",
        original_lead_id=lead.id,
    )
    session.add(winner)
    session.commit()

    converter = ContactConverter(session)
    real_find = converter.find_existing
    calls = []

    def _stale_then_real(lead_id):
        calls.append(lead_id)
        return None if len(calls) == 1 else real_find(lead_id)

    monkeypatch.setattr(converter, "find_existing", _stale_then_real)

    lead.status = LeadStatus.INTERESTED
    contact, created = converter.convert(lead, "interested")
    session.commit()

    assert created is False
    assert contact.id == winner.id
    assert session.query(Contact).filter(Contact.original_lead_id == lead.id).count() == 1


def test_record_lineage_writes_contact_history(session, tenant, lead_payload):
    lead = _assigned_lead(session, tenant, lead_payload)
    converter = ContactConverter(session)
    lead.status = LeadStatus.FOLLOWED
    contact, _ = converter.convert(lead, "followed")
    session.commit()

    converter.record_lineage(contact, lead, tenant.users.manager.id)

    entries = converter.history.list_for(contact.id, HistoryEntity.CONTACT)
    assert [entry.action for entry in entries] == ["contact_created_from_lead"]
    assert lead.inquiry_number in entries[0].description
