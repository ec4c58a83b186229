from __future__ import annotations

import random
import re
from unittest.mock import MagicMock

import pytest

from leadflow.core.enums import HistoryAction, HistoryEntity, LeadStatus, RuleType
from leadflow.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from leadflow.models import Budget, Contact, Lead, LeadHistory
from leadflow.services.lead_service import (
    DELETE_FORBIDDEN_MESSAGE,
    LeadService,
    clean_lead_fields,
    parse_pax_count,
)
from leadflow.services.queries import LeadFilters

INQUIRY_RE = re.compile(r"^INQ-\d{6}-\d{3}$")


def _service(session, seed=7):
    return LeadService(db=session, rng=random.Random(seed))


@pytest.mark.parametrize(
    "value,expected",
    [(None, 1), ("", 1), ("   ", 1), (3, 3), ("4 adultos", 4), ("pax: 2", 2)],
)
def test_parse_pax_count(value, expected):
    assert parse_pax_count(value) == expected


@pytest.mark.parametrize("value", [0, "0", "ninguno", True])
def test_parse_pax_count_rejects_invalid(value):
    with pytest.raises(ValidationError):
        parse_pax_count(value)


def test_clean_lead_fields_requires_name_and_phone():
    with pytest.raises(ValidationError, match="nombre"):
        clean_lead_fields({"full_name": " ", "phone": "3515551234"})
    with pytest.raises(ValidationError, match="teléfono"):
        clean_lead_fields({"full_name": "Ana", "phone": ""})
    with pytest.raises(ValidationError, match="8 dígitos"):
        clean_lead_fields({"full_name": "Ana", "phone": "123-45"})
    with pytest.raises(ValidationError, match="Email"):
        clean_lead_fields({"full_name": "Ana", "phone": "3515551234", "email": "no-es-email"})


def test_clean_lead_fields_partial_keeps_only_given_keys():
    cleaned = clean_lead_fields({"origin": "  Instagram  "}, partial=True)
    assert cleaned == {"origin": "Instagram"}


def test_create_lead_starts_new_with_inquiry_number(session, tenant, lead_payload):
    lead = _service(session).create_lead(lead_payload(), tenant.ctx.manager)

    assert INQUIRY_RE.match(lead.inquiry_number)
    assert lead.status is LeadStatus.NEW
    assert lead.assigned_to is None
    assert lead.converted_to_contact is False
    assert lead.organization_id == tenant.org.id
    assert lead.branch_id == tenant.cordoba.id
    assert lead.pax_count == 2

    history = LeadService(db=session).get_lead_history(lead.id, tenant.ctx.manager)
    assert [entry.action for entry in history] == [HistoryAction.LEAD_CREATED.value]


def test_create_lead_with_explicit_assignee_is_assigned_without_contact(session, tenant, lead_payload):
    lead = _service(session).create_lead(
        lead_payload(assigned_to=tenant.users.agent_a.id), tenant.ctx.manager
    )

    assert lead.status is LeadStatus.ASSIGNED
    assert lead.assigned_to == tenant.users.agent_a.id
    assert session.query(Contact).count() == 0


def test_create_lead_auto_assigns_by_province_rule(session, tenant, lead_payload, make_rule):
    make_rule(tenant.org.id, RuleType.PROVINCE, "córdoba", [tenant.users.agent_b.id])

    lead = _service(session).create_lead(lead_payload(province="Córdoba"), tenant.ctx.manager)

    assert lead.assigned_to == tenant.users.agent_b.id
    assert lead.status is LeadStatus.ASSIGNED
    actions = [entry.action for entry in LeadService(db=session).get_lead_history(lead.id, tenant.ctx.manager)]
    assert HistoryAction.ASSIGNMENT_CHANGE.value in actions
    assert HistoryAction.LEAD_CREATED.value in actions


def test_create_lead_skips_inactive_rule_candidate(session, tenant, lead_payload, make_rule):
    make_rule(tenant.org.id, RuleType.CAMPAIGN, "feria", [tenant.users.inactive.id])

    lead = _service(session).create_lead(lead_payload(), tenant.ctx.manager)

    assert lead.assigned_to is None
    assert lead.status is LeadStatus.NEW


def test_create_lead_draws_only_active_rule_candidates(session, tenant, lead_payload, make_rule):
    make_rule(tenant.org.id, RuleType.PROVINCE, "Córdoba", [tenant.users.inactive.id, tenant.users.agent_a.id])
    service = _service(session, seed=3)

    leads = [service.create_lead(lead_payload(province="córdoba"), tenant.ctx.manager) for _ in range(20)]

    assert {lead.assigned_to for lead in leads} == {tenant.users.agent_a.id}
    assert all(lead.status is LeadStatus.ASSIGNED for lead in leads)


def test_create_lead_continues_past_rule_with_only_inactive_candidates(session, tenant, lead_payload, make_rule):
    make_rule(tenant.org.id, RuleType.PROVINCE, "Córdoba", [tenant.users.inactive.id])
    make_rule(tenant.org.id, RuleType.CAMPAIGN, "feria", [tenant.users.agent_b.id])

    lead = _service(session).create_lead(lead_payload(province="Córdoba"), tenant.ctx.manager)

    assert lead.assigned_to == tenant.users.agent_b.id


def test_create_lead_rejects_foreign_assignee(session, tenant, lead_payload):
    with pytest.raises(ValidationError):
        _service(session).create_lead(lead_payload(assigned_to=tenant.users.foreign_agent.id), tenant.ctx.manager)
    assert session.query(Lead).count() == 0


def test_create_lead_in_other_branch_requires_admin(session, tenant, lead_payload):
    with pytest.raises(AuthorizationError):
        _service(session).create_lead(lead_payload(branch_id=tenant.rosario.id), tenant.ctx.manager)

    lead = _service(session).create_lead(lead_payload(branch_id=tenant.rosario.id), tenant.ctx.org_admin)
    assert lead.branch_id == tenant.rosario.id


def test_inquiry_numbers_skip_reserved_values(session, tenant):
    service = _service(session, seed=1)
    reserved: set[str] = set()
    numbers = {service.next_inquiry_number(reserved) for _ in range(20)}

    assert len(numbers) == 20
    assert numbers == reserved


def test_status_to_interested_without_assignee_returns_notice(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(), tenant.ctx.manager)

    outcome = service.update_lead_status(lead.id, LeadStatus.INTERESTED, tenant.ctx.manager)

    assert outcome.status is LeadStatus.INTERESTED
    assert outcome.contact is None
    assert outcome.notice
    assert outcome.lead.converted_to_contact is False
    assert session.query(Contact).count() == 0


def test_status_to_interested_with_assignee_converts_once(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(assigned_to=tenant.users.agent_a.id), tenant.ctx.manager)

    first = service.update_lead_status(lead.id, LeadStatus.INTERESTED, tenant.ctx.manager)
    second = service.update_lead_status(lead.id, LeadStatus.RESERVED, tenant.ctx.manager)

    assert first.contact_created is True
    assert second.contact_created is False
    assert second.lead.converted_to_contact is True
    contacts = session.query(Contact).filter(Contact.original_lead_id == lead.id).all()
    assert len(contacts) == 1
    assert contacts[0].tag == LeadStatus.INTERESTED.value


def test_reverting_status_clears_converted_flag(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(assigned_to=tenant.users.agent_a.id), tenant.ctx.manager)
    service.update_lead_status(lead.id, LeadStatus.CONTACTED, tenant.ctx.manager)

    outcome = service.update_lead_status(lead.id, LeadStatus.ASSIGNED, tenant.ctx.manager)

    assert outcome.lead.converted_to_contact is False
    assert session.query(Contact).count() == 1


def test_archive_is_terminal(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(), tenant.ctx.manager)

    archived = service.archive_lead(lead.id, "No responde", tenant.ctx.manager)

    assert archived.status is LeadStatus.ARCHIVED
    assert archived.archived_at is not None
    assert archived.archived_reason == "No responde"
    history = service.get_lead_history(lead.id, tenant.ctx.manager)
    assert history[0].action == HistoryAction.LEAD_ARCHIVED.value
    assert history[0].description == "Lead archivado: No responde"

    with pytest.raises(InvalidTransitionError):
        service.update_lead_status(lead.id, LeadStatus.NEW, tenant.ctx.manager)


def test_update_lead_records_changed_fields(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(), tenant.ctx.manager)

    updated = service.update_lead(lead.id, {"origin": "Instagram", "pax_count": "3 personas"}, tenant.ctx.manager)

    assert updated.origin == "Instagram"
    assert updated.pax_count == 3
    history = service.get_lead_history(lead.id, tenant.ctx.manager)
    assert history[0].action == HistoryAction.LEAD_UPDATED.value
    assert "origin" in history[0].description


def test_update_lead_rejects_invalid_phone(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(), tenant.ctx.manager)

    with pytest.raises(ValidationError):
        service.update_lead(lead.id, {"phone": "12"}, tenant.ctx.manager)


def test_update_lead_with_assignee_and_status(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(), tenant.ctx.manager)

    updated = service.update_lead(
        lead.id,
        {"assigned_to": tenant.users.agent_a.id, "status": LeadStatus.FOLLOWED.value},
        tenant.ctx.manager,
    )

    assert updated.assigned_to == tenant.users.agent_a.id
    assert updated.status is LeadStatus.FOLLOWED
    assert updated.converted_to_contact is True
    assert session.query(Contact).filter(Contact.original_lead_id == lead.id).count() == 1


def test_update_lead_on_archived_lead_keeps_fields_when_assignment_fails(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(origin="Google"), tenant.ctx.manager)
    service.archive_lead(lead.id, "Duplicado", tenant.ctx.manager)

    with pytest.raises(InvalidTransitionError):
        service.update_lead(lead.id, {"origin": "Instagram", "assigned_to": tenant.users.agent_a.id}, tenant.ctx.manager)

    session.expire_all()
    stored = session.get(Lead, lead.id)
    assert stored.origin == "Google"
    assert stored.assigned_to is None
    actions = [entry.action for entry in service.get_lead_history(lead.id, tenant.ctx.manager)]
    assert HistoryAction.LEAD_UPDATED.value not in actions


def test_update_lead_keeps_fields_when_assignee_is_invalid(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(origin="Google"), tenant.ctx.manager)

    with pytest.raises(ValidationError):
        service.update_lead(lead.id, {"origin": "Instagram", "assigned_to": tenant.users.inactive.id}, tenant.ctx.manager)

    session.expire_all()
    assert session.get(Lead, lead.id).origin == "Google"


def test_update_lead_rematches_rules_for_unassigned_lead(session, tenant, lead_payload, make_rule):
    service = _service(session)
    lead = service.create_lead(lead_payload(origin="Google"), tenant.ctx.manager)
    make_rule(tenant.org.id, RuleType.CAMPAIGN, "instagram", [tenant.users.agent_a.id])

    updated = service.update_lead(lead.id, {"origin": "Campaña Instagram"}, tenant.ctx.manager)

    assert updated.assigned_to == tenant.users.agent_a.id
    assert updated.status is LeadStatus.ASSIGNED


def test_visibility_by_role(session, tenant, lead_payload):
    service = _service(session)
    mine = service.create_lead(lead_payload(assigned_to=tenant.users.agent_a.id), tenant.ctx.manager)
    other = service.create_lead(lead_payload(full_name="Otro"), tenant.ctx.rosario_manager)

    assert service.get_lead(mine.id, tenant.ctx.agent_a).id == mine.id
    with pytest.raises(NotFoundError):
        service.get_lead(mine.id, tenant.ctx.agent_b)
    with pytest.raises(NotFoundError):
        service.get_lead(other.id, tenant.ctx.manager)
    with pytest.raises(NotFoundError):
        service.get_lead(mine.id, tenant.ctx.foreign_agent)

    assert {lead.id for lead in service.list_leads(tenant.ctx.org_admin)} == {mine.id, other.id}
    assert {lead.id for lead in service.list_leads(tenant.ctx.super_admin)} == {mine.id, other.id}
    assert [lead.id for lead in service.list_leads(tenant.ctx.agent_a)] == [mine.id]


def test_list_leads_filters(session, tenant, lead_payload):
    service = _service(session)
    plain = service.create_lead(lead_payload(full_name="Lucía Gómez", origin="Instagram"), tenant.ctx.manager)
    converted = service.create_lead(lead_payload(full_name="Pedro Ruiz", assigned_to=tenant.users.agent_a.id), tenant.ctx.manager)
    service.update_lead_status(converted.id, LeadStatus.CONTACTED, tenant.ctx.manager)
    archived = service.create_lead(lead_payload(full_name="Sara Archivada"), tenant.ctx.manager)
    service.archive_lead(archived.id, None, tenant.ctx.manager)

    default_ids = [lead.id for lead in service.list_leads(tenant.ctx.manager)]
    assert default_ids == [plain.id]

    assert [lead.id for lead in service.list_leads(tenant.ctx.manager, LeadFilters(name="lucía"))] == [plain.id]
    assert service.list_leads(tenant.ctx.manager, LeadFilters(origin="google")) == []
    assert [
        lead.id for lead in service.list_leads(tenant.ctx.manager, LeadFilters(status=LeadStatus.ARCHIVED))
    ] == [archived.id]
    included = service.list_leads(tenant.ctx.manager, LeadFilters(include_converted=True, include_archived=True))
    assert {lead.id for lead in included} == {plain.id, converted.id, archived.id}


def test_delete_requires_super_admin_before_any_query(tenant):
    db = MagicMock()
    service = LeadService(db=db)
    db.reset_mock()

    with pytest.raises(AuthorizationError, match=DELETE_FORBIDDEN_MESSAGE):
        service.delete_lead(1, tenant.ctx.org_admin)

    assert db.mock_calls == []


def test_super_admin_delete_removes_history_and_detaches_budgets(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(), tenant.ctx.manager)
    budget = Budget(
        organization_id=tenant.org.id,
        branch_id=tenant.cordoba.id,
        title="Bariloche",
        lead_id=lead.id,
        slug="carla-pasajera-bariloche",
    )
    session.add(budget)
    session.commit()

    service.delete_lead(lead.id, tenant.ctx.super_admin)

    assert session.get(Lead, lead.id) is None
    assert session.query(LeadHistory).filter(LeadHistory.lead_id == lead.id).count() == 0
    session.expire_all()
    assert session.get(Budget, budget.id).lead_id is None
    with pytest.raises(NotFoundError):
        service.get_lead(lead.id, tenant.ctx.super_admin)


def test_history_is_scoped_to_visible_leads(session, tenant, lead_payload):
    service = _service(session)
    lead = service.create_lead(lead_payload(), tenant.ctx.manager)

    with pytest.raises(NotFoundError):
        service.get_lead_history(lead.id, tenant.ctx.rosario_manager)
    assert service.history.list_for(lead.id, HistoryEntity.LEAD)
