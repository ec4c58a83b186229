from __future__ import annotations

import pytest

from leadflow.core.enums import BudgetStatus
from leadflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from leadflow.models import Budget
from leadflow.services.budget_service import BudgetService
from leadflow.services.contact_service import ContactService
from leadflow.services.lead_service import LeadService


def test_budget_for_lead_inherits_scope_and_slug(session, tenant, lead_payload):
    lead = LeadService(db=session).create_lead(lead_payload(full_name="José Núñez"), tenant.ctx.manager)
    service = BudgetService(db=session)

    budget = service.create_budget({"lead_id": lead.id, "title": "Bariloche Invierno", "amount": 1500}, tenant.ctx.manager)

    assert budget.slug == "jose-nunez-bariloche-invierno"
    assert budget.branch_id == lead.branch_id
    assert budget.status is BudgetStatus.NOT_SENT
    assert budget.assigned_to == tenant.users.manager.id


def test_duplicate_slugs_get_numeric_suffix(session, tenant):
    contact = ContactService(db=session).create_contact(
        {"full_name": "Ana", "phone": "3515550001", "city": "Córdoba", "province": "Córdoba", "tag": "assigned"},
        tenant.ctx.manager,
    )
    service = BudgetService(db=session)

    first = service.create_budget({"contact_id": contact.id, "title": "Salta"}, tenant.ctx.manager)
    second = service.create_budget({"contact_id": contact.id, "title": "Salta"}, tenant.ctx.manager)

    assert first.slug == "ana-salta"
    assert second.slug == "ana-salta-1"
    assert service.get_budget_by_slug("ana-salta-1").id == second.id


def test_budget_cannot_have_two_owners(session, tenant):
    with pytest.raises(ValidationError):
        BudgetService(db=session).create_budget({"lead_id": 1, "contact_id": 1, "title": "X"}, tenant.ctx.manager)


def test_budget_requires_title(session, tenant):
    with pytest.raises(ValidationError):
        BudgetService(db=session).create_budget({"title": "  "}, tenant.ctx.manager)


def test_budget_status_update_and_visibility(session, tenant):
    service = BudgetService(db=session)
    budget = service.create_budget({"title": "Cataratas"}, tenant.ctx.manager)

    updated = service.update_budget_status(budget.id, "sent", tenant.ctx.manager)

    assert updated.status is BudgetStatus.SENT
    assert [b.id for b in service.list_budgets(tenant.ctx.manager, status="sent")] == [budget.id]
    assert service.list_budgets(tenant.ctx.manager, status=BudgetStatus.APPROVED) == []
    with pytest.raises(ValidationError):
        service.update_budget_status(budget.id, "pending", tenant.ctx.manager)
    with pytest.raises(NotFoundError):
        service.get_budget(budget.id, tenant.ctx.rosario_manager)
    with pytest.raises(NotFoundError):
        service.get_budget_by_slug("no-existe")


def test_agent_cannot_create_budget_in_another_branch(session, tenant):
    service = BudgetService(db=session)

    with pytest.raises(AuthorizationError):
        service.create_budget({"title": "Viaje", "branch_id": tenant.mendoza.id}, tenant.ctx.agent_a)
    with pytest.raises(AuthorizationError):
        service.create_budget({"title": "Viaje", "branch_id": tenant.rosario.id}, tenant.ctx.agent_a)


def test_admin_budget_branch_must_belong_to_its_organization(session, tenant):
    service = BudgetService(db=session)

    with pytest.raises(ValidationError, match="sucursal"):
        service.create_budget({"title": "Viaje", "branch_id": tenant.mendoza.id}, tenant.ctx.org_admin)

    budget = service.create_budget({"title": "Viaje", "branch_id": tenant.rosario.id}, tenant.ctx.org_admin)
    assert (budget.organization_id, budget.branch_id) == (tenant.org.id, tenant.rosario.id)


def test_budget_assignee_must_be_active_user_of_the_organization(session, tenant, lead_payload):
    service = BudgetService(db=session)
    lead = LeadService(db=session).create_lead(lead_payload(), tenant.ctx.manager)

    with pytest.raises(ValidationError):
        service.create_budget({"title": "Viaje", "assigned_to": tenant.users.foreign_agent.id}, tenant.ctx.agent_a)
    with pytest.raises(ValidationError):
        service.create_budget(
            {"lead_id": lead.id, "title": "Viaje", "assigned_to": tenant.users.inactive.id}, tenant.ctx.manager
        )

    budget = service.create_budget({"title": "Viaje", "assigned_to": tenant.users.agent_b.id}, tenant.ctx.manager)
    assert budget.assigned_to == tenant.users.agent_b.id
    assert session.query(Budget).count() == 1


def test_budget_edits_append_numbered_versions(session, tenant):
    service = BudgetService(db=session)
    budget = service.create_budget({"title": "Mendoza Vendimia", "amount": 900}, tenant.ctx.manager)

    service.update_budget(budget.id, {"amount": 1100, "description": "Incluye traslados"}, tenant.ctx.manager)
    service.update_budget(budget.id, {"amount": 1100}, tenant.ctx.manager)
    service.update_budget_status(budget.id, BudgetStatus.SENT, tenant.ctx.manager)

    versions = service.list_budget_history(budget.id, tenant.ctx.manager)
    assert [version.version_number for version in versions] == [3, 2, 1]
    assert versions[0].status is BudgetStatus.SENT
    assert versions[0].change_summary == "Estado cambiado a Enviado"
    assert versions[1].amount == 1100
    assert versions[1].change_summary == "Campos actualizados: description, amount"
    assert versions[2].amount == 900
    assert versions[2].created_by == tenant.users.manager.id


def test_budget_update_rejects_blank_title_and_negative_amount(session, tenant):
    service = BudgetService(db=session)
    budget = service.create_budget({"title": "Jujuy"}, tenant.ctx.manager)

    with pytest.raises(ValidationError):
        service.update_budget(budget.id, {"title": " "}, tenant.ctx.manager)
    with pytest.raises(ValidationError):
        service.update_budget(budget.id, {"amount": -1}, tenant.ctx.manager)
    assert len(service.list_budget_history(budget.id, tenant.ctx.manager)) == 1


def test_restore_version_copies_content_and_records_new_version(session, tenant):
    service = BudgetService(db=session)
    budget = service.create_budget({"title": "Ushuaia", "amount": 2000}, tenant.ctx.manager)
    service.update_budget(budget.id, {"title": "Ushuaia Premium", "amount": 3200}, tenant.ctx.manager)
    service.update_budget_status(budget.id, "approved", tenant.ctx.manager)

    restored = service.restore_version(budget.id, 1, tenant.ctx.manager)

    assert (restored.title, restored.amount, restored.status) == ("Ushuaia", 2000, BudgetStatus.NOT_SENT)
    assert restored.slug == budget.slug
    latest = service.list_budget_history(budget.id, tenant.ctx.manager)[0]
    assert latest.version_number == 4
    assert latest.change_summary == "Restaurado a la versión 1"


def test_budget_history_follows_budget_visibility(session, tenant):
    service = BudgetService(db=session)
    budget = service.create_budget({"title": "Iguazú"}, tenant.ctx.manager)

    with pytest.raises(NotFoundError):
        service.list_budget_history(budget.id, tenant.ctx.rosario_manager)
    with pytest.raises(NotFoundError):
        service.restore_version(budget.id, 1, tenant.ctx.rosario_manager)
    with pytest.raises(NotFoundError):
        service.restore_version(budget.id, 9, tenant.ctx.manager)
