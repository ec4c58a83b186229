from __future__ import annotations

import pytest

from leadflow.core.enums import RuleType
from leadflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from leadflow.services.rule_service import RuleService


def _campaign(users, **overrides):
    data = {"type": "campaign", "condition": "  Instagram  ", "assigned_users": users}
    data.update(overrides)
    return data


def test_org_admin_creates_rule_in_own_organization(session, tenant):
    service = RuleService(db=session)

    rule = service.create_rule(_campaign([tenant.users.agent_a.id, tenant.users.agent_a.id]), tenant.ctx.org_admin)

    assert rule.organization_id == tenant.org.id
    assert rule.type is RuleType.CAMPAIGN
    assert rule.condition == "Instagram"
    assert rule.assigned_users == [tenant.users.agent_a.id]
    assert rule.is_active is True


@pytest.mark.parametrize("role", ["manager", "agent_a"])
def test_only_admins_manage_rules(session, tenant, role):
    service = RuleService(db=session)

    with pytest.raises(AuthorizationError):
        service.create_rule(_campaign([]), getattr(tenant.ctx, role))
    with pytest.raises(AuthorizationError):
        service.list_rules(getattr(tenant.ctx, role))


def test_rule_candidates_must_belong_to_organization(session, tenant):
    with pytest.raises(ValidationError):
        RuleService(db=session).create_rule(_campaign([tenant.users.foreign_agent.id]), tenant.ctx.org_admin)


def test_rule_requires_valid_type_and_condition(session, tenant):
    service = RuleService(db=session)

    with pytest.raises(ValidationError):
        service.create_rule(_campaign([], type="city"), tenant.ctx.org_admin)
    with pytest.raises(ValidationError):
        service.create_rule(_campaign([], condition="   "), tenant.ctx.org_admin)


def test_super_admin_must_target_an_organization(session, tenant):
    service = RuleService(db=session)

    with pytest.raises(ValidationError):
        service.create_rule(_campaign([]), tenant.ctx.super_admin)

    rule = service.create_rule(_campaign([], organization_id=tenant.other_org.id), tenant.ctx.super_admin)
    assert rule.organization_id == tenant.other_org.id


def test_update_and_deactivate_rule(session, tenant):
    service = RuleService(db=session)
    rule = service.create_rule(_campaign([tenant.users.agent_a.id]), tenant.ctx.org_admin)

    updated = service.update_rule(
        rule.id,
        {"type": "province", "condition": "Córdoba", "assigned_users": [tenant.users.agent_b.id], "is_active": False},
        tenant.ctx.org_admin,
    )

    assert updated.type is RuleType.PROVINCE
    assert updated.assigned_users == [tenant.users.agent_b.id]
    assert updated.is_active is False
    assert service.list_active_rules(tenant.org.id) == []


def test_rules_are_listed_oldest_first_and_isolated(session, tenant, make_rule):
    first = make_rule(tenant.org.id, RuleType.CAMPAIGN, "google", [])
    second = make_rule(tenant.org.id, RuleType.PROVINCE, "salta", [])
    foreign = make_rule(tenant.other_org.id, RuleType.PROVINCE, "mendoza", [])
    service = RuleService(db=session)

    assert [rule.id for rule in service.list_rules(tenant.ctx.org_admin)] == [first.id, second.id]
    with pytest.raises(NotFoundError):
        service.get_rule(foreign.id, tenant.ctx.org_admin)


def test_delete_rule(session, tenant, make_rule):
    rule = make_rule(tenant.org.id, RuleType.CAMPAIGN, "google", [])
    service = RuleService(db=session)

    service.delete_rule(rule.id, tenant.ctx.org_admin)

    with pytest.raises(NotFoundError):
        service.get_rule(rule.id, tenant.ctx.org_admin)
