from __future__ import annotations

from types import SimpleNamespace

import pytest

from leadflow.auth.tenant_context import TenantContext
from leadflow.core.enums import RuleType, UserRole
from leadflow.database.db import build_engine, build_session_factory
from leadflow.models import Base, Branch, Organization, Rule, User


def _build_session_factory(url: str = "sqlite:///:memory:"):
    engine = build_engine(url)
    TestingSessionLocal = build_session_factory(engine)
    Base.metadata.create_all(bind=engine)
    return TestingSessionLocal


def context_for(user: User) -> TenantContext:
    return TenantContext(
        user_id=user.id,
        role=UserRole(user.role).value,
        organization_id=user.organization_id,
        branch_id=user.branch_id,
    )


def seed_tenant(session) -> SimpleNamespace:
    org = Organization(name="Viajes del Sur")
    other_org = Organization(name="Turismo Andino")
    session.add_all([org, other_org])
    session.flush()

    cordoba = Branch(organization_id=org.id, name="Córdoba Centro", city="Córdoba", province="Córdoba")
    rosario = Branch(organization_id=org.id, name="Rosario", city="Rosario", province="Santa Fe")
    mendoza = Branch(organization_id=other_org.id, name="Mendoza", city="Mendoza", province="Mendoza")
    session.add_all([cordoba, rosario, mendoza])
    session.flush()

    def _user(email, name, role, organization=None, branch=None, is_active=True):
        return User(
            email=email,
            full_name=name,
            role=role,
            organization_id=organization.id if organization else None,
            branch_id=branch.id if branch else None,
            is_active=is_active,
        )

    users = {
        "super_admin": _user("root@leadflow.test", "Root", UserRole.SUPER_ADMIN),
        "org_admin": _user("admin@sur.test", "Olga Admin", UserRole.ORG_ADMIN, org),
        "manager": _user("gerente@sur.test", "Marta Gerente", UserRole.BRANCH_MANAGER, org, cordoba),
        "rosario_manager": _user("rosario@sur.test", "Raul Gerente", UserRole.BRANCH_MANAGER, org, rosario),
        "agent_a": _user("ana@sur.test", "Ana Vendedora", UserRole.SALES_AGENT, org, cordoba),
        "agent_b": _user("beto@sur.test", "Beto Vendedor", UserRole.SALES_AGENT, org, cordoba),
        "inactive": _user("ex@sur.test", "Ex Vendedor", UserRole.SALES_AGENT, org, cordoba, is_active=False),
        "foreign_agent": _user("pia@andino.test", "Pia Andina", UserRole.SALES_AGENT, other_org, mendoza),
    }
    session.add_all(users.values())
    session.commit()

    return SimpleNamespace(
        org=org,
        other_org=other_org,
        cordoba=cordoba,
        rosario=rosario,
        mendoza=mendoza,
        users=SimpleNamespace(**users),
        ctx=SimpleNamespace(**{key: context_for(user) for key, user in users.items()}),
    )


def add_rule(session, organization_id: int, rule_type: RuleType, condition: str, users: list[int], **kwargs) -> Rule:
    rule = Rule(organization_id=organization_id, type=rule_type, condition=condition, assigned_users=users, **kwargs)
    session.add(rule)
    session.commit()
    return rule


@pytest.fixture
def session():
    TestingSessionLocal = _build_session_factory()
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def tenant(session):
    return seed_tenant(session)


@pytest.fixture
def make_rule(session):
    def _make(organization_id, rule_type, condition, users, **kwargs):
        return add_rule(session, organization_id, rule_type, condition, users, **kwargs)

    return _make


@pytest.fixture
def lead_payload():
    def _payload(**overrides):
        payload = {
            "full_name": "Carla Pasajera",
            "phone": "351 555 1234",
            "origin": "Feria de turismo",
            "province": "Buenos Aires",
            "pax_count": 2,
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def api(tmp_path):
    """TestClient over a file-backed SQLite database with a seeded tenant."""
    from fastapi.testclient import TestClient

    from leadflow.auth.jwt import create_access_token
    from leadflow.core.config import get_config
    from leadflow.core.dependencies import get_db_session
    from leadflow.main import create_app

    TestingSessionLocal = _build_session_factory(f"sqlite:///{tmp_path / 'leadflow_api.db'}")
    seed_session = TestingSessionLocal()
    tenant = seed_tenant(seed_session)

    def _override_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app = create_app(run_startup=False)
    app.dependency_overrides[get_db_session] = _override_db
    cfg = get_config()

    def headers(user: User) -> dict[str, str]:
        token = create_access_token(
            user_id=user.id,
            role=UserRole(user.role).value,
            organization_id=user.organization_id,
            branch_id=user.branch_id,
            secret=cfg.JWT_SECRET,
        )
        return {"Authorization": f"Bearer {token}"}

    try:
        yield SimpleNamespace(
            client=TestClient(app),
            tenant=tenant,
            headers=headers,
            prefix=cfg.API_PREFIX,
            session_factory=TestingSessionLocal,
        )
    finally:
        seed_session.close()
