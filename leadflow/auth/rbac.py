"""Role-based authorization helpers.

Scopes follow a `<module>.<action>` naming. Lead deletion is reserved to
super admins; rule management to super and organization admins.
"""

from __future__ import annotations

from leadflow.core.exceptions import AuthorizationError


def _crud(module: str, *actions: str) -> set[str]:
    return {f"{module}.{action}" for action in actions}


ROLE_SCOPES: dict[str, set[str]] = {
    "super_admin": {
        "*",
    },
    "org_admin": {
        *_crud("contacts", "create", "read", "update"),
        *_crud("leads", "create", "read", "update", "import"),
        *_crud("budgets", "create", "read", "update"),
        "rules.manage",
    },
    "branch_manager": {
        *_crud("contacts", "create", "read", "update"),
        *_crud("leads", "create", "read", "update", "import"),
        *_crud("budgets", "create", "read", "update"),
    },
    "sales_agent": {
        *_crud("contacts", "create", "read", "update"),
        *_crud("leads", "create", "read", "update"),
        *_crud("budgets", "create", "read", "update"),
    },
}


def get_scopes_for_role(role: str) -> set[str]:
    """Return scopes granted to a role."""
    return ROLE_SCOPES.get(role.lower(), set())


def has_scopes(role: str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> bool:
    """Check if role includes every required scope."""
    granted = get_scopes_for_role(role)
    if "*" in granted:
        return True
    return set(required_scopes).issubset(granted)


def require_scopes(role: str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> None:
    """Raise when a role lacks required scopes."""
    if has_scopes(role=role, required_scopes=required_scopes):
        return
    missing = sorted(set(required_scopes) - get_scopes_for_role(role))
    raise AuthorizationError(f"Permisos insuficientes: {', '.join(missing)}")
