"""Caller context extraction and role-derived read visibility."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from leadflow.core.enums import UserRole
from leadflow.core.exceptions import AuthenticationError, AuthorizationError


@dataclass(frozen=True)
class TenantContext:
    user_id: int
    role: str
    organization_id: int | None
    branch_id: int | None

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def from_claims(claims: dict[str, Any]) -> TenantContext:
    """Build caller context from verified token claims."""
    try:
        user_id = int(claims["sub"])
        role = str(claims["role"]).lower()
        organization_id = _optional_int(claims.get("organization_id"))
        branch_id = _optional_int(claims.get("branch_id"))
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Token claims are missing user context.") from exc

    if role not in {r.value for r in UserRole}:
        raise AuthenticationError(f"Unknown role in token: {role}")
    if role != UserRole.SUPER_ADMIN.value and organization_id is None:
        raise AuthenticationError("Token is missing organization context.")

    return TenantContext(user_id=user_id, role=role, organization_id=organization_id, branch_id=branch_id)


def apply_visibility(query, model, context: TenantContext):
    """Restrict a query over an org/branch scoped model to what `context` may read.

    super_admin sees everything, org_admin its organization, branch_manager its
    organization and branch, sales_agent only rows assigned to itself.
    """
    role = context.role
    if role == UserRole.SUPER_ADMIN.value:
        return query
    query = query.filter(model.organization_id == context.organization_id)
    if role == UserRole.ORG_ADMIN.value:
        return query
    if role == UserRole.BRANCH_MANAGER.value:
        return query.filter(model.branch_id == context.branch_id)
    return query.filter(model.assigned_to == context.user_id)


def is_visible(entity: Any, context: TenantContext) -> bool:
    """In-memory counterpart of `apply_visibility` for a loaded row."""
    role = context.role
    if role == UserRole.SUPER_ADMIN.value:
        return True
    if entity.organization_id != context.organization_id:
        return False
    if role == UserRole.ORG_ADMIN.value:
        return True
    if role == UserRole.BRANCH_MANAGER.value:
        return entity.branch_id == context.branch_id
    return entity.assigned_to == context.user_id


def enforce_tenant_match(entity_organization_id: int, context: TenantContext) -> None:
    """Ensure writes stay inside the caller's organization."""
    if context.is_super_admin:
        return
    if int(entity_organization_id) != int(context.organization_id or -1):
        raise AuthorizationError("Acceso entre organizaciones denegado.")
