"""Shared authorization and error-mapping helpers for API v1 route modules."""

from __future__ import annotations

from fastapi import HTTPException

from leadflow.auth.rbac import require_scopes
from leadflow.auth.tenant_context import TenantContext
from leadflow.core.dependencies import context_from_authorization
from leadflow.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ImportValidationError,
    LeadFlowException,
)
from leadflow.schemas.common import ImportErrorDetail


def require_context(authorization: str | None, scopes: list[str]) -> TenantContext:
    """Resolve the caller and check its role grants every scope; 401/403 otherwise."""
    try:
        context = context_from_authorization(authorization)
        require_scopes(context.role, scopes)
    except (AuthenticationError, AuthorizationError) as exc:
        raise to_http_exception(exc) from exc
    return context


def to_http_exception(exc: LeadFlowException) -> HTTPException:
    """Translate a service exception into the matching HTTP error."""
    if isinstance(exc, ImportValidationError):
        detail = ImportErrorDetail(message=str(exc), invalid_rows=exc.invalid_rows, row_numbers=exc.row_numbers)
        return HTTPException(status_code=exc.status_code, detail=detail.model_dump())
    return HTTPException(status_code=exc.status_code, detail=str(exc))
