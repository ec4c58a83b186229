"""FastAPI dependency providers: request-scoped sessions and caller identity."""

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy.orm import Session

from leadflow.auth.jwt import decode_jwt
from leadflow.auth.tenant_context import TenantContext, from_claims
from leadflow.core.config import get_config
from leadflow.core.exceptions import AuthenticationError
from leadflow.database.db import get_db


def get_db_session() -> Iterator[Session]:
    yield from get_db()


def bearer_token(authorization: str | None) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header."""
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must use Bearer token.")
    return token.strip()


def context_from_authorization(authorization: str | None, secret: str | None = None) -> TenantContext:
    """Decode the caller's token into the organization/branch/role triple every query filters by."""
    claims = decode_jwt(token=bearer_token(authorization), secret=secret or get_config().JWT_SECRET)
    return from_claims(claims)
