"""HS256 access tokens carrying the caller's organization, branch and role."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from leadflow.core.exceptions import AuthenticationError

_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(f"{data}{padding}".encode("ascii"))


def _segment(payload: dict[str, Any]) -> str:
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return _b64url_encode(raw)


def _signature(signing_input: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), signing_input.encode("utf-8"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def encode_jwt(claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
    """Sign `claims` with HS256, stamping iat/exp/jti when absent."""
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")

    issued = datetime.now(timezone.utc)
    body = dict(claims)
    body.setdefault("iat", int(issued.timestamp()))
    body.setdefault("exp", int((issued + ttl).timestamp()))
    body.setdefault("jti", uuid.uuid4().hex)

    signing_input = f"{_segment(_HEADER)}.{_segment(body)}"
    return f"{signing_input}.{_signature(signing_input, secret)}"


def decode_jwt(token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
    """Verify signature (and expiry) and return the token claims."""
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")
    parts = token.split(".")
    if len(parts) != 3:
        raise AuthenticationError("Invalid token format.")
    header_segment, payload_segment, signature_segment = parts

    expected = _signature(f"{header_segment}.{payload_segment}", secret)
    if not hmac.compare_digest(expected, signature_segment):
        raise AuthenticationError("Invalid token signature.")

    try:
        claims = json.loads(_b64url_decode(payload_segment).decode("utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise AuthenticationError("Invalid token payload.") from exc
    if not isinstance(claims, dict):
        raise AuthenticationError("Invalid token payload.")

    if verify_exp:
        exp = claims.get("exp")
        if exp is None:
            raise AuthenticationError("Token is missing exp claim.")
        if int(exp) < int(datetime.now(timezone.utc).timestamp()):
            raise AuthenticationError("Token has expired.")
    return claims


def create_access_token(
    user_id: int,
    role: str,
    organization_id: int | None,
    branch_id: int | None,
    secret: str,
    ttl_minutes: int = 60,
) -> str:
    """Create an access token scoped to one organization/branch pair."""
    claims = {
        "sub": str(user_id),
        "role": role,
        "organization_id": organization_id,
        "branch_id": branch_id,
    }
    return encode_jwt(claims, secret=secret, ttl=timedelta(minutes=ttl_minutes))
