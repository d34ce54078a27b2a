"""
vault_console.auth.jwt

Client-side token inspection.

Responsibilities:
- Read registered claims (exp/sub) from the bearer token issued at login.

Note:
- The signature is NOT verified here; the server remains the authority. These helpers only
  let the client notice an expired session before a request bounces with 401.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import jwt
from jwt import InvalidTokenError


class TokenInspectionError(Exception):
    pass


def read_claims(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except InvalidTokenError as e:
        raise TokenInspectionError(str(e)) from e


def token_expires_at(token: str) -> datetime | None:
    exp = read_claims(token).get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise TokenInspectionError(f"invalid exp claim: {exp!r}") from e


def is_token_expired(token: str, *, now: datetime | None = None) -> bool:
    """
    Opaque (non-JWT) tokens are treated as not expired; tokens without `exp` never expire.
    """

    try:
        expires_at = token_expires_at(token)
    except TokenInspectionError:
        return False
    if expires_at is None:
        return False
    return (now or datetime.now(tz=UTC)) >= expires_at


# --- Module Notes -----------------------------------------------------------
# Used by `auth.session.SessionStore.is_authenticated`.
