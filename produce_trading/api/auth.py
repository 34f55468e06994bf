"""
Bearer token handling.

Tokens are issued by the accounts service and carry the principal as claims:
``sub`` (user id), ``name``, ``role`` and ``branch``. This module only
verifies signatures and expiry; it never looks users up.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from produce_trading.domain.principal import Principal, Role

DEFAULT_TOKEN_LIFETIME = timedelta(hours=8)


class AuthenticationError(Exception):
    """Raised when a bearer token is missing, malformed, expired or badly signed."""


def create_access_token(
    principal: Principal,
    secret: str,
    algorithm: str = "HS256",
    expires_in: timedelta = DEFAULT_TOKEN_LIFETIME,
    now: Optional[datetime] = None,
) -> str:
    """Sign a token for ``principal`` (used by scripts and tests)."""

    issued_at = now or datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": principal.user_id,
        "role": principal.role.value,
        "branch": principal.branch,
        "iat": issued_at,
        "exp": issued_at + expires_in,
    }
    if principal.name:
        claims["name"] = principal.name
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_principal(token: str, secret: str, algorithm: str = "HS256") -> Principal:
    """
    Verify ``token`` and build the Principal it carries.

    Raises:
        AuthenticationError: the token is invalid or its claims are incomplete
    """

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as e:
        raise AuthenticationError("Token is not valid") from e

    try:
        return Principal(
            user_id=str(claims["sub"]),
            role=Role(claims.get("role")),
            branch=str(claims.get("branch", "")),
            name=claims.get("name"),
        )
    except (KeyError, ValueError) as e:
        raise AuthenticationError("Token is not valid") from e


__all__ = ["AuthenticationError", "create_access_token", "decode_principal"]
