"""Bearer token helpers.

Tokens are issued by the identity provider; this service only verifies them.
``create_access_token`` exists for tooling and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from scooterbooter.core.errors import Unauthorized
from scooterbooter.core.settings import settings


@dataclass(frozen=True)
class Identity:
    """Verified caller identity derived from token claims."""

    user_id: str
    email: str
    username: str

    @property
    def is_admin(self) -> bool:
        return settings.is_admin(self.email)


def create_access_token(
    user_id: str,
    *,
    email: str | None = None,
    expires_minutes: int | None = None,
) -> str:
    """Create a signed token for the given user id."""
    expire = datetime.now(UTC) + timedelta(
        minutes=expires_minutes or settings.access_token_expire_minutes
    )
    claims: dict[str, Any] = {"sub": user_id, "exp": expire}
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_identity(token: str) -> Identity:
    """Verify a bearer token and return the caller identity.

    Raises:
        Unauthorized: If the token is malformed, expired, or lacks a subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise Unauthorized("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise Unauthorized("Could not validate credentials")
    email = str(payload.get("email") or "").lower()
    username = str(payload.get("cognito:username") or email or subject)
    return Identity(user_id=str(subject), email=email, username=username)
