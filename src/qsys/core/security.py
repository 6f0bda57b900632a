"""Bearer token helpers for the Account/Session boundary.

Staff and admin logins happen in an external identity service; this module only
mints and verifies the JWTs that service hands to the panels.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from qsys.core.settings import settings

ROLE_STAFF = "staff"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STAFF, ROLE_ADMIN)


@dataclass(frozen=True)
class Account:
    """Authenticated caller as described by a verified access token."""

    subject: str
    role: str
    branches: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def can_operate(self, branch_code: str) -> bool:
        """Return True if the account may run staff actions for ``branch_code``."""
        if self.is_admin or not self.branches:
            return True
        return branch_code.upper() in self.branches


def create_access_token(
    subject: str,
    role: str = ROLE_STAFF,
    branches: list[str] | None = None,
    expires_minutes: int | None = None,
) -> str:
    """Create a signed access token carrying the caller's role and branches."""
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}")
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    to_encode: dict[str, object] = {
        "sub": subject,
        "role": role,
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    if branches:
        to_encode["branches"] = [code.upper() for code in branches]
    encoded: str = jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)
    return encoded


def decode_access_token(token: str) -> Account:
    """Verify ``token`` and return the account it describes.

    Raises:
        JWTError: If the signature, expiry or claims are invalid.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or role not in ROLES:
        raise JWTError("Token is missing subject or role")
    branches = payload.get("branches") or []
    return Account(
        subject=str(subject),
        role=str(role),
        branches=tuple(str(code).upper() for code in branches),
    )
