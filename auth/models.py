"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the session
manager do the work; these classes only own the shape.

Layer rule: no imports from api/, core/, or cache/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Admin:
    """A back-office administrator account (the Credential Record).

    password is the stored digest, never the plaintext. It is always
    digest(client_password, password_salt, PASSWORD_SALT) -- see
    auth/credentials.py.

    status is True for enabled accounts. Disabled accounts keep their record
    but cannot log in or use previously issued access tokens.
    """

    name: str
    password: str
    password_salt: str
    nickname: str = ""
    id: int | None = None
    status: bool = True
    last_active: int | None = None  # unix seconds of last successful login
    last_ip: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Verified claim set of an access or refresh token."""

    subject_id: int
    issued_at: int
    expires_at: int
    kind: str
    # Random per token, so two tokens minted in the same second never collide.
    token_id: str = ""

    @property
    def lifetime(self) -> int:
        return self.expires_at - self.issued_at


@dataclass(frozen=True)
class LoginAttempt:
    """What before-login hooks get to inspect."""

    name: str
    origin: str | None


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    expired_in: int
    admin: Admin


@dataclass(frozen=True)
class RefreshResult:
    access_token: str
    expired_in: int


@dataclass(frozen=True)
class AdminContext:
    """The authenticated caller behind a request's access token."""

    admin: Admin
    access_token: str
    claims: TokenClaims
