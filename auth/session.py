"""
auth/session.py -- Login, refresh, and logout flows for admin sessions.

SessionManager composes the collaborators; it owns no state of its own:

  login   : shape check -> before-login hooks -> authenticate_admin()
            -> issue access -> issue refresh -> stamp last_active/last_ip
            -> after-login hooks
  refresh : revocation check -> validate(refresh) -> issue access
  logout  : revocation check -> validate(refresh) -> subject match against
            the caller's access-token context -> revoke both tokens
  authenticate : revocation check -> validate(access) -> load enabled admin

Every flow exits early by raising a SessionError subclass. Nothing is written
until every check of the flow has passed: both tokens are minted before the
account is stamped, and both denylist entries are written only after the
subject match.

Refresh tokens are not rotated: a refresh token stays usable until it expires
or is revoked by logout.

Hooks: before_login callables receive a LoginAttempt and may veto by raising
a SessionError (LoginVetoed is provided for that). after_login callables
receive the Admin and the request origin; they run synchronously, in order,
after the account has been stamped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from auth.credentials import authenticate_admin, challenge_key
from auth.errors import (
    AccountDisabled,
    AdminNotFound,
    AuthenticationRequired,
    ChallengeFailed,
    RequestInvalid,
    SubjectMismatch,
    TokenRevoked,
)
from auth.models import Admin, AdminContext, LoginAttempt, LoginResult, RefreshResult, TokenClaims

if TYPE_CHECKING:
    from auth.captcha import CaptchaService
    from auth.revocation import RevocationList
    from auth.store import AdminStore
    from auth.tokens import TokenService
    from core.config import Settings

logger = logging.getLogger("passport.auth")

_PASSWORD_RE = re.compile(r"[0-9a-fA-F]{32}")
_CAPTCHA_LENGTH = 4
_CAPTCHA_RE = re.compile(r"[0-9A-Za-z]+")


def audit_login(admin: Admin, origin: str | None) -> None:
    """Default after-login hook: one audit line per successful login."""
    logger.info("Admin login id=%s name=%s origin=%s", admin.id, admin.name, origin or "unknown")


@dataclass
class SessionHooks:
    before_login: list[Callable[[LoginAttempt], None]] = field(default_factory=list)
    after_login: list[Callable[[Admin, str | None], None]] = field(default_factory=lambda: [audit_login])


class SessionManager:
    """Orchestrates the admin session lifecycle.

    All collaborators are passed in; tests build one with in-memory stores and
    a fake clock on the TokenService and TokenCache.
    """

    def __init__(
        self,
        store: AdminStore,
        tokens: TokenService,
        revocations: RevocationList,
        captcha: CaptchaService,
        settings: Settings,
        hooks: SessionHooks | None = None,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._revocations = revocations
        self._captcha = captcha
        self._settings = settings
        self.hooks = hooks if hooks is not None else SessionHooks()

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(
        self,
        name: str,
        password: str,
        captcha: str,
        origin: str | None = None,
        captcha_id: str | None = None,
    ) -> LoginResult:
        """Authenticate an admin and issue an access/refresh token pair."""
        _check_login_shape(name, password, captcha)
        if captcha_id and captcha_id != challenge_key(name):
            raise ChallengeFailed("Captcha does not belong to this account.")

        attempt = LoginAttempt(name=name, origin=origin)
        for hook in self.hooks.before_login:
            hook(attempt)

        admin = authenticate_admin(
            self._store,
            self._captcha,
            name,
            password,
            captcha,
            self._settings.password_salt,
            rounds=self._settings.password_hash_rounds,
        )

        s = self._settings
        access_token = self._tokens.issue(admin.id, s.access_expired_in, s.access_token_kind)
        refresh_token = self._tokens.issue(admin.id, s.refresh_expired_in, s.refresh_token_kind)

        now = self._tokens.now()
        self._store.update_admin(admin.id, last_active=now, last_ip=origin)
        admin.last_active = now
        admin.last_ip = origin

        for hook in self.hooks.after_login:
            hook(admin, origin)

        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            expired_in=s.access_expired_in,
            admin=admin,
        )

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, refresh_token: str) -> RefreshResult:
        """Exchange a live refresh token for a new access token."""
        claims = self._check_refresh_token(refresh_token)
        s = self._settings
        access_token = self._tokens.issue(claims.subject_id, s.access_expired_in, s.access_token_kind)
        return RefreshResult(access_token=access_token, expired_in=s.access_expired_in)

    # ------------------------------------------------------------------
    # Logout
    # ------------------------------------------------------------------

    def logout(self, refresh_token: str, context: AdminContext) -> None:
        """Revoke the caller's access token and the given refresh token.

        Each denylist entry lives for its token's remaining lifetime, floored
        at revocation_min_ttl. With revoke_full_lifetime both entries instead
        live for the refresh token's full lifetime (exp - iat).
        """
        claims = self._check_refresh_token(refresh_token)
        if claims.subject_id != context.admin.id:
            raise SubjectMismatch("Refresh token does not belong to the current session.")

        s = self._settings
        if s.revoke_full_lifetime:
            access_ttl = refresh_ttl = claims.lifetime
        else:
            now = self._tokens.now()
            access_ttl = context.claims.expires_at - now
            refresh_ttl = claims.expires_at - now
        self._revocations.revoke(context.access_token, max(access_ttl, s.revocation_min_ttl))
        self._revocations.revoke(refresh_token, max(refresh_ttl, s.revocation_min_ttl))
        logger.info("Admin logout id=%s", context.admin.id)

    # ------------------------------------------------------------------
    # Access-token authentication
    # ------------------------------------------------------------------

    def authenticate(self, access_token: str | None) -> AdminContext:
        """Resolve an access token to the enabled admin it was issued for."""
        if not access_token:
            raise AuthenticationRequired("Authentication required.")
        if self._revocations.is_revoked(access_token):
            raise TokenRevoked("Access token has been revoked.")
        claims = self._tokens.validate(access_token, self._settings.access_token_kind)
        admin = self._store.get_by_id(claims.subject_id)
        if admin is None:
            raise AdminNotFound("Account error.")
        if not admin.status:
            raise AccountDisabled("Account is disabled.")
        return AdminContext(admin=admin, access_token=access_token, claims=claims)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_refresh_token(self, refresh_token: str) -> TokenClaims:
        if not refresh_token:
            raise RequestInvalid("Refresh token is required.")
        # Checked before the signature so known-dead tokens skip verification.
        if self._revocations.is_revoked(refresh_token):
            raise TokenRevoked("Refresh token has been revoked.")
        return self._tokens.validate(refresh_token, self._settings.refresh_token_kind)


def _check_login_shape(name: str, password: str, captcha: str) -> None:
    """Raise RequestInvalid with the first failing rule, like a form validator."""
    if not name:
        raise RequestInvalid("Account name is required.")
    if not password:
        raise RequestInvalid("Password is required.")
    if not _PASSWORD_RE.fullmatch(password):
        raise RequestInvalid("Password must be a 32-character hex digest.")
    if not captcha:
        raise RequestInvalid("Captcha is required.")
    if len(captcha) != _CAPTCHA_LENGTH:
        raise RequestInvalid(f"Captcha must be {_CAPTCHA_LENGTH} characters.")
    if not _CAPTCHA_RE.fullmatch(captcha):
        raise RequestInvalid("Captcha must contain only letters and digits.")
