"""
auth/tokens.py -- JWT issuance and verification for admin sessions.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry the
       admin id (sub), issued-at, expiry, a token kind ("access" or
       "refresh") and a random id (jti). The jti keeps two tokens minted for
       the same admin in the same second distinct, so revoking one never
       revokes the other. Integrity and authenticity are the goal; claims are not
       secret.

  Kinds: every token names its kind, and validate() requires the caller to
       say which kind it expects. A refresh token presented as an access token
       (or the reverse) fails with WrongTokenKind even though its signature
       and expiry are fine.

  Failure reporting: validate() raises a distinct TokenError subclass per
       failure stage (parse, signature, expiry, kind) in that order, so the
       route layer can return a precise message without guessing.

  Clock: expiry is checked against an injectable clock rather than jose's
       built-in exp check, so tests can move time without sleeping.

  Digests: hash_token() gives the SHA-256 hex of a raw token. Cache keys are
       built from the digest so bearer tokens never sit in cache storage.

Layer rule: no imports from api/ or cache/.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from typing import Callable

from jose import jws, jwt
from jose.exceptions import JOSEError

from auth.errors import BadSignature, SigningError, TokenExpired, TokenMalformed, WrongTokenKind
from auth.models import TokenClaims

logger = logging.getLogger("passport.auth")

_ALGORITHM = "HS256"

_REQUIRED_CLAIMS = ("sub", "iat", "exp", "kind", "jti")


def hash_token(token: str) -> str:
    """Return the SHA-256 hex digest of a raw token string."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenService:
    """Issue and validate signed session tokens.

    Usage:
        tokens = TokenService(settings.secret_key)
        raw = tokens.issue(admin.id, 86400, "access")
        claims = tokens.validate(raw, "access")
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = _ALGORITHM,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, subject_id: int, ttl_seconds: int, kind: str) -> str:
        """Encode a signed token for subject_id that expires ttl_seconds from now.

        Raises SigningError if jose cannot sign -- only possible with a broken
        key or algorithm configuration.
        """
        issued_at = self.now()
        payload = {
            "sub": str(subject_id),
            "iat": issued_at,
            "exp": issued_at + ttl_seconds,
            "kind": kind,
            "jti": secrets.token_urlsafe(16),
        }
        try:
            token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        except (JOSEError, TypeError, ValueError) as exc:
            raise SigningError("Token could not be issued.", detail=str(exc)) from exc
        if not token:
            raise SigningError("Token could not be issued.", detail="empty token")
        return token

    # ------------------------------------------------------------------
    # Validate
    # ------------------------------------------------------------------

    def validate(self, token: str, expected_kind: str) -> TokenClaims:
        """Verify a token and return its claims.

        Stages, each with its own error:
          1. parse      -> TokenMalformed
          2. signature  -> BadSignature
          3. expiry     -> TokenExpired
          4. kind       -> WrongTokenKind
        """
        claims = self._parse(token)
        try:
            jws.verify(token, self._secret_key, algorithms=[self._algorithm])
        except JOSEError as exc:
            raise BadSignature("Token signature is invalid.") from exc
        if claims.expires_at <= self.now():
            raise TokenExpired("Token has expired.")
        if claims.kind != expected_kind:
            raise WrongTokenKind(f"Expected a {expected_kind} token.")
        return claims

    def _parse(self, token: str) -> TokenClaims:
        try:
            payload = jwt.get_unverified_claims(token)
        except (JOSEError, AttributeError, TypeError, ValueError) as exc:
            raise TokenMalformed("Token is malformed.") from exc
        if not isinstance(payload, dict) or any(name not in payload for name in _REQUIRED_CLAIMS):
            raise TokenMalformed("Token is missing required claims.")
        try:
            subject_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise TokenMalformed("Token subject is invalid.") from exc
        issued_at, expires_at, kind, token_id = payload["iat"], payload["exp"], payload["kind"], payload["jti"]
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in (issued_at, expires_at)):
            raise TokenMalformed("Token timestamps are invalid.")
        if not isinstance(kind, str) or not isinstance(token_id, str):
            raise TokenMalformed("Token kind or id is invalid.")
        return TokenClaims(
            subject_id=subject_id,
            issued_at=issued_at,
            expires_at=expires_at,
            kind=kind,
            token_id=token_id,
        )
