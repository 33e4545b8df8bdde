"""
auth/errors.py -- Session error taxonomy.

Every rejection the session flows can produce is a SessionError subclass that
carries its own HTTP status and a stable machine-readable code. The API layer
installs one exception handler for the base class, so routes never build error
envelopes by hand.

SigningError is the only operational fault (misconfiguration); every other
class is a routine, expected rejection.

Layer rule: no imports from api/, core/, or cache/.
"""

from __future__ import annotations


class SessionError(Exception):
    """Base class for session-flow rejections mapped to HTTP responses."""

    status_code: int = 400
    code: str = "session_error"

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class RequestInvalid(SessionError):
    """A required field is missing or has the wrong size/format."""

    status_code = 400
    code = "validation_error"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class AdminNotFound(SessionError):
    status_code = 401
    code = "account_error"


class InvalidCredentials(SessionError):
    status_code = 401
    code = "bad_credentials"


class AccountDisabled(SessionError):
    status_code = 403
    code = "account_disabled"


class ChallengeFailed(SessionError):
    status_code = 400
    code = "captcha_failed"


class LoginVetoed(SessionError):
    """Raised by a before-login hook to stop the attempt."""

    status_code = 403
    code = "login_vetoed"


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TokenError(SessionError):
    """Token-level rejection. All subclasses are 401s."""

    status_code = 401
    code = "token_error"


class TokenMalformed(TokenError):
    code = "token_malformed"


class BadSignature(TokenError):
    code = "token_bad_signature"


class TokenExpired(TokenError):
    code = "token_expired"


class WrongTokenKind(TokenError):
    code = "token_wrong_kind"


class TokenRevoked(TokenError):
    code = "token_revoked"


class SubjectMismatch(SessionError):
    """The refresh token and the access-token context name different admins."""

    status_code = 403
    code = "subject_mismatch"


class SigningError(SessionError):
    """Token could not be signed. Indicates misconfiguration, never user error."""

    status_code = 500
    code = "signing_error"


class AuthenticationRequired(SessionError):
    """No access token was presented to a protected route."""

    status_code = 401
    code = "unauthorized"
