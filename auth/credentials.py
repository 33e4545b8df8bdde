"""
auth/credentials.py -- Password digests and the admin credential check.

Protocol: the login form never sends the plaintext password. The client sends
md5(plaintext) as 32 hex characters, and the server stores

    bcrypt(HMAC-SHA256(key=PASSWORD_SALT, msg=client_digest).hexdigest(), record_salt)

The record salt is a bcrypt salt (it carries the cost factor), so the stored
digest is deterministic for a given record and still pays bcrypt's work
factor on every check. The HMAC step mixes in the process-wide PASSWORD_SALT,
so a leaked table cannot be checked offline without the deployment secret.
Its 64-char hex output stays under bcrypt's 72-byte input limit.

authenticate_admin() follows the same timing-equalization rule as the rest of
the auth package [C1]: an unknown name still costs one bcrypt check against a
dummy hash of the same cost, so response time does not reveal whether the name
exists.

Layer rule: no imports from api/ or cache/.
"""

from __future__ import annotations

import hashlib
import hmac
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt

from auth.errors import AccountDisabled, AdminNotFound, ChallengeFailed, InvalidCredentials

if TYPE_CHECKING:
    from auth.captcha import CaptchaService
    from auth.models import Admin
    from auth.store import AdminStore

DEFAULT_ROUNDS = 12


def generate_salt(rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a fresh per-record bcrypt salt ("$2b$<rounds>$..." form)."""
    return bcrypt.gensalt(rounds).decode("utf-8")


def client_digest(plain: str) -> str:
    """Return the md5 hex digest a login form sends for a plaintext password."""
    return hashlib.md5(plain.encode("utf-8")).hexdigest()  # noqa: S324 -- wire format, not storage


def challenge_key(name: str) -> str:
    """Return the captcha key a login for `name` is checked against."""
    return hashlib.md5(name.encode("utf-8")).hexdigest()  # noqa: S324 -- lookup key only


def _peppered(password: str, global_salt: str) -> bytes:
    return hmac.new(global_salt.encode("utf-8"), password.encode("utf-8"), hashlib.sha256).hexdigest().encode("ascii")


def hash_password(password: str, record_salt: str, global_salt: str) -> str:
    """Return the stored digest for a client-side password digest."""
    return bcrypt.hashpw(_peppered(password, global_salt), record_salt.encode("utf-8")).decode("utf-8")


def verify_password(password: str, admin: Admin, global_salt: str) -> bool:
    """Return True if password matches the admin's stored bcrypt digest."""
    try:
        return bcrypt.checkpw(_peppered(password, global_salt), admin.password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


@lru_cache
def _dummy_hash(rounds: int) -> str:
    # Computed once per cost so only the first miss pays for gensalt.
    return bcrypt.hashpw(b"passport_timing_dummy", bcrypt.gensalt(rounds)).decode("utf-8")


def authenticate_admin(
    store: AdminStore,
    captcha: CaptchaService,
    name: str,
    password: str,
    captcha_code: str,
    global_salt: str,
    rounds: int = DEFAULT_ROUNDS,
) -> Admin:
    """Check a login attempt and return the matching Admin.

    Order: captcha first (it is consumed either way), then the record lookup,
    then the password, then account status. Raises ChallengeFailed,
    AdminNotFound, InvalidCredentials or AccountDisabled. rounds is the bcrypt
    cost of the dummy check run for unknown names; keep it equal to the cost
    the stored records use.
    """
    if not captcha.check(captcha_code, challenge_key(name)):
        raise ChallengeFailed("Captcha is incorrect.")

    admin = store.get_by_name(name)
    if admin is None:
        # Equalize timing -- do NOT skip the digest for unknown names [C1]
        bcrypt.checkpw(_peppered(password, global_salt), _dummy_hash(rounds).encode("utf-8"))
        raise AdminNotFound("Account error.")
    if not verify_password(password, admin, global_salt):
        raise InvalidCredentials("Account or password is incorrect.")
    if not admin.status:
        raise AccountDisabled("Account is disabled.")
    return admin
