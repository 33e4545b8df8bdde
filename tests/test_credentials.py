"""Unit tests for auth/credentials.py -- password digests and credential checks.

Covers:
- the stored digest is bcrypt over the peppered client digest
- authenticate_admin() error order: captcha, lookup, password, status
- a failed attempt never modifies the stored record
"""

from __future__ import annotations

import hashlib
import hmac

import bcrypt
import pytest

from auth.captcha import CaptchaService
from auth.credentials import (
    authenticate_admin,
    challenge_key,
    client_digest,
    generate_salt,
    hash_password,
    verify_password,
)
from auth.errors import AccountDisabled, AdminNotFound, ChallengeFailed, InvalidCredentials
from auth.models import Admin
from auth.store import AdminStore
from core.config import Settings


class TestDigest:
    def test_client_digest_is_md5_hex(self) -> None:
        assert client_digest("secret123") == hashlib.md5(b"secret123").hexdigest()
        assert len(client_digest("x")) == 32

    def test_challenge_key_is_md5_of_name(self) -> None:
        assert challenge_key("admin") == hashlib.md5(b"admin").hexdigest()

    def test_hash_is_deterministic_for_a_record_salt(self) -> None:
        salt = generate_salt(4)
        assert hash_password("pw", salt, "global") == hash_password("pw", salt, "global")

    def test_each_input_changes_the_digest(self) -> None:
        salt = generate_salt(4)
        base = hash_password("pw", salt, "global")
        assert hash_password("pw2", salt, "global") != base
        assert hash_password("pw", generate_salt(4), "global") != base
        assert hash_password("pw", salt, "global2") != base

    def test_digest_is_a_bcrypt_hash(self) -> None:
        salt = generate_salt(4)
        digest = hash_password(client_digest("secret123"), salt, "global")
        assert digest.startswith("$2b$04$")
        assert digest.startswith(salt)
        assert bcrypt.checkpw(
            hmac.new(b"global", client_digest("secret123").encode(), hashlib.sha256).hexdigest().encode(),
            digest.encode(),
        )
        assert "secret123" not in digest

    def test_salt_carries_the_cost_factor(self) -> None:
        assert generate_salt(5).startswith("$2b$05$")

    def test_salts_are_unique(self) -> None:
        assert len({generate_salt(4) for _ in range(50)}) == 50

    def test_verify_rejects_non_bcrypt_record(self) -> None:
        admin = Admin(name="legacy", password="not-a-bcrypt-hash", password_salt="x")
        assert verify_password("anything", admin, "global") is False

    def test_verify_round_trip(self) -> None:
        salt = generate_salt(4)
        admin = Admin(name="a", password=hash_password("pw", salt, "global"), password_salt=salt)
        assert verify_password("pw", admin, "global")
        assert not verify_password("pw", admin, "other-global")


class TestAuthenticateAdmin:
    def _attempt(self, store, captcha, settings, name="admin", password="secret123", code=None):
        if code is None:
            code = captcha.issue(challenge_key(name))
        return authenticate_admin(
            store, captcha, name, client_digest(password), code, settings.password_salt, rounds=settings.password_hash_rounds
        )

    def test_valid_credentials(
        self, store: AdminStore, captcha: CaptchaService, settings: Settings, make_admin
    ) -> None:
        admin_id = make_admin()
        admin = self._attempt(store, captcha, settings)
        assert admin.id == admin_id

    def test_bad_captcha_checked_first(
        self, store: AdminStore, captcha: CaptchaService, settings: Settings
    ) -> None:
        """Even for an unknown name, the captcha error wins."""
        with pytest.raises(ChallengeFailed):
            self._attempt(store, captcha, settings, name="ghost", code="zzzz")

    def test_unknown_name(self, store: AdminStore, captcha: CaptchaService, settings: Settings) -> None:
        with pytest.raises(AdminNotFound):
            self._attempt(store, captcha, settings, name="ghost")

    def test_unknown_name_still_runs_a_bcrypt_check(
        self, store: AdminStore, captcha: CaptchaService, settings: Settings, monkeypatch
    ) -> None:
        calls: list[bytes] = []
        real_checkpw = bcrypt.checkpw

        def counting_checkpw(password: bytes, hashed: bytes) -> bool:
            calls.append(hashed)
            return real_checkpw(password, hashed)

        monkeypatch.setattr(bcrypt, "checkpw", counting_checkpw)
        with pytest.raises(AdminNotFound):
            self._attempt(store, captcha, settings, name="ghost")
        assert len(calls) == 1
        assert calls[0].startswith(f"$2b${settings.password_hash_rounds:02d}$".encode())

    def test_wrong_password(
        self, store: AdminStore, captcha: CaptchaService, settings: Settings, make_admin
    ) -> None:
        make_admin()
        with pytest.raises(InvalidCredentials):
            self._attempt(store, captcha, settings, password="wrong")

    def test_wrong_password_leaves_record_untouched(
        self, store: AdminStore, captcha: CaptchaService, settings: Settings, make_admin
    ) -> None:
        make_admin()
        before = store.get_by_name("admin")
        with pytest.raises(InvalidCredentials):
            self._attempt(store, captcha, settings, password="wrong")
        assert store.get_by_name("admin") == before

    def test_disabled_account(
        self, store: AdminStore, captcha: CaptchaService, settings: Settings, make_admin
    ) -> None:
        make_admin(enabled=False)
        with pytest.raises(AccountDisabled):
            self._attempt(store, captcha, settings)

    def test_disabled_account_with_wrong_password_reports_password(
        self, store: AdminStore, captcha: CaptchaService, settings: Settings, make_admin
    ) -> None:
        make_admin(enabled=False)
        with pytest.raises(InvalidCredentials):
            self._attempt(store, captcha, settings, password="wrong")
