"""
tests/test_cli.py -- Tests for the admin CLI in main.py.

Covers:
  - create-admin stores a digest the login flow accepts
  - duplicate names are reported, not raised
  - set-status toggles the account flag
  - purge-cache removes expired entries from the configured cache file
"""

from __future__ import annotations

import time

import pytest

from auth.credentials import client_digest, verify_password
from auth.store import AdminStore
from cache.store import TokenCache
from core.config import get_settings
from main import main


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at throwaway databases under tmp_path."""
    monkeypatch.setenv("AUTH_DB_URL", f"sqlite:///{tmp_path / 'auth.db'}")
    monkeypatch.setenv("CACHE_DB_PATH", str(tmp_path / "cache.db"))
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


def test_create_admin(cli_env, capsys) -> None:
    assert main(["create-admin", "--name", "root", "--password", "secret123"]) == 0
    assert "Created admin 'root'" in capsys.readouterr().out

    store = AdminStore(cli_env.auth_db_url)
    try:
        admin = store.get_by_name("root")
        assert admin.nickname == "root"
        assert admin.status is True
        assert admin.password != "secret123"
        assert verify_password(client_digest("secret123"), admin, cli_env.password_salt)
    finally:
        store.close()


def test_create_admin_disabled_with_nickname(cli_env) -> None:
    main(["create-admin", "--name", "ops", "--password", "pw", "--nickname", "Ops Team", "--disabled"])
    store = AdminStore(cli_env.auth_db_url)
    try:
        admin = store.get_by_name("ops")
        assert admin.nickname == "Ops Team"
        assert admin.status is False
    finally:
        store.close()


def test_duplicate_name(cli_env, capsys) -> None:
    main(["create-admin", "--name", "root", "--password", "a"])
    assert main(["create-admin", "--name", "root", "--password", "b"]) == 1
    assert "already exists" in capsys.readouterr().out


def test_set_status(cli_env) -> None:
    main(["create-admin", "--name", "root", "--password", "a"])
    assert main(["set-status", "--name", "root", "--disable"]) == 0
    store = AdminStore(cli_env.auth_db_url)
    try:
        assert store.get_by_name("root").status is False
    finally:
        store.close()
    assert main(["set-status", "--name", "root", "--enable"]) == 0


def test_set_status_unknown_admin(cli_env) -> None:
    assert main(["set-status", "--name", "ghost", "--enable"]) == 1


def test_purge_cache(cli_env, capsys) -> None:
    past = TokenCache(cli_env.cache_db_path, clock=lambda: time.time() - 60)
    past.put("revoked:old", "out", ttl=1)
    past.put("revoked:live", "out", ttl=3600)
    past.close()

    assert main(["purge-cache"]) == 0
    assert "Removed 1 expired cache entry" in capsys.readouterr().out


def test_no_command_prints_help(cli_env) -> None:
    assert main([]) == 1
