"""
tests/conftest.py -- Shared test fixtures for the passport service.

This module provides:
  - settings / store / cache / clock: isolated unit-test collaborators
  - sessions: a SessionManager wired with the fixtures above
  - make_admin: helper that stores an admin the way the CLI does
  - api_client: TestClient with a patched lifespan for integration tests

Design: the identity store for integration tests uses a named shared-memory
SQLite URI (not plain :memory:) because TestClient runs sync route handlers in
a thread pool and plain :memory: DBs are per-connection. The token cache holds
a single sqlite3 connection, so plain :memory: works there.

Env vars must be set before any app import so get_settings() sees them.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("PASSWORD_SALT", "test-password-salt-0123456789abcdef01234")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
# Lowest bcrypt cost keeps the suite fast; the format is the same.
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from auth.captcha import CaptchaService
from auth.revocation import RevocationList
from auth.session import SessionManager
from auth.store import AdminStore
from auth.tokens import TokenService
from cache.store import TokenCache
from core.config import Settings, get_settings
from helpers import FakeClock
from main import create_admin

# ---------------------------------------------------------------------------
# Unit-test collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> Generator[AdminStore, None, None]:
    s = AdminStore(f"sqlite:///file:unit_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    yield s
    s.close()


@pytest.fixture
def cache(clock: FakeClock) -> Generator[TokenCache, None, None]:
    c = TokenCache(":memory:", clock=clock)
    yield c
    c.close()


@pytest.fixture
def tokens(settings: Settings, clock: FakeClock) -> TokenService:
    return TokenService(settings.secret_key, clock=clock)


@pytest.fixture
def captcha(cache: TokenCache) -> CaptchaService:
    return CaptchaService(cache, ttl=300)


@pytest.fixture
def sessions(
    store: AdminStore, tokens: TokenService, cache: TokenCache, captcha: CaptchaService, settings: Settings
) -> SessionManager:
    return SessionManager(
        store=store,
        tokens=tokens,
        revocations=RevocationList(cache),
        captcha=captcha,
        settings=settings,
    )


@pytest.fixture
def make_admin(store: AdminStore):
    """Return a factory: make_admin(name, password, enabled=True) -> admin id."""

    def _make(name: str = "admin", password: str = "secret123", enabled: bool = True) -> int:
        return create_admin(store, name, password, enabled=enabled)

    return _make


# ---------------------------------------------------------------------------
# Integration client
# ---------------------------------------------------------------------------


def _patch_lifespan(store: AdminStore, cache: TokenCache):
    """Return an async context manager that replaces the real lifespan.

    Wires the test stores into app.state so routes never touch the on-disk
    databases. The purge_task is a long-sleeping coroutine so shutdown can
    cancel a real asyncio.Task.
    """
    from api.main import build_sessions

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.admin_store = store
        app.state.cache = cache
        app.state.sessions, app.state.captcha = build_sessions(store, cache, get_settings())
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AdminStore], None, None]:
    """Yield (client, store) for API integration tests.

    An enabled admin "admin" / "secret123" exists before the client starts.
    """
    from api.main import app

    store = AdminStore(f"sqlite:///file:api_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    cache = TokenCache(":memory:")
    create_admin(store, "admin", "secret123")

    app.router.lifespan_context = _patch_lifespan(store, cache)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store

    cache.close()
    store.close()
