"""Unit tests for auth/store.py -- admin account persistence.

Covers:
- in-memory URIs get an explicit StaticPool; file URIs keep the default pool
- rows written on one thread are visible from another (TestClient workers)
- update_admin() rejects columns outside the whitelist
"""

from __future__ import annotations

import threading
import uuid

import pytest
from sqlalchemy.pool import StaticPool

from auth.models import Admin
from auth.store import AdminStore


def _admin(name: str = "admin") -> Admin:
    return Admin(name=name, password="digest", password_salt="salt")


def test_named_memory_url_uses_static_pool(store: AdminStore) -> None:
    assert isinstance(store.engine.pool, StaticPool)


def test_file_url_keeps_default_pool(tmp_path) -> None:
    s = AdminStore(f"sqlite:///{tmp_path / 'admins.db'}")
    try:
        assert not isinstance(s.engine.pool, StaticPool)
    finally:
        s.close()


def test_rows_visible_across_threads() -> None:
    s = AdminStore(f"sqlite:///file:threads_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    try:
        admin_id = s.create_admin(_admin())
        seen: list = []
        worker = threading.Thread(target=lambda: seen.append(s.get_by_id(admin_id)))
        worker.start()
        worker.join()
        assert seen[0] is not None and seen[0].name == "admin"
    finally:
        s.close()


def test_update_admin(store: AdminStore) -> None:
    admin_id = store.create_admin(_admin())
    assert store.update_admin(admin_id, status=False, last_ip="192.0.2.1")
    admin = store.get_by_id(admin_id)
    assert admin.status is False
    assert admin.last_ip == "192.0.2.1"
    assert not store.update_admin(admin_id + 100, nickname="x")


def test_update_admin_rejects_unknown_column(store: AdminStore) -> None:
    admin_id = store.create_admin(_admin())
    with pytest.raises(ValueError):
        store.update_admin(admin_id, name="renamed")


def test_has_admins(store: AdminStore) -> None:
    assert not store.has_admins()
    store.create_admin(_admin())
    assert store.has_admins()
