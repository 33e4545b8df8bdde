"""
auth/store.py -- SQLAlchemy Core persistence layer for admin accounts.

Pattern: Repository + Data Mapper.
AdminStore is the repository; _row_to_admin is the mapper. The session manager
and route code never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  update_admin() only accepts whitelisted column names.

DB path: auth/passport_auth.db unless AUTH_DB_URL says otherwise.

Layer rule: no imports from api/, core/, or cache/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from auth.models import Admin

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'passport_auth.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("nickname", String(255), nullable=False, server_default=""),
    Column("password", String(128), nullable=False),  # bcrypt hash
    Column("password_salt", String(64), nullable=False),  # bcrypt salt
    Column("status", Integer, nullable=False, server_default="1"),
    Column("last_active", Integer),  # unix seconds
    Column("last_ip", String(45)),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_url(db_url: str) -> bool:
    return db_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in db_url


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AdminStore:
    """Repository for Admin entities.

    Usage:
        store = AdminStore()
        store.create_admin(Admin(name="admin", password=digest, password_salt=salt))
        admin = store.get_by_name("admin")
        store.close()
    """

    # Columns update_admin() may write. Anything else is rejected before SQL.
    _UPDATABLE: frozenset = frozenset({"nickname", "password", "password_salt", "status", "last_active", "last_ip"})

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        engine_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if _is_memory_url(db_url):
                # One connection shared by every thread keeps the in-memory DB
                # alive and visible to TestClient's worker threads.
                engine_args["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def has_admins(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM admins")).scalar()
        return (result or 0) > 0

    def create_admin(self, admin: Admin) -> int:
        """Insert a new admin and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the name already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _admins.insert().values(
                    name=admin.name,
                    nickname=admin.nickname,
                    password=admin.password,
                    password_salt=admin.password_salt,
                    status=1 if admin.status else 0,
                    last_active=admin.last_active,
                    last_ip=admin.last_ip,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_name(self, name: str) -> Admin | None:
        """Look up an admin by exact name (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.name == name)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def get_by_id(self, admin_id: int) -> Admin | None:
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.id == admin_id)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def update_admin(self, admin_id: int, **fields) -> bool:
        """Update mutable fields on an existing admin.

        Only keys in _UPDATABLE are accepted; unknown keys raise ValueError.
        status must be passed as bool; this method converts to int for SQLite.

        Returns True if a row was updated, False if admin_id was not found.
        """
        unknown = set(fields) - self._UPDATABLE
        if unknown:
            raise ValueError(f"Unknown admin fields: {sorted(unknown)!r}")
        if not fields:
            return False
        if "status" in fields:
            fields["status"] = 1 if fields["status"] else 0
        with self.engine.connect() as conn:
            result = conn.execute(_admins.update().where(_admins.c.id == admin_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_admin(row) -> Admin:
    return Admin(
        id=row.id,
        name=row.name,
        nickname=row.nickname,
        password=row.password,
        password_salt=row.password_salt,
        status=bool(row.status),
        last_active=row.last_active,
        last_ip=row.last_ip,
        created_at=row.created_at,
    )
