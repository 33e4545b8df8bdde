"""
cache/store.py -- SQLite-backed key/value cache with per-entry expiry.

Holds the short-lived session state: the token revocation denylist and
outstanding captcha codes. Every entry carries its own TTL; reads ignore
expired rows and purge_expired() trims them in bulk.

Usage:
    cache = TokenCache()
    cache.put("revoked:<digest>", "out", ttl=300)
    cache.has("revoked:<digest>")        # True until the TTL elapses
    code = cache.pull("captcha:<key>")   # read and delete in one call
    cache.purge_expired()                # call periodically to trim old entries
"""

import json
import sqlite3
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

_DEFAULT_DB = Path(__file__).parent / "passport_cache.db"

_DDL = """
CREATE TABLE IF NOT EXISTS token_cache (
    cache_key   TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    expires_at  REAL NOT NULL
);
"""


class TokenCache:
    def __init__(
        self,
        db_path: Union[str, Path] = _DEFAULT_DB,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False, isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_DDL)

    def put(self, key: str, value: Any, ttl: int) -> None:
        """Store value under key for ttl seconds, replacing any existing entry.

        Writing the same key twice is harmless: the row is simply replaced.
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._conn.execute(
            "INSERT OR REPLACE INTO token_cache (cache_key, value, expires_at) VALUES (?, ?, ?)",
            (key, json.dumps(value), self._clock() + ttl),
        )

    def has(self, key: str) -> bool:
        """Return True if key exists and hasn't expired."""
        row = self._conn.execute(
            "SELECT 1 FROM token_cache WHERE cache_key = ? AND expires_at > ?",
            (key, self._clock()),
        ).fetchone()
        return row is not None

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for key, or None if missing or expired."""
        row = self._conn.execute(
            "SELECT value, expires_at FROM token_cache WHERE cache_key = ?",
            (key,),
        ).fetchone()
        if row is None:
            return None
        value, expires_at = row
        if expires_at <= self._clock():
            self.delete(key)
            return None
        return json.loads(value)

    def pull(self, key: str) -> Optional[Any]:
        """Return the cached value for key and delete it.

        DELETE ... RETURNING makes the read and the delete a single statement,
        so two concurrent callers can never both receive the same value.
        """
        rows = self._conn.execute(
            "DELETE FROM token_cache WHERE cache_key = ? RETURNING value, expires_at",
            (key,),
        ).fetchall()
        if not rows:
            return None
        value, expires_at = rows[0]
        if expires_at <= self._clock():
            return None
        return json.loads(value)

    def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM token_cache WHERE cache_key = ?", (key,))

    def purge_expired(self) -> int:
        """Delete every expired entry. Returns number of rows removed."""
        cursor = self._conn.execute("DELETE FROM token_cache WHERE expires_at <= ?", (self._clock(),))
        return cursor.rowcount

    def close(self) -> None:
        self._conn.close()
