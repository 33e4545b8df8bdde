"""
auth/revocation.py -- Token denylist over the expiring cache.

A token that is revoked before its natural expiry is recorded here under
"revoked:" + SHA-256(token). The entry only needs to outlive the token itself;
after that the signature check rejects it anyway, so the cache TTL does the
cleanup.

Writes are idempotent (same key, same value), so two logouts racing on the
same tokens leave the same state behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from auth.tokens import hash_token

if TYPE_CHECKING:
    from cache.store import TokenCache

_KEY_PREFIX = "revoked:"
_MARKER = "out"


class RevocationList:
    def __init__(self, cache: TokenCache) -> None:
        self._cache = cache

    def revoke(self, token: str, ttl: int) -> None:
        self._cache.put(_KEY_PREFIX + hash_token(token), _MARKER, ttl)

    def is_revoked(self, token: str) -> bool:
        return self._cache.has(_KEY_PREFIX + hash_token(token))
