"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the passport service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, access_expired_in -> ACCESS_EXPIRED_IN).

  @model_validator(mode="after"): Cross-field validation once every field is
      resolved. Dev mode generates missing secrets with a warning, production
      mode refuses to start without them.

Security notes:
  [M6] SECRET_KEY and PASSWORD_SALT shorter than 32 chars are rejected. JWT
       signing and the password digest both rely on their entropy.

  [M7] In production mode (DEBUG not set or false), a missing SECRET_KEY or
       PASSWORD_SALT is a hard startup failure. A random PASSWORD_SALT would
       make every stored password digest unverifiable after a restart.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or cache/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("passport.config")

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev value or raises, so callers never see "".
    secret_key: str = ""
    password_salt: str = ""
    # bcrypt cost for stored password digests. Applies to new records; old
    # records keep the cost baked into their salt.
    password_hash_rounds: int = 12

    # ------------------------------------------------------------------
    # Session lifetimes (seconds)
    # ------------------------------------------------------------------

    access_expired_in: int = 86400
    refresh_expired_in: int = 300
    captcha_expired_in: int = 300

    # Token-kind identifiers written into the "kind" claim. A refresh token
    # is never accepted where an access token is expected, and vice versa.
    access_token_kind: str = "access"
    refresh_token_kind: str = "refresh"

    # ------------------------------------------------------------------
    # Revocation
    # ------------------------------------------------------------------

    # Lower bound on a denylist entry TTL so a token revoked in its last
    # second still lands in the cache.
    revocation_min_ttl: int = 1
    # Legacy behavior: keep both entries for the refresh token's full
    # lifetime (exp - iat) instead of each token's remaining lifetime.
    revoke_full_lifetime: bool = False

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    auth_db_url: str = f"sqlite:///{_ROOT / 'auth' / 'passport_auth.db'}"
    cache_db_path: str = str(_ROOT / "cache" / "passport_cache.db")

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    captcha_rate_limit: str = "30/minute"
    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Enforce SECRET_KEY / PASSWORD_SALT policy [M7].

        Dev mode (DEBUG=true): auto-generate a random value with a warning.
        Production mode: refuse to start if either is missing.
        Both modes: reject values shorter than 32 characters [M6].
        """
        for field in ("secret_key", "password_salt"):
            value = getattr(self, field)
            if not value:
                if not self.debug:
                    raise ValueError(
                        f"{field.upper()} is required in production mode. "
                        f"Set {field.upper()} in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                value = secrets.token_hex(32)
                setattr(self, field, value)
                logger.warning("WARNING: Using auto-generated %s. Sessions will not persist across restarts.", field.upper())
            if len(value) < 32:
                raise ValueError(f"{field.upper()} must be at least 32 characters.")
        if self.access_token_kind == self.refresh_token_kind:
            raise ValueError("ACCESS_TOKEN_KIND and REFRESH_TOKEN_KIND must differ.")
        if min(self.access_expired_in, self.refresh_expired_in, self.captcha_expired_in) <= 0:
            raise ValueError("Token and captcha lifetimes must be positive.")
        if not 4 <= self.password_hash_rounds <= 31:
            raise ValueError("PASSWORD_HASH_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
