"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the Funko store happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead, or receive a Settings instance through a constructor.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_key -> JWT_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Dev mode (DEBUG=true) generates a JWT_KEY
      with a warning when none is set. Production mode leaves it empty and
      auth.tokens.TokenService refuses to start [ConfigurationError].

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, cache/, catalog/, or notifications/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("funkostore.config")

DEFAULT_TOKEN_MINUTES = 60
DEFAULT_ISSUER = "TiendaApi"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The signing key is the only
    value the application cannot run without (see auth.tokens).
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
    database_url: str = "sqlite:///funkostore.db"

    # ------------------------------------------------------------------
    # JWT
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured".
    jwt_key: str = ""
    jwt_issuer: str = DEFAULT_ISSUER
    jwt_audience: str = DEFAULT_ISSUER
    jwt_expire_minutes: int = DEFAULT_TOKEN_MINUTES

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    # Empty string selects the in-process MemoryCache.
    redis_url: str = ""
    cache_ttl_seconds: int = 300

    # ------------------------------------------------------------------
    # Email (optional -- empty smtp_host means log-only delivery)
    # ------------------------------------------------------------------

    admin_email: str = ""
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from: str = "no-reply@funkostore.local"
    smtp_use_tls: bool = True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    signin_rate_limit: str = "10/minute"
    signup_rate_limit: str = "5/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("jwt_issuer", "jwt_audience", mode="before")
    @classmethod
    def default_blank_issuer(cls, value):
        """Blank issuer/audience fall back to the fixed default."""
        if value is None or not str(value).strip():
            return DEFAULT_ISSUER
        return value

    @field_validator("jwt_expire_minutes", mode="before")
    @classmethod
    def default_unparsable_expiry(cls, value):
        """JWT_EXPIRE_MINUTES that is unset, blank or not an integer falls back to 60."""
        try:
            minutes = int(str(value).strip())
        except (TypeError, ValueError):
            return DEFAULT_TOKEN_MINUTES
        return minutes if minutes >= 0 else DEFAULT_TOKEN_MINUTES

    @model_validator(mode="after")
    def generate_dev_key(self) -> "Settings":
        """Auto-generate a signing key in dev mode.

        Tokens signed with a generated key do not survive a restart, which is
        acceptable for local development only. Outside dev mode the key stays
        empty and the token service raises at construction.
        """
        if not self.jwt_key and self.debug:
            self.jwt_key = secrets.token_hex(32)
            logger.warning("WARNING: Using auto-generated JWT_KEY. Tokens will not persist across restarts.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
