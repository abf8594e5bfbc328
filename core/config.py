"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Taskify happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Development mode falls back to a local
      SQLite file with a warning; production mode refuses to start without an
      explicit DATABASE_URL and always issues Secure cookies.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or tasks/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("taskify.config")

_DEV_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'taskify.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    environment: str = "development"  # "development" | "production"
    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either picks the dev SQLite file or raises, so callers never see "".
    database_url: str = ""

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_cookie_name: str = "taskify-session-id"
    session_ttl_days: int = 7
    secure_cookies: bool = False
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:5173"]
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Rate limiting (fixed window, keyed by client IP)
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    rate_limit: str = "100/15 minutes"
    login_rate_limit: str = "10/minute"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_runtime(self) -> "Settings":
        """Enforce the database and cookie policy for the current environment.

        Development: a missing DATABASE_URL falls back to ./taskify.db with a
            warning. Data survives restarts but is local to the checkout.

        Production: a missing DATABASE_URL is a hard startup failure, and
            session cookies are always marked Secure regardless of
            SECURE_COOKIES.

        Both modes: SESSION_TTL_DAYS must be positive and BCRYPT_ROUNDS must
            stay inside the range bcrypt accepts (4..31).
        """
        if not self.database_url:
            if self.is_production:
                raise ValueError(
                    "DATABASE_URL is required in production mode. "
                    "Set DATABASE_URL in your environment or .env file."
                )
            self.database_url = _DEV_DB_URL
            logger.warning("DATABASE_URL not set -- using local SQLite file %s", _DEV_DB_URL)
        if self.is_production:
            self.secure_cookies = True
        if self.session_ttl_days <= 0:
            raise ValueError("SESSION_TTL_DAYS must be a positive number of days.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
