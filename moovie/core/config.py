# moovie/core/config.py
from __future__ import annotations

"""
# Moovie — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; nothing required to boot the ad engine.
- In-memory persistence and frequency storage by default; PostgreSQL and
  Redis are opt-in per environment.
- Ad-engine knobs (frequency window, default popup cap, admin cookie) live
  here instead of being hard-coded in services.

## Usage
    from moovie.core.config import settings
"""

import logging
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


def _normalize_url_like(v: str | None) -> str:
    """Normalize to a string URL without trailing slash (empty stays empty)."""
    s = (v or "").strip()
    if not s:
        return ""
    if not (s.startswith("http://") or s.startswith("https://")):
        s = "http://" + s
    return s.rstrip("/")


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Persistence:
        - `ADS_REPOSITORY=memory` keeps networks/scripts/zones in-process.
        - `ADS_REPOSITORY=sql` uses the async SQLAlchemy repository.

    Ad engine:
        - `ADS_SOURCE_BASE_URL` switches the engine to read the admin API over
          HTTP (e.g. when the serving tier runs apart from the admin tier).
        - `ADS_FREQUENCY_BACKEND=redis` keeps per-visitor counters in Redis.
          The memory backend keeps at most `ADS_MEMORY_FREQUENCY_MAX_VISITORS`
          visitors, each for one capping window after its last write.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "Moovie Ads API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Redis / Rate limiting ─────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    DEFAULT_RATE_LIMIT: Optional[str] = None  # e.g., "200/minute"
    RATELIMIT_STORAGE_URI: Optional[str] = None

    # ── Database (PostgreSQL, optional) ───────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("postgres")
    POSTGRES_DB: str = "moovie"
    DATABASE_URL: Optional[str] = None  # full DSN override

    # ── CORS ─────────────────────────────────────────────────
    FRONTEND_ORIGINS: Optional[str] = None  # CSV

    # ── Admin (auth is mocked; these only gate the admin API) ─
    ADMIN_SESSION_COOKIE: str = "admin_session"
    ADMIN_API_TOKEN: Optional[SecretStr] = None

    # ── Ad engine ─────────────────────────────────────────────
    ADS_REPOSITORY: Literal["memory", "sql"] = "memory"
    ADS_DATA_PATH: Optional[str] = None
    ADS_SOURCE_BASE_URL: Optional[str] = None
    ADS_SOURCE_TIMEOUT_SECONDS: float = Field(5.0, gt=0, le=60)
    ADS_FREQUENCY_BACKEND: Literal["memory", "redis"] = "memory"
    ADS_FREQUENCY_WINDOW_SECONDS: int = Field(24 * 60 * 60, ge=60)
    ADS_DEFAULT_POPUP_CAP: int = Field(2, ge=0)
    ADS_MEMORY_FREQUENCY_MAX_VISITORS: int = Field(50_000, ge=1)
    VISITOR_COOKIE: str = "moovie_vid"
    VISITOR_COOKIE_MAX_AGE: int = Field(365 * 24 * 60 * 60, ge=60)

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _normalize_frontend_csv(cls, v):
        return None if v is None else ",".join(_split_csv(str(v)))

    @field_validator("ADS_SOURCE_BASE_URL", mode="before")
    @classmethod
    def _normalize_source_base(cls, v) -> Optional[str]:
        return _normalize_url_like(v) or None

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy DSN (explicit `DATABASE_URL` wins)."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def frontend_origins_list(self) -> List[str]:
        return _split_csv(self.FRONTEND_ORIGINS)

    @property
    def ratelimit_storage(self) -> Optional[str]:
        """
        Storage URI for SlowAPI/limits; prefer RATELIMIT_STORAGE_URI,
        otherwise use REDIS_URL when present.
        """
        return self.RATELIMIT_STORAGE_URI or (self.REDIS_URL if self.REDIS_URL else None)

    @property
    def frequency_window_ms(self) -> int:
        return int(self.ADS_FREQUENCY_WINDOW_SECONDS) * 1000


# Singleton instance
settings = Settings()
