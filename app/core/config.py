# app/core/config.py
from __future__ import annotations

"""
# ALPHA Podcast Platform — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- One DSN knob (`DATABASE_URL`) that accepts Postgres (asyncpg) or SQLite (aiosqlite).
- CSV → list helpers for CORS.
- Email is optional: without SMTP every message is logged (DRY-RUN).

## Usage
    from app.core.config import settings
"""

import logging
from pathlib import Path
from typing import List, Literal, Optional, Union

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


def _to_async_dsn(url: str) -> str:
    """Map sync driver prefixes to their async counterparts."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://") and "+aiosqlite" not in url:
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - `JWT_SECRET_KEY` signs access tokens **and** peppers OTP digests.
        - Access tokens live 30 days by default.

    Notes:
        - `DATABASE_URL` wins over the `POSTGRES_*` pieces when set.
        - `ADMIN_EMAIL` receives account-deletion notices and contact messages.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "ALPHA Podcast Platform API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENV: Literal["development", "staging", "production", "test"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30 * 24 * 60, ge=5, le=90 * 24 * 60)

    # ── One-time codes ────────────────────────────────────────
    OTP_TTL_MINUTES: int = Field(10, ge=1, le=60)
    OTP_LENGTH: int = Field(6, ge=4, le=8)

    # ── Redis / Rate limiting ─────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True

    # ── Database ──────────────────────────────────────────────
    DATABASE_URL: Optional[str] = None
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("postgres")
    POSTGRES_DB: str = "alpha_podcasts"
    DB_CREATE_ALL: bool = True  # create missing tables at startup
    RESUME_DELETION_JOBS: bool = True

    # ── CORS ─────────────────────────────────────────────────
    BACKEND_CORS_ORIGINS: Union[List[str], str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )

    # ── Uploads ──────────────────────────────────────────────
    UPLOADS_URL_PREFIX: str = "/uploads"

    # ── Email ────────────────────────────────────────────────
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[SecretStr] = None
    EMAIL_FROM: str = "no-reply@alphapodcasts.app"
    EMAIL_FROM_NAME: str = "ALPHA Podcast Platform"
    ADMIN_EMAIL: str = "admin@alphapodcasts.app"
    EMAIL_TEMPLATE_DIR: Path = Path(__file__).resolve().parent.parent / "templates" / "emails"
    EMAIL_STRICT_LOCAL: bool = False  # True → really send outside production

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    @field_validator("UPLOADS_URL_PREFIX", mode="before")
    @classmethod
    def _normalize_uploads_prefix(cls, v: str | None) -> str:
        s = (v or "/uploads").strip().replace("\\", "/").rstrip("/")
        return s if s.startswith("/") else f"/{s}"

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() == "development"

    @property
    def async_database_url(self) -> str:
        """Async SQLAlchemy DSN."""
        if self.DATABASE_URL:
            return _to_async_dsn(self.DATABASE_URL)
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def cors_origins_list(self) -> List[str]:
        if isinstance(self.BACKEND_CORS_ORIGINS, str):
            return _split_csv(self.BACKEND_CORS_ORIGINS)
        return [str(u).rstrip("/") for u in (self.BACKEND_CORS_ORIGINS or [])]


# Singleton instance
settings = Settings()
