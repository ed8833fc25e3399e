"""
Centralized configuration management.

Follows Layer 5 rules:
- All secrets (DB URLs, JWT keys, credentials) MUST come from
  environment variables or a secure secret store (never hardcoded)
- Centralize configuration in this module
- Do not spread os.getenv calls all over the codebase
- Do not log secrets or environment values
"""
from __future__ import annotations
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Store ---
    STORE_BACKEND: Literal["postgres", "memory"] = Field(
        default="postgres", description="Document/credential store backend (postgres | memory)"
    )

    # --- Postgres ---
    PG_HOST: str = Field(default="localhost", description="PostgreSQL host")
    PG_PORT: int = Field(default=5432, description="PostgreSQL port")
    PG_DB: str = Field(default="tenantgate", description="PostgreSQL database name")
    PG_USER: str = Field(default="tenantgate", description="PostgreSQL user")
    PG_PASSWORD: str | None = Field(default=None, description="PostgreSQL password")
    PG_SSLMODE: str = Field(default="require", description="PostgreSQL SSL mode (require/disable)")
    PG_SCHEMA: str = Field(default="tenantgate,public", description="PostgreSQL schema")
    PG_POOL_MAX: int = Field(default=10, description="Max pooled connections")
    PG_STATEMENT_TIMEOUT_MS: int = Field(default=5000, description="Per-statement timeout in ms")

    # --- JWT ---
    JWT_SECRET: str = Field(..., description="JWT signing secret key")
    JWT_EXP_MIN: int = Field(default=120, description="JWT expiration in minutes")

    # --- Redis/Valkey ---
    REDIS_ENABLED: bool = Field(default=True, description="Cache tenant records in Redis")
    REDIS_HOST: str = Field(default="redis", description="Redis host")
    REDIS_PORT: int = Field(default=6379, description="Redis port")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password")
    REDIS_SSL: str = Field(default="false", description="Redis SSL enabled (true/false)")
    TENANT_CACHE_TTL: int = Field(default=3600, description="Tenant cache TTL in seconds")

    # --- Access codes ---
    CODE_SUFFIX_LENGTH: int = Field(default=4, ge=2, description="Random suffix length of access codes")
    CODE_MAX_ATTEMPTS: int = Field(default=5, ge=1, description="Attempts before giving up on a colliding code")

    # --- Profiles ---
    ELEVATED_PROFILE_STATUS: Literal["pending", "admin-bootstrap"] = Field(
        default="admin-bootstrap",
        description="Status given to manager/admin profiles created from an access code",
    )

    # --- Dev ---
    SEED_DEV_DATA: bool = Field(default=False, description="Seed a demo tenant and test accounts (memory backend only)")

    # --- Logging ---
    LOG_LEVEL: str = Field(default="INFO", description="Log level for the tenantgate logger")

    # --- CORS ---
    CORS_ORIGINS: str = Field(default="*", description="CORS allowed origins (comma-separated)")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
