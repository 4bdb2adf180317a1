"""
Configuration management for the business manager backend.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. All services consume the shared `settings` instance so the
database, token and mail options stay consistent across the stack.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import AnyUrl, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    # General application settings
    API_TITLE: str = "Business Manager API"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|test|staging|production)$")
    LOG_LEVEL: str = "INFO"

    # Relational store
    DATABASE_URL: str = "sqlite+aiosqlite:///./bizmanager.db"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: PositiveInt = 5

    # Security / auth
    JWT_SECRET_KEY: str = "changeme"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: PositiveInt = 24 * 60
    PASSWORD_RESET_EXPIRE_MINUTES: PositiveInt = 60
    PASSWORD_RESET_MAX_ATTEMPTS: PositiveInt = 3
    PASSWORD_RESET_WINDOW_HOURS: PositiveInt = 24
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])

    # Optional Redis for rate limiting
    REDIS_URL: Optional[AnyUrl] = None
    RATE_LIMIT_PER_MINUTE: PositiveInt = 120

    # Outbound mail
    FRONTEND_URL: str = "http://localhost:3000"
    EMAIL_FROM: str = "noreply@bizmanager.local"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()


# Singleton-style settings instance for modules that prefer direct access.
settings = get_settings()
