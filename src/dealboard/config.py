"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    test = "test"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./dealboard.sqlite"
    DB_ECHO: bool = False

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # HTTP
    API_PREFIX: str = ""
    CORS_ALLOWED_ORIGINS: str = "*"

    # Dashboard client
    DEALBOARD_API_URL: str = "http://localhost:8000"
    DASHBOARD_STATE_FILE: str = str(Path.home() / ".dealboard" / "state.json")

    def get_cors_origins(self) -> list[str]:
        """Split the comma separated CORS origin list."""
        return [o.strip() for o in self.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]

    def get_api_prefix(self) -> str:
        """Return API_PREFIX with a leading slash and no trailing slash."""
        prefix = self.API_PREFIX.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = f"/{prefix}"
        return prefix


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
