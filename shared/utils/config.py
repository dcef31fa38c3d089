"""
Configuration management using pydantic-settings.
Loads configuration from environment variables and .env file.

The dialect is chosen here once: a configured DB_HOST selects PostgreSQL,
otherwise an embedded SQLite file is used.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server database (PostgreSQL). Leaving DB_HOST unset selects SQLite.
    DB_HOST: str | None = None
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "tables"
    DB_SCHEMA: str = "public"

    # Embedded database (SQLite)
    SQLITE_PATH: str = "data/tables.db"
    SQLITE_DATABASE: str = "main"

    # Connection pool (ignored for SQLite)
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_POOL_PRE_PING: bool = True
    DATABASE_POOL_RECYCLE: int = 3600  # seconds
    DATABASE_ECHO: bool = False  # debug only

    @property
    def DATABASE_DIALECT(self) -> Literal["postgresql", "sqlite"]:
        """Name of the dialect selected by the environment."""
        return "postgresql" if self.DB_HOST else "sqlite"

    @property
    def DATABASE_URL(self) -> str:
        """Construct the async database URL from individual components."""
        if self.DATABASE_DIALECT == "postgresql":
            return (
                f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return f"sqlite+aiosqlite:///{Path(self.SQLITE_PATH).as_posix()}"

    @property
    def DEFAULT_DATABASE(self) -> str:
        """Physical database binding used when a table is registered without one."""
        if self.DATABASE_DIALECT == "postgresql":
            return self.DB_SCHEMA
        return self.SQLITE_DATABASE

    # Application Configuration
    APP_NAME: str = "Dynamic Table Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FILE: str | None = None


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
