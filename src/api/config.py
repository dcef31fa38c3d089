"""
API configuration settings.

Loads configuration from environment variables with the API_ prefix.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List
from functools import lru_cache


class APISettings(BaseSettings):
    """
    API configuration settings.

    Loaded from environment variables with API_ prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="API_",
        case_sensitive=True,
        extra="ignore",
    )

    # API Metadata
    API_TITLE: str = "Dynamic Table Engine API"
    API_DESCRIPTION: str = "Generic rows, columns, foreign keys and views over caller-defined tables"
    API_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # Server Configuration
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    ENVIRONMENT: str = Field(default="development", description="Environment (development, staging, production)")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Log level")

    # CORS Configuration
    ENABLE_CORS: bool = Field(default=True, description="Enable CORS")
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins"
    )
    CORS_METHODS: List[str] = Field(default=["*"], description="Allowed HTTP methods")
    CORS_HEADERS: List[str] = Field(default=["*"], description="Allowed headers")

    # Documentation
    ENABLE_DOCS: bool = Field(default=True, description="Enable API documentation")

    # Metadata tables are created on startup when missing (use Alembic in production)
    CREATE_TABLES_ON_STARTUP: bool = Field(default=True, description="Create metadata tables on startup")

    @field_validator('CORS_ORIGINS', 'CORS_METHODS', 'CORS_HEADERS', mode='before')
    @classmethod
    def split_string_to_list(cls, value):
        """Convert comma-separated string to list."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(',') if item.strip()]
        return value


@lru_cache()
def get_api_settings() -> APISettings:
    """
    Get cached API settings instance.

    Returns:
        APISettings instance
    """
    return APISettings()
