"""Configuration management for CrudBase.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once at
startup, together with the collection definitions, and is immutable during
runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables prefixed with
    ``CRUDBASE_`` and from .env files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CRUDBASE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "CrudBase"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1

    # Collection Definitions
    collection_definition_folder: str = Field(
        default="./collections",
        description="Folder containing one JSON collection definition per file",
    )

    # Generated Schema Settings
    crud_limit_constraint_enabled: bool = True
    crud_max_limit: int = Field(default=200, ge=1)

    # Helper Routes
    helpers_prefix: str = "/-/"

    # CORS Settings
    cors_origins: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("helpers_prefix")
    @classmethod
    def validate_helpers_prefix(cls, v: str) -> str:
        """Helper routes are mounted under a prefix delimited by slashes."""
        if not (v.startswith("/") and v.endswith("/")):
            raise ValueError("helpers_prefix must start and end with '/'")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
