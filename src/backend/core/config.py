"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables or a local .env file.
"""

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Ornot"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # Identity
    TEMP_CODE_SALT: str = ""  # Required - loaded from environment
    ACCESS_TOKEN_SALT: str = ""  # Required - loaded from environment
    TEMP_CODE_TTL_SECONDS: int = 1800
    VERIFY_LINK_BASE_URL: str = "https://ornot.vote/auth"

    @field_validator("TEMP_CODE_SALT", "ACCESS_TOKEN_SALT")
    @classmethod
    def validate_required_secrets(cls, v: str, info: Any) -> str:
        """Validate that required secrets are set."""
        if not v:
            raise ValueError(f"{info.field_name} must be set in environment")
        return v

    # Key-value store
    STORE_TIMEOUT_SECONDS: float = 5.0
    STORE_TABLE_PREFIX: str = "ornot"

    # Azure Storage (Tables backend; in-memory store is used when neither is set)
    AZURE_STORAGE_TABLE_ENDPOINT: str | None = None
    AZURE_STORAGE_CONNECTION_STRING: str | None = None  # For local dev only

    # Azure Communication Services (Email)
    AZURE_COMMUNICATION_CONNECTION_STRING: str | None = None
    AZURE_EMAIL_SENDER_ADDRESS: str | None = None
    EMAIL_SEND_TIMEOUT_SECONDS: float = 10.0

    # CORS - stored as comma-separated string to avoid pydantic-settings JSON parsing issues
    CORS_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        import json

        try:
            return json.loads(self.CORS_ORIGINS)
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def azure_tables_enabled(self) -> bool:
        """Check if Azure Table Storage is configured."""
        return bool(self.AZURE_STORAGE_CONNECTION_STRING or self.AZURE_STORAGE_TABLE_ENDPOINT)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
