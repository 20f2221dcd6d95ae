"""Application configuration module."""

from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Storage settings
    STORAGE_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./examlink.db"
    DB_CREATE_SCHEMA: bool = True
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: str = ""

    # API settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "ExamLink"
    CORS_ORIGINS: List[str] = ["*"]

    # Authoring settings
    ACCESS_TOKEN_LENGTH: int = 8
    ACCESS_TOKEN_ATTEMPTS: int = 5

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Only the in-memory and SQLAlchemy stores exist."""
        if v.lower() not in ("memory", "sql"):
            raise ValueError(f"Invalid storage backend: {v}. Must be 'memory' or 'sql'")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("ACCESS_TOKEN_LENGTH")
    @classmethod
    def validate_token_length(cls, v: int) -> int:
        if not 4 <= v <= 32:
            raise ValueError(f"Access token length must be between 4 and 32, got {v}")
        return v


# Create global settings instance
settings = Settings()
