"""Configuration management for taskapi."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Document store
    database_path: str = Field(default="data/tasks.db", description="SQLite file backing the document store")

    # Runtime environment (stack traces are only exposed in development)
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Runtime environment"
    )

    # HTTP server
    host: str = Field(default="127.0.0.1", description="Bind address for the HTTP server")
    port: int = Field(default=3000, description="Port for the HTTP server")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Pagination
    default_page_limit: int = Field(default=10, ge=1, description="Page size used when the client sends none")
    max_page_limit: int = Field(default=100, ge=1, description="Largest page size a client may request")

    @property
    def is_development(self) -> bool:
        """Whether debugging aids (stack traces in error bodies) are enabled."""
        return self.environment == "development"


# Application Constants
class Constants:
    """Application-wide constants."""

    # Identifiers: 12 random bytes rendered as hex
    RECORD_ID_BYTES: int = 12
    RECORD_ID_LENGTH: int = 24

    # Task field bounds
    TITLE_MIN_LENGTH: int = 3
    TITLE_MAX_LENGTH: int = 100
    DESCRIPTION_MAX_LENGTH: int = 500

    # List endpoint control parameters (everything else is a filter)
    RESERVED_QUERY_KEYS: frozenset[str] = frozenset({"page", "sort", "limit", "fields"})
    DEFAULT_SORT: str = "deadline"
    DEFAULT_PAGE: int = 1

    # Collections
    TASKS_COLLECTION: str = "tasks"


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
