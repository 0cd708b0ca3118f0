"""Application configuration with Pydantic Settings.

Settings are loaded from environment variables and .env files, read once when
the application is created, and threaded into the publishing pipeline as an
explicit context.

Examples:
    >>> from blogstore.config import get_settings
    >>> settings = get_settings()
    >>> settings.STORAGE_BACKEND
    <StorageBackendType.LOCAL: 'local'>

Tests:
    - tests/unit/test_config.py::TestSettings
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blogstore.storage.config import StorageBackendType, StorageConfig


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class Settings(BaseSettings):
    """Application settings.

    Attributes:
        DATABASE_URL: Metadata store connection string (SQLite or PostgreSQL)
        UPLOAD_TOKEN: Shared secret required on every upload; uploads are
            refused while it is unset
        ORIGINS: Allowed CORS origins
        STORAGE_BACKEND: Content store backend (local or memory)
        STORAGE_ROOT: Root directory for the local content store
        MAX_UPLOAD_BYTES: Per-file upload limit
        SLUG_RETRY_LIMIT: Insert attempts when a slug collides
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Metadata store
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./blogstore.db",
        description="Database connection string",
    )

    # Auth
    UPLOAD_TOKEN: str | None = Field(
        default=None,
        description="Shared secret expected in the 'token' form field",
    )

    # CORS
    ORIGINS: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins",
    )

    # Content store
    STORAGE_BACKEND: StorageBackendType = Field(
        default=StorageBackendType.LOCAL,
        description="Content store backend",
    )
    STORAGE_ROOT: str = Field(
        default="./output/blobs",
        description="Root directory for the local content store",
    )

    # Publishing
    MAX_UPLOAD_BYTES: int = Field(
        default=MAX_UPLOAD_BYTES,
        description="Maximum size of a single uploaded file in bytes",
        ge=1,
    )
    SLUG_RETRY_LIMIT: int = Field(
        default=5,
        description="Insert attempts when the slug is taken concurrently",
        ge=1,
        le=50,
    )

    # Application Settings
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL format."""
        valid_prefixes = ("sqlite", "postgresql", "postgres")
        if not any(v.startswith(prefix) for prefix in valid_prefixes):
            raise ValueError(
                f"DATABASE_URL must start with one of: {valid_prefixes}"
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite database."""
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def cors_origins(self) -> list[str]:
        """Origins handed to the CORS middleware.

        An empty ORIGINS list allows everything in debug mode and nothing
        otherwise.
        """
        if self.ORIGINS:
            return self.ORIGINS
        return ["*"] if self.DEBUG else []

    def get_storage_config(self) -> StorageConfig:
        """Build the content store configuration."""
        return StorageConfig(backend=self.STORAGE_BACKEND, root=self.STORAGE_ROOT)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: The application settings.
    """
    return Settings()
