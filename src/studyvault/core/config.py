"""Configuration management for StudyVault.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once at
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STUDYVAULT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "StudyVault"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Embedded Store Settings
    database_url: str = "sqlite+aiosqlite:///./sv_data/studyvault.db"
    store_name: str = "ForraNovaVault"
    schema_version: int = Field(default=2, ge=1)
    db_echo: bool = False

    # SQLite Pragmas
    db_journal_mode: Literal["WAL", "DELETE", "TRUNCATE", "PERSIST", "MEMORY", "OFF"] = "WAL"
    db_busy_timeout: int = 5000  # milliseconds

    # Quota for a single encoded record
    max_record_bytes: int = Field(
        default=50 * 1024 * 1024,
        gt=0,
        description="Largest encoded record accepted by save(), in bytes",
    )

    # Caller-side operation timeout used by the CLI
    op_timeout_seconds: float = 10.0

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Only embedded SQLite through the async aiosqlite driver is supported."""
        if not v.startswith("sqlite+aiosqlite://"):
            raise ValueError(
                "StudyVault is an embedded store and only supports sqlite+aiosqlite URLs "
                f"(got {v.split(':', 1)[0]!r})."
            )
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

    @property
    def database_path(self) -> str | None:
        """Filesystem path of the SQLite database, or None for in-memory."""
        return sqlite_database_path(self.database_url)


def sqlite_database_path(database_url: str) -> str | None:
    """Extract the file path from a SQLite URL.

    Returns None for in-memory databases
    (``sqlite+aiosqlite://`` or ``sqlite+aiosqlite:///:memory:``).
    """
    if ":///" not in database_url:
        return None
    path = database_url.split(":///", 1)[1]
    if not path or path.startswith(":memory:") or "mode=memory" in path:
        return None
    return path.split("?", 1)[0]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
