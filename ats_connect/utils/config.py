"""
Configuration management for ATS Connect.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent
PACKAGE_DIR = ROOT_DIR / "ats_connect"
LOGS_DIR = ROOT_DIR / "logs"


class DatabaseSettings(BaseSettings):
    """MongoDB database configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "ats_connect"
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def connection_string(self) -> str:
        """Generate MongoDB connection string."""
        if self.username and self.password:
            return f"mongodb://{self.username}:{self.password}@{self.host}:{self.port}"
        return f"mongodb://{self.host}:{self.port}"


class SyncSettings(BaseSettings):
    """Provider sync and webhook processing configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    # Outbound provider calls (seconds)
    request_timeout: float = 60.0
    test_timeout: float = 30.0

    # Record-level worker pool; 1 keeps processing sequential
    max_workers: int = Field(default=1, ge=1, le=32)

    # Pagination ceiling when a connection enables paging
    max_pages: int = Field(default=1, ge=1)

    # Webhooks handled per process-webhooks batch
    webhook_batch_size: int = 100


class SecuritySettings(BaseSettings):
    """Credential encryption configuration."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    # Fernet key (urlsafe base64, 32 bytes)
    encryption_key: Optional[str] = None


class ApiSettings(BaseSettings):
    """HTTP surface configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    title: str = "ATS Connect"
    host: str = "127.0.0.1"
    port: int = 8000


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = LOGS_DIR / "ats_connect.log"
    audit_file_path: Path = LOGS_DIR / "audit.jsonl"
    rotation: str = "10 MB"
    retention: str = "30 days"
    console_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "ATS-Connect"
    version: str = "0.1.0"
    description: str = "Applicant Tracking System integration engine"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


# Convenience exports
settings = get_settings()
