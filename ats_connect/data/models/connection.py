"""
ATS connection data models.

A connection is one configured link to a provider account: where its API
lives, how to authenticate, how its payloads map onto the canonical schema,
and the rolling statistics of its syncs.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, HttpUrl, field_validator

from ats_connect.utils.constants import (
    DEFAULT_HOURLY_LIMIT,
    PROVIDER_DISPLAY_NAMES,
    PROVIDER_HOURLY_LIMITS,
    AtsProvider,
)

from .base import BaseDocument, EmbeddedModel


class SyncStats(EmbeddedModel):
    """Rolling statistics updated after every completed sync."""

    last_sync: Optional[dict[str, Any]] = None
    total_synced: int = 0
    total_runs: int = 0
    success_rate: float = 0.0


class AtsConnection(BaseDocument):
    """
    A configured provider account.

    ``credentials`` only ever lives in memory; the repository persists the
    sealed ``encrypted_credentials`` instead.
    """

    owner_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    provider: str
    api_endpoint: str

    credentials: dict[str, Any] = Field(default_factory=dict, exclude=True)
    encrypted_credentials: Optional[str] = None

    configuration: dict[str, Any] = Field(default_factory=dict)
    field_mapping: dict[str, Any] = Field(default_factory=dict)

    is_active: bool = True
    last_sync_at: Optional[datetime] = None
    sync_stats: SyncStats = Field(default_factory=SyncStats)

    @field_validator("provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Provider ids are stored lowercase."""
        return v.strip().lower()

    @property
    def provider_enum(self) -> Optional[AtsProvider]:
        """The provider as an enum member, or None when it is not supported."""
        return AtsProvider.from_value(self.provider)

    @property
    def provider_display_name(self) -> str:
        return PROVIDER_DISPLAY_NAMES.get(self.provider, self.provider.title())

    @property
    def hourly_rate_limit(self) -> int:
        """Maximum syncs this connection may start in a trailing hour."""
        return PROVIDER_HOURLY_LIMITS.get(self.provider, DEFAULT_HOURLY_LIMIT)

    @property
    def base_url(self) -> str:
        return self.api_endpoint.rstrip("/")

    def credential(self, key: str) -> str:
        """Credential value as a string; missing keys render as empty."""
        value = self.credentials.get(key)
        return "" if value is None else str(value)

    class Settings:
        """MongoDB collection settings."""

        name = "ats_connections"
        indexes = ["owner_id", "provider", "is_active"]


class ConnectionCreate(BaseModel):
    """Schema for creating a new connection."""

    name: str = Field(..., min_length=1, max_length=200)
    provider: AtsProvider
    api_endpoint: HttpUrl
    credentials: dict[str, Any]
    configuration: dict[str, Any] = Field(default_factory=dict)
    field_mapping: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class ConnectionUpdate(BaseModel):
    """Schema for updating an existing connection."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    api_endpoint: Optional[HttpUrl] = None
    credentials: Optional[dict[str, Any]] = None
    configuration: Optional[dict[str, Any]] = None
    field_mapping: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None
