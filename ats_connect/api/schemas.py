"""
Request and response bodies of the HTTP surface.

Credentials are write-only: responses list which credential keys are set,
never their values.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from ats_connect.data.models import AtsConnection
from ats_connect.utils.constants import SyncType


class ConnectionOut(BaseModel):
    id: str
    owner_id: Optional[str] = None
    name: str
    provider: str
    provider_display_name: str
    api_endpoint: str
    credential_keys: list[str] = Field(default_factory=list)
    configuration: dict[str, Any] = Field(default_factory=dict)
    field_mapping: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    last_sync_at: Optional[datetime] = None
    sync_stats: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, connection: AtsConnection) -> "ConnectionOut":
        return cls(
            id=str(connection.id),
            owner_id=connection.owner_id,
            name=connection.name,
            provider=connection.provider,
            provider_display_name=connection.provider_display_name,
            api_endpoint=connection.api_endpoint,
            credential_keys=sorted(connection.credentials),
            configuration=connection.configuration,
            field_mapping=connection.field_mapping,
            is_active=connection.is_active,
            last_sync_at=connection.last_sync_at,
            sync_stats=connection.sync_stats.model_dump(),
            created_at=connection.created_at,
            updated_at=connection.updated_at,
        )


class ConnectionTestOut(BaseModel):
    success: bool
    message: str
    status_code: Optional[int] = None
    response_time: Optional[float] = None


class SyncRequest(BaseModel):
    location: Optional[str] = None
    keywords: Optional[str] = None
    department: Optional[str] = None
    sync_type: SyncType = SyncType.FULL

    def filters(self) -> dict[str, str]:
        return self.model_dump(include={"location", "keywords", "department"}, exclude_none=True)


class SyncOut(BaseModel):
    success: bool
    message: str
    result: dict[str, Any]


class WebhookAck(BaseModel):
    accepted: bool = True
    webhook_id: Optional[str] = None
    event_type: str
    status: Optional[str] = None
    error: Optional[str] = None
