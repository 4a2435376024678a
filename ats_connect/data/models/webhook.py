"""
Webhook model: an inbound provider event and its processing state.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from ats_connect.utils.constants import (
    MAX_WEBHOOK_RETRIES,
    UNKNOWN_EVENT_TYPE,
    WebhookEventType,
    WebhookStatus,
)

from .base import BaseDocument, PyObjectId, utcnow


class Webhook(BaseDocument):
    """
    A received webhook, persisted verbatim before it is processed.

    Deliveries are not deduplicated: the same provider event delivered twice
    is two records, each processed on its own.
    """

    connection_id: PyObjectId
    webhook_id: str
    event_type: str = UNKNOWN_EVENT_TYPE
    # Any JSON value; providers normally send an object
    payload: Any = Field(default_factory=dict)

    status: WebhookStatus = WebhookStatus.PENDING
    error_message: Optional[str] = None
    retry_count: int = Field(default=0, ge=0)

    received_at: datetime = Field(default_factory=utcnow)
    processed_at: Optional[datetime] = None

    # ----- State transitions -----

    def mark_processed(self) -> None:
        self.status = WebhookStatus.PROCESSED.value
        self.processed_at = utcnow()
        self.error_message = None

    def mark_failed(self, error: str) -> None:
        self.status = WebhookStatus.FAILED.value
        self.error_message = error
        self.retry_count += 1
        self.processed_at = utcnow()

    def reset_for_retry(self) -> None:
        """Return to pending; the retry counter is kept."""
        self.status = WebhookStatus.PENDING.value
        self.error_message = None
        self.processed_at = None

    # ----- Derived values -----

    @property
    def can_retry(self) -> bool:
        return self.status == WebhookStatus.FAILED and self.retry_count < MAX_WEBHOOK_RETRIES

    @property
    def processing_time(self) -> Optional[float]:
        """Seconds between receipt and the last processing attempt."""
        if self.processed_at is None:
            return None
        return (self.processed_at - self.received_at).total_seconds()

    @property
    def event_display_name(self) -> str:
        try:
            return WebhookEventType(self.event_type).display_name
        except ValueError:
            return self.event_type.replace("_", " ").title()

    @property
    def payload_summary(self) -> dict[str, Any]:
        """The handful of payload keys worth showing for this event type."""
        data = self.payload
        if not data:
            return {}
        if not isinstance(data, dict):
            return {"payload": data}

        if self.event_type in (WebhookEventType.JOB_CREATED, WebhookEventType.JOB_UPDATED):
            return {
                "job_id": data.get("job_id"),
                "title": data.get("title"),
                "department": data.get("department"),
                "status": data.get("status"),
            }
        if self.event_type in (
            WebhookEventType.APPLICATION_SUBMITTED,
            WebhookEventType.APPLICATION_UPDATED,
        ):
            return {
                "application_id": data.get("application_id"),
                "job_id": data.get("job_id"),
                "candidate_id": data.get("candidate_id"),
                "status": data.get("status"),
            }
        if self.event_type in (
            WebhookEventType.CANDIDATE_CREATED,
            WebhookEventType.CANDIDATE_UPDATED,
        ):
            name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
            return {
                "candidate_id": data.get("candidate_id"),
                "name": name,
                "email": data.get("email"),
            }
        return dict(list(data.items())[:5])

    class Settings:
        """MongoDB collection settings."""

        name = "ats_webhooks"
        indexes = [("connection_id", "status"), "event_type", "received_at"]
