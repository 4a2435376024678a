"""
Webhook repository for ATS Connect.
"""

from typing import Any, Optional

from bson import ObjectId

from ats_connect.data.models.webhook import Webhook
from ats_connect.utils.constants import COLLECTIONS, MAX_WEBHOOK_RETRIES, WebhookStatus
from ats_connect.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class WebhookRepository(BaseRepository[Webhook]):
    """Repository for received webhooks."""

    @property
    def collection_name(self) -> str:
        return COLLECTIONS["webhooks"]

    @property
    def model_class(self) -> type[Webhook]:
        return Webhook

    # -------------------------------------------------------------------------
    # State Persistence
    # -------------------------------------------------------------------------

    def save_state(self, webhook: Webhook) -> Optional[Webhook]:
        """Persist the processing state of an in-memory webhook."""
        return self.update(
            webhook.id,
            {
                "status": WebhookStatus(webhook.status).value,
                "error_message": webhook.error_message,
                "retry_count": webhook.retry_count,
                "processed_at": webhook.processed_at,
            },
        )

    # -------------------------------------------------------------------------
    # Query Operations
    # -------------------------------------------------------------------------

    def find_backlog(
        self,
        limit: int = 100,
        connection_id: Optional[str | ObjectId] = None,
        event_type: Optional[str] = None,
        failed_only: bool = False,
        event_types: Optional[list[str]] = None,
    ) -> list[Webhook]:
        """
        Webhooks awaiting work, oldest first.

        ``failed_only`` selects failed webhooks that still have retries left
        instead of pending ones. ``event_types`` restricts the result to the
        given types; combined with ``event_type`` both must match.
        """
        query: dict[str, Any] = {}
        if failed_only:
            query["status"] = WebhookStatus.FAILED.value
            query["retry_count"] = {"$lt": MAX_WEBHOOK_RETRIES}
        else:
            query["status"] = WebhookStatus.PENDING.value
        if connection_id is not None:
            query["connection_id"] = self._to_object_id(connection_id)
        if event_types is not None:
            query["event_type"] = {"$in": list(event_types)}
        if event_type:
            if event_types is not None and event_type not in event_types:
                return []
            query["event_type"] = event_type

        return self.find(query, limit=limit, sort_by="received_at", sort_order=1)

    def count_by_status(self, connection_id: Optional[str | ObjectId] = None) -> dict[str, int]:
        base: dict[str, Any] = {}
        if connection_id is not None:
            base["connection_id"] = self._to_object_id(connection_id)
        return {
            status.value: self.count({**base, "status": status.value})
            for status in WebhookStatus
        }

    def delete_for_connection(self, connection_id: str | ObjectId) -> int:
        return self.delete_many({"connection_id": self._to_object_id(connection_id)})


# Singleton instance
_webhook_repository: Optional[WebhookRepository] = None


def get_webhook_repository() -> WebhookRepository:
    """Get the webhook repository singleton instance."""
    global _webhook_repository
    if _webhook_repository is None:
        _webhook_repository = WebhookRepository()
    return _webhook_repository
