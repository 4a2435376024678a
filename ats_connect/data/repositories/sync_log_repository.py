"""
Sync log repository for ATS Connect.

Progress is written with ``$inc``/``$push`` so counts never go backwards, and
the terminal transition only matches a run that is still ``started``.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from ats_connect.data.models.base import utcnow
from ats_connect.data.models.sync_log import SyncLog
from ats_connect.utils.constants import COLLECTIONS, SyncStatus, SyncType
from ats_connect.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class SyncLogRepository(BaseRepository[SyncLog]):
    """Repository for sync run audit records."""

    @property
    def collection_name(self) -> str:
        return COLLECTIONS["sync_logs"]

    @property
    def model_class(self) -> type[SyncLog]:
        return SyncLog

    # -------------------------------------------------------------------------
    # Run Lifecycle
    # -------------------------------------------------------------------------

    def start(
        self,
        connection_id: str | ObjectId,
        sync_type: SyncType,
        filters: Optional[dict[str, Any]] = None,
    ) -> SyncLog:
        """Open a new run in the ``started`` state."""
        log = SyncLog(
            connection_id=self._to_object_id(connection_id),
            sync_type=SyncType(sync_type).value,
            filters=filters or {},
            started_at=utcnow(),
        )
        return self.create(log)

    def add_progress(
        self,
        log_id: str | ObjectId,
        processed: int = 0,
        created: int = 0,
        updated: int = 0,
        failed: int = 0,
        errors: Optional[list[str]] = None,
    ) -> None:
        """Add counts (and append errors) to a run still in progress."""
        update: dict[str, Any] = {
            "$inc": {
                "records_processed": max(processed, 0),
                "records_created": max(created, 0),
                "records_updated": max(updated, 0),
                "records_failed": max(failed, 0),
            },
            "$set": {"updated_at": utcnow()},
        }
        if errors:
            update["$push"] = {"errors": {"$each": list(errors)}}

        self._get_sync_collection().update_one(
            {"_id": self._to_object_id(log_id), "status": SyncStatus.STARTED.value},
            update,
        )

    def mark_completed(self, log_id: str | ObjectId) -> Optional[SyncLog]:
        return self._finish(log_id, SyncStatus.COMPLETED)

    def mark_failed(
        self, log_id: str | ObjectId, errors: Optional[list[str]] = None
    ) -> Optional[SyncLog]:
        return self._finish(log_id, SyncStatus.FAILED, errors)

    def _finish(
        self,
        log_id: str | ObjectId,
        status: SyncStatus,
        errors: Optional[list[str]] = None,
    ) -> Optional[SyncLog]:
        """Move a started run to a terminal state; a finished run is left alone."""
        collection = self._get_sync_collection()
        object_id = self._to_object_id(log_id)
        current = collection.find_one({"_id": object_id}, {"started_at": 1})
        if current is None:
            return None

        now = utcnow()
        started_at: datetime = current.get("started_at") or now
        update: dict[str, Any] = {
            "$set": {
                "status": status.value,
                "completed_at": now,
                "duration_seconds": round((now - started_at).total_seconds(), 3),
                "updated_at": now,
            }
        }
        if errors:
            update["$push"] = {"errors": {"$each": list(errors)}}

        document = collection.find_one_and_update(
            {"_id": object_id, "status": SyncStatus.STARTED.value},
            update,
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            logger.warning(f"Sync log {log_id} already finished; {status.value} ignored")
            return self.get_by_id(object_id)
        return self._to_model(document)

    # -------------------------------------------------------------------------
    # Query Operations
    # -------------------------------------------------------------------------

    def count_started_since(self, connection_id: str | ObjectId, since: datetime) -> int:
        """Number of runs of a connection started at or after ``since``."""
        return self.count(
            {
                "connection_id": self._to_object_id(connection_id),
                "started_at": {"$gte": since},
            }
        )

    def count_in_last_hour(self, connection_id: str | ObjectId, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        return self.count_started_since(connection_id, now - timedelta(hours=1))

    def get_recent(self, connection_id: str | ObjectId, limit: int = 20) -> list[SyncLog]:
        return self.find(
            {"connection_id": self._to_object_id(connection_id)},
            limit=limit,
            sort_by="started_at",
            sort_order=-1,
        )

    def delete_for_connection(self, connection_id: str | ObjectId) -> int:
        return self.delete_many({"connection_id": self._to_object_id(connection_id)})


# Singleton instance
_sync_log_repository: Optional[SyncLogRepository] = None


def get_sync_log_repository() -> SyncLogRepository:
    """Get the sync log repository singleton instance."""
    global _sync_log_repository
    if _sync_log_repository is None:
        _sync_log_repository = SyncLogRepository()
    return _sync_log_repository
