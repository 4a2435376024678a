"""
Sync log model: the audit record of one orchestrated sync run.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from ats_connect.utils.constants import SyncStatus, SyncType

from .base import BaseDocument, PyObjectId, utcnow


class SyncLog(BaseDocument):
    """
    One sync run of a connection.

    Counts only grow and errors only append while the run is ``started``;
    ``completed`` and ``failed`` are terminal.
    """

    connection_id: PyObjectId
    sync_type: SyncType = SyncType.FULL
    status: SyncStatus = SyncStatus.STARTED
    filters: dict[str, Any] = Field(default_factory=dict)

    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_failed: int = 0
    errors: list[str] = Field(default_factory=list)

    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (SyncStatus.COMPLETED, SyncStatus.FAILED)

    @property
    def success_rate(self) -> float:
        """Percentage of processed records that did not fail."""
        if self.records_processed == 0:
            return 0.0
        succeeded = self.records_processed - self.records_failed
        return round(succeeded / self.records_processed * 100, 2)

    @property
    def formatted_duration(self) -> str:
        if self.duration_seconds is None:
            return "N/A"
        seconds = int(self.duration_seconds)
        if seconds < 60:
            return f"{seconds}s"
        if seconds < 3600:
            return f"{seconds // 60}m {seconds % 60}s"
        return f"{seconds // 3600}h {(seconds % 3600) // 60}m"

    class Settings:
        """MongoDB collection settings."""

        name = "ats_sync_logs"
        indexes = [("connection_id", "started_at"), "status"]
