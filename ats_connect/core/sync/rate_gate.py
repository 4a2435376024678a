"""
Rate gate: limits how many syncs a connection may start per hour.

The budget is counted from the connection's own sync history, so it holds
across processes that share the database.
"""

from datetime import datetime
from typing import Optional

from ats_connect.data.models.connection import AtsConnection
from ats_connect.data.repositories.sync_log_repository import (
    SyncLogRepository,
    get_sync_log_repository,
)
from ats_connect.utils.logger import LoggerMixin


class RateLimitGate(LoggerMixin):
    """Decides whether a connection may start another sync run."""

    def __init__(self, sync_log_repository: Optional[SyncLogRepository] = None) -> None:
        self._sync_logs = sync_log_repository or get_sync_log_repository()

    def remaining(self, connection: AtsConnection, now: Optional[datetime] = None) -> int:
        """Syncs still allowed in the trailing hour; 0 for inactive connections."""
        if not connection.is_active or connection.id is None:
            return 0
        used = self._sync_logs.count_in_last_hour(connection.id, now)
        return max(connection.hourly_rate_limit - used, 0)

    def can_sync(self, connection: AtsConnection, now: Optional[datetime] = None) -> bool:
        allowed = self.remaining(connection, now) > 0
        if not allowed:
            reason = "inactive" if not connection.is_active else "hourly limit reached"
            self.logger.info(f"Sync denied for {connection.name}: {reason}")
        return allowed
