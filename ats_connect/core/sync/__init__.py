"""
Pull synchronization: provider client, rate gate, upserter and the
orchestrator that ties them together.
"""

from .client import ProviderClient
from .orchestrator import EntitySyncStats, SyncOrchestrator, SyncResult, get_sync_orchestrator
from .rate_gate import RateLimitGate
from .upserter import RecordUpserter

__all__ = [
    "ProviderClient",
    "RateLimitGate",
    "RecordUpserter",
    "EntitySyncStats",
    "SyncOrchestrator",
    "SyncResult",
    "get_sync_orchestrator",
]
