"""
Sync orchestrator: the fetch, map and upsert pipeline for one connection.

A run covers one entity type or all three (jobs, then candidates, then
applications, so applications can resolve what the run just mirrored).
Failures are isolated at two levels:

- a record that fails to map or upsert is counted as failed and the batch
  continues;
- a collection that fails to fetch is recorded on the sync log and the run
  moves on to the next entity type.

A run is failed only when every fetch it attempted failed. The orchestrator
never raises; every outcome is reported as a SyncResult.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from functools import partial
from typing import Any, Callable, Optional

from pymongo.errors import PyMongoError

from ats_connect.core.exceptions import RecordError, TransportError
from ats_connect.core.mapping.record_mapper import RecordMapper, get_record_mapper
from ats_connect.core.sync.client import ProviderClient
from ats_connect.core.sync.rate_gate import RateLimitGate
from ats_connect.core.sync.upserter import RecordUpserter
from ats_connect.data.models import AtsConnection, FieldMapping, SyncLog
from ats_connect.data.repositories import (
    ConnectionRepository,
    FieldMappingRepository,
    SyncLogRepository,
    get_connection_repository,
    get_field_mapping_repository,
    get_sync_log_repository,
)
from ats_connect.utils.config import get_settings
from ats_connect.utils.constants import AtsProvider, EntityType, SyncStatus, SyncType
from ats_connect.utils.logger import LoggerMixin, audit_log


@dataclass
class EntitySyncStats:
    """Outcome of one entity type within a run."""

    entity_type: str
    fetched: bool = True
    processed: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """Summary of a sync run, returned instead of raising."""

    connection_id: Optional[str]
    connection_name: str
    sync_type: str
    success: bool = False
    rate_limited: bool = False
    status: Optional[str] = None
    sync_log_id: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: Optional[float] = None
    entities: dict[str, EntitySyncStats] = field(default_factory=dict)

    def _total(self, attribute: str) -> int:
        return sum(getattr(stats, attribute) for stats in self.entities.values())

    @property
    def records_processed(self) -> int:
        return self._total("processed")

    @property
    def records_created(self) -> int:
        return self._total("created")

    @property
    def records_updated(self) -> int:
        return self._total("updated")

    @property
    def records_failed(self) -> int:
        return self._total("failed")

    @property
    def errors(self) -> list[str]:
        collected = [error for stats in self.entities.values() for error in stats.errors]
        if self.error and self.error not in collected:
            collected.append(self.error)
        return collected

    @property
    def success_rate(self) -> float:
        processed = self.records_processed
        if processed == 0:
            return 0.0
        return round((processed - self.records_failed) / processed * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.update(
            records_processed=self.records_processed,
            records_created=self.records_created,
            records_updated=self.records_updated,
            records_failed=self.records_failed,
            success_rate=self.success_rate,
        )
        return data


class SyncOrchestrator(LoggerMixin):
    """Runs syncs for connections, honoring the rate gate unless forced."""

    def __init__(
        self,
        connections: Optional[ConnectionRepository] = None,
        sync_logs: Optional[SyncLogRepository] = None,
        field_mappings: Optional[FieldMappingRepository] = None,
        client: Optional[ProviderClient] = None,
        mapper: Optional[RecordMapper] = None,
        upserter: Optional[RecordUpserter] = None,
        gate: Optional[RateLimitGate] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self._connections = connections or get_connection_repository()
        self._sync_logs = sync_logs or get_sync_log_repository()
        self._field_mappings = field_mappings or get_field_mapping_repository()
        self._client = client or ProviderClient()
        self._mapper = mapper or get_record_mapper()
        self._upserter = upserter or RecordUpserter()
        self._gate = gate or RateLimitGate(self._sync_logs)
        self._max_workers = max_workers or get_settings().sync.max_workers

    # -------------------------------------------------------------------------
    # Entry Points
    # -------------------------------------------------------------------------

    def sync_connection(
        self,
        connection: AtsConnection,
        filters: Optional[dict[str, Any]] = None,
        sync_type: SyncType = SyncType.FULL,
        force: bool = False,
    ) -> SyncResult:
        """Run one sync of ``connection``."""
        sync_type = SyncType(sync_type)
        filters = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        result = SyncResult(
            connection_id=str(connection.id) if connection.id else None,
            connection_name=connection.name,
            sync_type=sync_type.value,
        )

        if not connection.is_active:
            result.error = "Connection is inactive"
            return result
        if not force and not self._gate.can_sync(connection):
            result.rate_limited = True
            result.error = (
                f"Rate limit reached: {connection.hourly_rate_limit} syncs per hour "
                f"for {connection.provider_display_name}"
            )
            return result

        try:
            sync_log = self._sync_logs.start(connection.id, sync_type, filters)
        except PyMongoError as e:
            self.logger.error(f"Could not open sync log for {connection.name}: {e}")
            result.error = f"Could not open sync log: {e}"
            return result

        result.sync_log_id = str(sync_log.id)
        self.logger.info(f"Sync started: {connection.name} ({sync_type.value})")
        audit_log(
            "sync_started",
            {
                "connection_id": result.connection_id,
                "provider": connection.provider,
                "sync_type": sync_type.value,
                "filters": filters,
                "forced": force,
            },
        )

        try:
            final_log = self._run(connection, sync_log, sync_type, filters, result)
        except Exception as e:
            self.logger.exception(f"Sync of {connection.name} aborted: {e}")
            result.error = f"Unexpected error: {e}"
            final_log = self._fail_safely(sync_log, result.error)

        if final_log is not None:
            result.status = final_log.status
            result.duration_seconds = final_log.duration_seconds
        result.success = result.status == SyncStatus.COMPLETED

        audit_log(
            "sync_completed" if result.success else "sync_failed",
            {
                "connection_id": result.connection_id,
                "sync_log_id": result.sync_log_id,
                "processed": result.records_processed,
                "created": result.records_created,
                "updated": result.records_updated,
                "failed": result.records_failed,
                "error": result.error,
            },
        )
        return result

    def sync_all_connections(
        self,
        filters: Optional[dict[str, Any]] = None,
        force: bool = False,
    ) -> dict[str, SyncResult]:
        """Full sync of every active connection, keyed by connection id."""
        return self._sync_many(self._connections.get_active(), filters, force)

    def sync_provider(
        self,
        provider: AtsProvider | str,
        filters: Optional[dict[str, Any]] = None,
        force: bool = False,
    ) -> dict[str, SyncResult]:
        """Full sync of every active connection of one provider."""
        provider_id = provider.value if isinstance(provider, AtsProvider) else str(provider)
        return self._sync_many(self._connections.get_by_provider(provider_id), filters, force)

    def _sync_many(
        self,
        connections: list[AtsConnection],
        filters: Optional[dict[str, Any]],
        force: bool,
    ) -> dict[str, SyncResult]:
        results: dict[str, SyncResult] = {}
        for connection in connections:
            results[str(connection.id)] = self.sync_connection(
                connection, filters=filters, sync_type=SyncType.FULL, force=force
            )
        succeeded = sum(1 for r in results.values() if r.success)
        self.logger.info(f"Synced {succeeded}/{len(results)} connections")
        return results

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def _run(
        self,
        connection: AtsConnection,
        sync_log: SyncLog,
        sync_type: SyncType,
        filters: dict[str, Any],
        result: SyncResult,
    ) -> Optional[SyncLog]:
        for entity_type in sync_type.entity_types:
            stats = self._sync_entity(connection, entity_type, filters)
            result.entities[entity_type.value] = stats
            self._sync_logs.add_progress(
                sync_log.id,
                processed=stats.processed,
                created=stats.created,
                updated=stats.updated,
                failed=stats.failed,
                errors=stats.errors,
            )

        if all(not stats.fetched for stats in result.entities.values()):
            result.error = "; ".join(
                error for stats in result.entities.values() for error in stats.errors[:1]
            )
            self.logger.error(f"Sync failed: {connection.name}: {result.error}")
            return self._sync_logs.mark_failed(sync_log.id)

        final_log = self._sync_logs.mark_completed(sync_log.id)
        self._connections.record_sync_stats(
            connection.id,
            last_sync={
                "sync_log_id": str(sync_log.id),
                "sync_type": sync_type.value,
                "records_processed": result.records_processed,
                "records_created": result.records_created,
                "records_updated": result.records_updated,
                "records_failed": result.records_failed,
            },
            records_processed=result.records_processed,
            success_rate=result.success_rate,
        )
        self.logger.info(
            f"Sync completed: {connection.name} - {result.records_processed} processed, "
            f"{result.records_created} created, {result.records_updated} updated, "
            f"{result.records_failed} failed"
        )
        return final_log

    def _fail_safely(self, sync_log: SyncLog, error: str) -> Optional[SyncLog]:
        try:
            return self._sync_logs.mark_failed(sync_log.id, [error])
        except PyMongoError as e:
            self.logger.error(f"Could not close sync log {sync_log.id}: {e}")
            return None

    def _sync_entity(
        self,
        connection: AtsConnection,
        entity_type: EntityType,
        filters: dict[str, Any],
    ) -> EntitySyncStats:
        stats = EntitySyncStats(entity_type=entity_type.value)

        try:
            raw_records = self._client.fetch_collection(connection, entity_type, filters)
        except TransportError as e:
            stats.fetched = False
            stats.errors.append(f"Failed to fetch {entity_type.value}s: {e}")
            self.logger.error(f"Fetch failed for {connection.name} ({entity_type.value}): {e}")
            return stats

        field_mappings = self._field_mappings.get_for_entity(connection.id, entity_type)
        process = partial(self._process_record, connection, entity_type, field_mappings)

        if self._max_workers > 1 and len(raw_records) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                futures = {
                    executor.submit(process, raw): index
                    for index, raw in enumerate(raw_records)
                }
                for future in as_completed(futures):
                    self._tally(stats, futures[future], future.result)
        else:
            for index, raw in enumerate(raw_records):
                self._tally(stats, index, partial(process, raw))

        self.logger.debug(
            f"{connection.name} {entity_type.value}: {stats.processed} processed, "
            f"{stats.failed} failed"
        )
        return stats

    def _process_record(
        self,
        connection: AtsConnection,
        entity_type: EntityType,
        field_mappings: dict[str, FieldMapping],
        raw: Any,
    ) -> bool:
        record = self._mapper.map_record(entity_type, connection, raw, field_mappings)
        _, created = self._upserter.upsert(entity_type, connection, record)
        return created

    def _tally(self, stats: EntitySyncStats, index: int, outcome: Callable[[], bool]) -> None:
        """Count one record's outcome; failures are recorded, never re-raised."""
        stats.processed += 1
        try:
            created = outcome()
        except RecordError as e:
            stats.failed += 1
            stats.errors.append(f"{stats.entity_type} #{index}: {e}")
            self.logger.warning(f"Skipped {stats.entity_type} record #{index}: {e}")
        except Exception as e:
            stats.failed += 1
            stats.errors.append(f"{stats.entity_type} #{index}: {e}")
            self.logger.exception(f"Error processing {stats.entity_type} record #{index}: {e}")
        else:
            if created:
                stats.created += 1
            else:
                stats.updated += 1


# Singleton instance
_sync_orchestrator: Optional[SyncOrchestrator] = None


def get_sync_orchestrator() -> SyncOrchestrator:
    """Get the sync orchestrator singleton instance."""
    global _sync_orchestrator
    if _sync_orchestrator is None:
        _sync_orchestrator = SyncOrchestrator()
    return _sync_orchestrator
