"""
ATS integration service.

Front door for callers (HTTP API, CLI): connection management, connection
tests, sync triggers, webhook intake and the application helpers. The
engine components below it never raise for record-level problems; this layer
turns missing objects and rate-limit denials into exceptions the callers map
to their own error surface.
"""

import time
from typing import Any, Optional

import httpx
from bson import ObjectId
from pymongo.database import Database

from ats_connect.core.exceptions import NotFoundError, RateLimitedError, TransportError
from ats_connect.core.providers import get_adapter
from ats_connect.core.sync import ProviderClient, RateLimitGate, RecordUpserter, SyncOrchestrator, SyncResult
from ats_connect.core.webhooks import WebhookBatchResult, WebhookIngestor, WebhookResult
from ats_connect.data.models import (
    Application,
    AtsConnection,
    ConnectionCreate,
    ConnectionUpdate,
    FieldMapping,
    FieldMappingCreate,
    SyncLog,
)
from ats_connect.data.repositories import (
    ApplicationRepository,
    CandidateRepository,
    ConnectionRepository,
    FieldMappingRepository,
    JobPostingRepository,
    SyncLogRepository,
    WebhookRepository,
)
from ats_connect.utils.constants import ApplicationStatus, AtsProvider, AuditType, SyncType
from ats_connect.utils.crypto import CredentialCipher
from ats_connect.utils.logger import LoggerMixin, audit_log


class AtsIntegrationService(LoggerMixin):
    """
    Service wiring repositories, the sync orchestrator and the webhook
    ingestor around one database.

    Usage:
        service = AtsIntegrationService()
        connection = service.create_connection(owner_id, ConnectionCreate(...))
        result = service.sync_connection(connection.id)
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        http_client: Optional[httpx.Client] = None,
        cipher: Optional[CredentialCipher] = None,
    ) -> None:
        self.connections = ConnectionRepository(database, cipher)
        self.field_mappings = FieldMappingRepository(database)
        self.job_postings = JobPostingRepository(database)
        self.candidates = CandidateRepository(database)
        self.applications = ApplicationRepository(database)
        self.sync_logs = SyncLogRepository(database)
        self.webhooks = WebhookRepository(database)

        self.client = ProviderClient(http_client)
        self.gate = RateLimitGate(self.sync_logs)
        upserter = RecordUpserter(self.job_postings, self.candidates, self.applications)
        self.orchestrator = SyncOrchestrator(
            connections=self.connections,
            sync_logs=self.sync_logs,
            field_mappings=self.field_mappings,
            client=self.client,
            upserter=upserter,
            gate=self.gate,
        )
        self.ingestor = WebhookIngestor(
            webhooks=self.webhooks,
            connections=self.connections,
            applications=self.applications,
            field_mappings=self.field_mappings,
            upserter=upserter,
        )

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def create_connection(self, owner_id: Optional[str], data: ConnectionCreate) -> AtsConnection:
        connection = self.connections.create_from_schema(data, owner_id=owner_id)
        self.logger.info(f"Created connection {connection.name} ({connection.provider})")
        audit_log(
            "connection_created",
            {"connection_id": str(connection.id), "owner_id": owner_id, "provider": connection.provider},
            audit_type=AuditType.CONNECTION,
        )
        return connection

    def get_connection(self, connection_id: str | ObjectId) -> AtsConnection:
        connection = self.connections.get_by_id(connection_id)
        if connection is None:
            raise NotFoundError(f"Connection {connection_id} not found")
        return connection

    def list_connections(
        self, owner_id: Optional[str] = None, active_only: bool = False
    ) -> list[AtsConnection]:
        query: dict[str, Any] = {}
        if owner_id is not None:
            query["owner_id"] = owner_id
        if active_only:
            query["is_active"] = True
        return self.connections.find(query, limit=1000, sort_by="created_at", sort_order=1)

    def update_connection(
        self, connection_id: str | ObjectId, data: ConnectionUpdate
    ) -> AtsConnection:
        self.get_connection(connection_id)
        connection = self.connections.update_from_schema(connection_id, data)
        if connection is None:
            raise NotFoundError(f"Connection {connection_id} not found")
        audit_log(
            "connection_updated",
            {
                "connection_id": str(connection.id),
                "fields": sorted(data.model_dump(exclude_unset=True)),
            },
            audit_type=AuditType.CONNECTION,
        )
        return connection

    def delete_connection(self, connection_id: str | ObjectId) -> dict[str, int]:
        """Delete a connection and everything mirrored or logged under it."""
        connection = self.get_connection(connection_id)
        removed = {
            "field_mappings": self.field_mappings.delete_for_connection(connection.id),
            "applications": self.applications.delete_for_connection(connection.id),
            "candidates": self.candidates.delete_for_connection(connection.id),
            "job_postings": self.job_postings.delete_for_connection(connection.id),
            "sync_logs": self.sync_logs.delete_for_connection(connection.id),
            "webhooks": self.webhooks.delete_for_connection(connection.id),
        }
        removed["connections"] = int(self.connections.delete(connection.id))
        self.logger.info(f"Deleted connection {connection.name}: {removed}")
        audit_log(
            "connection_deleted",
            {"connection_id": str(connection.id), "removed": removed},
            audit_type=AuditType.CONNECTION,
        )
        return removed

    def save_field_mapping(
        self, connection_id: str | ObjectId, data: FieldMappingCreate
    ) -> FieldMapping:
        connection = self.get_connection(connection_id)
        mapping, _ = self.field_mappings.save_mapping(connection.id, data)
        return mapping

    def test_connection(self, connection: AtsConnection) -> dict[str, Any]:
        """
        Check that a connection can reach its provider.

        Sends one single-record jobs request. Never raises; the outcome is
        reported in the returned dict.
        """
        missing = get_adapter(connection.provider).missing_credentials(connection)
        if missing:
            return {
                "success": False,
                "message": f"Missing credentials: {', '.join(missing)}",
                "status_code": None,
                "response_time": None,
            }

        started = time.perf_counter()
        try:
            response = self.client.test_request(connection)
        except TransportError as e:
            message = (
                f"Connection failed: {e.status_code}"
                if e.status_code is not None
                else f"Connection error: {e}"
            )
            self.logger.warning(f"Connection test failed for {connection.name}: {e}")
            return {
                "success": False,
                "message": message,
                "status_code": e.status_code,
                "response_time": None,
            }

        return {
            "success": True,
            "message": "Connection successful",
            "status_code": response.status_code,
            "response_time": round(time.perf_counter() - started, 3),
        }

    # -------------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------------

    def sync_connection(
        self,
        connection_id: str | ObjectId,
        filters: Optional[dict[str, Any]] = None,
        sync_type: SyncType = SyncType.FULL,
        force: bool = False,
    ) -> SyncResult:
        """Sync one connection; raises RateLimitedError when the gate denies the run."""
        connection = self.get_connection(connection_id)
        result = self.orchestrator.sync_connection(
            connection, filters=filters, sync_type=sync_type, force=force
        )
        if result.rate_limited:
            raise RateLimitedError(result.error or "Rate limit reached")
        return result

    def sync_all(
        self,
        filters: Optional[dict[str, Any]] = None,
        provider: Optional[AtsProvider | str] = None,
        force: bool = False,
    ) -> dict[str, SyncResult]:
        if provider:
            return self.orchestrator.sync_provider(provider, filters=filters, force=force)
        return self.orchestrator.sync_all_connections(filters=filters, force=force)

    def sync_history(self, connection_id: str | ObjectId, limit: int = 20) -> list[SyncLog]:
        connection = self.get_connection(connection_id)
        return self.sync_logs.get_recent(connection.id, limit=limit)

    def remaining_syncs(self, connection: AtsConnection) -> int:
        return self.gate.remaining(connection)

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    def receive_webhook(
        self, connection_id: str | ObjectId, payload: Any
    ) -> WebhookResult:
        connection = self.get_connection(connection_id)
        return self.ingestor.receive(connection, payload)

    def process_webhooks(
        self,
        limit: Optional[int] = None,
        connection_id: Optional[str | ObjectId] = None,
        event_type: Optional[str] = None,
        failed_only: bool = False,
        retry: bool = False,
    ) -> WebhookBatchResult:
        if connection_id is not None:
            connection_id = self.get_connection(connection_id).id
        if retry:
            return self.ingestor.retry_failed(limit, connection_id, event_type)
        return self.ingestor.process_pending(limit, connection_id, event_type, failed_only)

    # -------------------------------------------------------------------------
    # Applications
    # -------------------------------------------------------------------------

    def _get_application(self, application_id: str | ObjectId) -> Application:
        application = self.applications.get_by_id(application_id)
        if application is None:
            raise NotFoundError(f"Application {application_id} not found")
        return application

    def update_application_status(
        self,
        application_id: str | ObjectId,
        status: ApplicationStatus,
        reason: Optional[str] = None,
    ) -> Application:
        application = self._get_application(application_id)
        application.update_status(status, reason)
        return self.applications.save_changes(application)

    def add_interview_note(
        self,
        application_id: str | ObjectId,
        note: str,
        interviewer: Optional[str] = None,
    ) -> Application:
        application = self._get_application(application_id)
        application.add_interview_note(note, interviewer)
        return self.applications.save_changes(application)

    def set_assessment_score(
        self, application_id: str | ObjectId, assessment: str, score: Any
    ) -> Application:
        application = self._get_application(application_id)
        application.set_assessment_score(assessment, score)
        return self.applications.save_changes(application)


# Singleton instance
_integration_service: Optional[AtsIntegrationService] = None


def get_integration_service() -> AtsIntegrationService:
    """Get the integration service singleton instance."""
    global _integration_service
    if _integration_service is None:
        _integration_service = AtsIntegrationService()
    return _integration_service
