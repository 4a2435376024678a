"""
Webhook ingestor: persists inbound provider events and applies them.

Every delivery is stored verbatim as a pending webhook before it is
processed, so a failure never loses the payload. Processing routes by event
type:

- job, candidate and application events upsert the record they carry,
  through the same mapper and upserter as a pull sync;
- interview, offer and hire events move the referenced application to the
  matching stage and leave a note on it;
- unknown event types are logged and left pending. Backlog passes only
  select handled types, so stored unknown events never hold up newer work.

A failed webhook can be retried while its retry count is below the ceiling.
"""

import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Optional

from bson import ObjectId

from ats_connect.core.mapping.normalizers import parse_amount
from ats_connect.core.mapping.record_mapper import RecordMapper, get_record_mapper
from ats_connect.core.sync.upserter import RecordUpserter
from ats_connect.data.models import Application, AtsConnection, Webhook, utcnow
from ats_connect.data.repositories import (
    ApplicationRepository,
    ConnectionRepository,
    FieldMappingRepository,
    WebhookRepository,
    get_application_repository,
    get_connection_repository,
    get_field_mapping_repository,
    get_webhook_repository,
)
from ats_connect.utils.config import get_settings
from ats_connect.utils.constants import (
    UNKNOWN_EVENT_TYPE,
    ApplicationStatus,
    AuditType,
    EntityType,
    WebhookEventType,
    WebhookStatus,
)
from ats_connect.utils.logger import LoggerMixin, audit_log

# Author of notes written on behalf of the provider
SYSTEM_AUTHOR = "ATS System"


@dataclass
class WebhookResult:
    """Outcome of receiving or processing one webhook."""

    success: bool
    event_type: str = UNKNOWN_EVENT_TYPE
    webhook_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class WebhookBatchResult:
    """Tally of a backlog or retry pass."""

    processed: int = 0
    failed: int = 0
    results: list[WebhookResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    def add(self, result: WebhookResult) -> None:
        self.results.append(result)
        if result.status == WebhookStatus.PROCESSED:
            self.processed += 1
        else:
            self.failed += 1


class WebhookIngestor(LoggerMixin):
    """Receives, processes and retries provider webhooks."""

    def __init__(
        self,
        webhooks: Optional[WebhookRepository] = None,
        connections: Optional[ConnectionRepository] = None,
        applications: Optional[ApplicationRepository] = None,
        field_mappings: Optional[FieldMappingRepository] = None,
        mapper: Optional[RecordMapper] = None,
        upserter: Optional[RecordUpserter] = None,
    ) -> None:
        self._webhooks = webhooks or get_webhook_repository()
        self._connections = connections or get_connection_repository()
        self._applications = applications or get_application_repository()
        self._field_mappings = field_mappings or get_field_mapping_repository()
        self._mapper = mapper or get_record_mapper()
        self._upserter = upserter or RecordUpserter(applications=self._applications)

        self._handlers: dict[str, Callable[[AtsConnection, Webhook], None]] = {
            WebhookEventType.JOB_CREATED.value: self._handle_job,
            WebhookEventType.JOB_UPDATED.value: self._handle_job,
            WebhookEventType.CANDIDATE_CREATED.value: self._handle_candidate,
            WebhookEventType.CANDIDATE_UPDATED.value: self._handle_candidate,
            WebhookEventType.APPLICATION_SUBMITTED.value: self._handle_application,
            WebhookEventType.APPLICATION_UPDATED.value: self._handle_application,
            WebhookEventType.INTERVIEW_SCHEDULED.value: self._handle_interview,
            WebhookEventType.OFFER_EXTENDED.value: self._handle_offer,
            WebhookEventType.HIRE_COMPLETED.value: self._handle_hire,
        }

    # -------------------------------------------------------------------------
    # Entry Points
    # -------------------------------------------------------------------------

    def receive(self, connection: AtsConnection, payload: Any) -> WebhookResult:
        """
        Persist a delivery as a pending webhook, then process it.

        Any JSON value is accepted; only an object can name its id and event
        type, anything else is stored as an unknown event.
        """
        envelope = payload if isinstance(payload, dict) else {}
        webhook = Webhook(
            connection_id=connection.id,
            webhook_id=str(envelope.get("id") or uuid.uuid4().hex),
            event_type=str(envelope.get("event_type") or UNKNOWN_EVENT_TYPE),
            payload=payload,
            received_at=utcnow(),
        )
        webhook = self._webhooks.create(webhook)
        audit_log(
            "webhook_received",
            {
                "connection_id": str(connection.id),
                "webhook_id": webhook.webhook_id,
                "event_type": webhook.event_type,
            },
            audit_type=AuditType.WEBHOOK,
        )
        return self.process(webhook, connection)

    def process(
        self, webhook: Webhook, connection: Optional[AtsConnection] = None
    ) -> WebhookResult:
        """Apply one webhook and persist its new state."""
        result = WebhookResult(
            success=False,
            event_type=webhook.event_type,
            webhook_id=str(webhook.id) if webhook.id else None,
        )

        handler = self._handlers.get(webhook.event_type)
        if handler is None:
            self.logger.info(
                f"Unhandled webhook event type '{webhook.event_type}' "
                f"(webhook {webhook.webhook_id}); left pending"
            )
            result.success = True
            result.status = webhook.status
            return result

        connection = connection or self._connections.get_by_id(webhook.connection_id)
        try:
            if connection is None:
                raise LookupError(f"Connection {webhook.connection_id} no longer exists")
            handler(connection, webhook)
        except Exception as e:
            webhook.mark_failed(str(e))
            result.error = str(e)
            self.logger.warning(
                f"Webhook {webhook.webhook_id} ({webhook.event_type}) failed "
                f"[attempt {webhook.retry_count}]: {e}"
            )
        else:
            webhook.mark_processed()
            result.success = True

        if webhook.id is not None:
            self._webhooks.save_state(webhook)
        result.status = webhook.status

        audit_log(
            "webhook_processed" if result.success else "webhook_failed",
            {
                "connection_id": str(webhook.connection_id),
                "webhook_id": webhook.webhook_id,
                "event_type": webhook.event_type,
                "retry_count": webhook.retry_count,
                "error": result.error,
            },
            audit_type=AuditType.WEBHOOK,
        )
        return result

    def process_pending(
        self,
        limit: Optional[int] = None,
        connection_id: Optional[str | ObjectId] = None,
        event_type: Optional[str] = None,
        failed_only: bool = False,
    ) -> WebhookBatchResult:
        """Work through the backlog (pending, or retryable failures) oldest first."""
        webhooks = self._backlog(limit, connection_id, event_type, failed_only)
        return self._process_batch(webhooks, reset=False)

    def retry_failed(
        self,
        limit: Optional[int] = None,
        connection_id: Optional[str | ObjectId] = None,
        event_type: Optional[str] = None,
    ) -> WebhookBatchResult:
        """Reset each retryable webhook to pending and process it again."""
        webhooks = self._backlog(limit, connection_id, event_type, failed_only=True)
        return self._process_batch(webhooks, reset=True)

    def _backlog(
        self,
        limit: Optional[int],
        connection_id: Optional[str | ObjectId],
        event_type: Optional[str],
        failed_only: bool,
    ) -> list[Webhook]:
        # Unhandled types stay pending forever and must not fill the batch
        return self._webhooks.find_backlog(
            limit=limit or get_settings().sync.webhook_batch_size,
            connection_id=connection_id,
            event_type=event_type,
            failed_only=failed_only,
            event_types=list(self._handlers),
        )

    def _process_batch(self, webhooks: list[Webhook], reset: bool) -> WebhookBatchResult:
        batch = WebhookBatchResult()
        connections: dict[ObjectId, Optional[AtsConnection]] = {}

        for webhook in webhooks:
            if reset:
                if not webhook.can_retry:
                    continue
                webhook.reset_for_retry()
            if webhook.connection_id not in connections:
                connections[webhook.connection_id] = self._connections.get_by_id(webhook.connection_id)
            batch.add(self.process(webhook, connections[webhook.connection_id]))

        self.logger.info(
            f"Webhook batch done: {batch.processed} processed, {batch.failed} failed"
        )
        return batch

    # -------------------------------------------------------------------------
    # Record Events
    # -------------------------------------------------------------------------

    @staticmethod
    def _record(payload: Any) -> dict[str, Any]:
        """The record a webhook carries: ``data`` when present, else the payload itself."""
        if not isinstance(payload, dict):
            return {}
        data = payload.get("data")
        if isinstance(data, dict):
            return data
        return {k: v for k, v in payload.items() if k != "event_type"}

    def _upsert(self, entity_type: EntityType, connection: AtsConnection, webhook: Webhook) -> None:
        field_mappings = self._field_mappings.get_for_entity(connection.id, entity_type)
        record = self._mapper.map_record(
            entity_type, connection, self._record(webhook.payload), field_mappings
        )
        self._upserter.upsert(entity_type, connection, record)

    def _handle_job(self, connection: AtsConnection, webhook: Webhook) -> None:
        self._upsert(EntityType.JOB, connection, webhook)

    def _handle_candidate(self, connection: AtsConnection, webhook: Webhook) -> None:
        self._upsert(EntityType.CANDIDATE, connection, webhook)

    def _handle_application(self, connection: AtsConnection, webhook: Webhook) -> None:
        self._upsert(EntityType.APPLICATION, connection, webhook)

    # -------------------------------------------------------------------------
    # Lifecycle Events
    # -------------------------------------------------------------------------

    def _event_value(self, webhook: Webhook, key: str) -> Any:
        value = webhook.payload.get(key) if isinstance(webhook.payload, dict) else None
        if value is None:
            value = self._record(webhook.payload).get(key)
        return value

    def _referenced_application(
        self, connection: AtsConnection, webhook: Webhook
    ) -> Optional[Application]:
        application_id = self._event_value(webhook, "application_id")
        if not application_id:
            self.logger.warning(f"Webhook {webhook.webhook_id} names no application")
            return None

        application = self._applications.get_by_external_id(connection.id, str(application_id))
        if application is None:
            self.logger.warning(
                f"Webhook {webhook.webhook_id}: application {application_id} is not mirrored"
            )
        return application

    def _handle_interview(self, connection: AtsConnection, webhook: Webhook) -> None:
        application = self._referenced_application(connection, webhook)
        if application is None:
            return

        interview_date = self._event_value(webhook, "interview_date") or "TBD"
        interview_type = self._event_value(webhook, "interview_type") or "phone"
        notes = self._event_value(webhook, "notes") or ""

        application.update_status(ApplicationStatus.INTERVIEW)
        application.add_interview_note(
            f"Interview scheduled for {interview_date} ({interview_type}). {notes}".strip(),
            SYSTEM_AUTHOR,
        )
        self._applications.save_changes(application)

    def _handle_offer(self, connection: AtsConnection, webhook: Webhook) -> None:
        application = self._referenced_application(connection, webhook)
        if application is None:
            return

        offered_salary = parse_amount(self._event_value(webhook, "offered_salary"))
        offer_details = self._event_value(webhook, "offer_details")

        application.update_status(ApplicationStatus.OFFER)
        if offered_salary is not None:
            application.offered_salary = offered_salary
        if offer_details:
            application.add_interview_note(f"Offer extended: {offer_details}", SYSTEM_AUTHOR)
        self._applications.save_changes(application)

    def _handle_hire(self, connection: AtsConnection, webhook: Webhook) -> None:
        application = self._referenced_application(connection, webhook)
        if application is None:
            return

        start_date = self._event_value(webhook, "start_date")
        final_salary = self._event_value(webhook, "final_salary")

        application.update_status(ApplicationStatus.HIRED)
        notes = "Hire completed."
        if start_date:
            notes += f" Start date: {start_date}."
        if final_salary:
            application.offered_salary = parse_amount(final_salary)
            notes += f" Final salary: ${final_salary}."
        application.add_interview_note(notes, SYSTEM_AUTHOR)
        self._applications.save_changes(application)


# Singleton instance
_webhook_ingestor: Optional[WebhookIngestor] = None


def get_webhook_ingestor() -> WebhookIngestor:
    """Get the webhook ingestor singleton instance."""
    global _webhook_ingestor
    if _webhook_ingestor is None:
        _webhook_ingestor = WebhookIngestor()
    return _webhook_ingestor
