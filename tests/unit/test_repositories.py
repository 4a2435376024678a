"""
Tests for ats_connect.data.repositories against an in-memory MongoDB.
"""

from datetime import timedelta

import pytest
from bson import ObjectId

from ats_connect.data.models import (
    Application,
    Candidate,
    ConnectionCreate,
    ConnectionUpdate,
    FieldMappingCreate,
    JobPosting,
    Webhook,
    utcnow,
)
from ats_connect.utils.constants import COLLECTIONS, EntityType, SyncStatus, SyncType, WebhookStatus


# ═══════════════════════════════════════════════════════════════════════════
#  connection_repository.py
# ═══════════════════════════════════════════════════════════════════════════


class TestConnectionRepository:
    def test_credentials_are_encrypted_at_rest(self, mongo_db, connection_repo, make_connection):
        connection = make_connection(credentials={"api_key": "plain-secret"})

        stored = mongo_db[COLLECTIONS["connections"]].find_one({"_id": connection.id})
        assert "credentials" not in stored
        assert "plain-secret" not in stored["encrypted_credentials"]

        loaded = connection_repo.get_by_id(connection.id)
        assert loaded.credentials == {"api_key": "plain-secret"}

    def test_create_from_schema(self, connection_repo):
        data = ConnectionCreate(
            name="Lever Prod",
            provider="lever",
            api_endpoint="https://api.lever.co",
            credentials={"api_key": "k"},
        )
        connection = connection_repo.create_from_schema(data, owner_id="owner-9")
        assert connection.id is not None
        assert connection.owner_id == "owner-9"
        assert connection.provider == "lever"

    def test_update_rotates_credentials(self, connection_repo, make_connection):
        connection = make_connection()
        updated = connection_repo.update_from_schema(
            connection.id, ConnectionUpdate(name="Renamed", credentials={"api_key": "rotated"})
        )
        assert updated.name == "Renamed"
        assert updated.credentials == {"api_key": "rotated"}

    def test_empty_update_returns_current(self, connection_repo, make_connection):
        connection = make_connection()
        assert connection_repo.update_from_schema(connection.id, ConnectionUpdate()).name == connection.name

    def test_record_sync_stats_accumulates(self, connection_repo, make_connection):
        connection = make_connection()
        connection_repo.record_sync_stats(connection.id, {"sync_type": "full"}, 10, 90.0)
        connection_repo.record_sync_stats(connection.id, {"sync_type": "jobs"}, 5, 100.0)

        loaded = connection_repo.get_by_id(connection.id)
        assert loaded.sync_stats.total_synced == 15
        assert loaded.sync_stats.total_runs == 2
        assert loaded.sync_stats.success_rate == 100.0
        assert loaded.sync_stats.last_sync == {"sync_type": "jobs"}
        assert loaded.last_sync_at is not None

    def test_active_and_provider_queries(self, connection_repo, make_connection):
        make_connection(provider="lever", name="A")
        make_connection(provider="lever", name="B", is_active=False)
        make_connection(provider="greenhouse", name="C")

        assert {c.name for c in connection_repo.get_active()} == {"A", "C"}
        assert [c.name for c in connection_repo.get_by_provider("Lever")] == ["A"]
        assert len(connection_repo.get_by_provider("lever", active_only=False)) == 2

    def test_get_by_invalid_id(self, connection_repo):
        assert connection_repo.get_by_id("nope") is None


# ═══════════════════════════════════════════════════════════════════════════
#  job_posting / candidate / application repositories
# ═══════════════════════════════════════════════════════════════════════════


class TestMirrorUpserts:
    def test_job_upsert_is_idempotent(self, job_posting_repo):
        connection_id = ObjectId()
        first, created = job_posting_repo.upsert_posting(
            JobPosting(connection_id=connection_id, external_job_id="J1", title="Engineer")
        )
        second, created_again = job_posting_repo.upsert_posting(
            JobPosting(connection_id=connection_id, external_job_id="J1", title="Senior Engineer")
        )

        assert created is True
        assert created_again is False
        assert second.id == first.id
        assert second.title == "Senior Engineer"
        assert job_posting_repo.count({}) == 1

    def test_upsert_keeps_created_at(self, job_posting_repo):
        connection_id = ObjectId()
        first, _ = job_posting_repo.upsert_posting(
            JobPosting(connection_id=connection_id, external_job_id="J1", title="A")
        )
        second, _ = job_posting_repo.upsert_posting(
            JobPosting(connection_id=connection_id, external_job_id="J1", title="B")
        )
        assert second.created_at == first.created_at

    def test_same_external_id_on_two_connections(self, job_posting_repo):
        job_posting_repo.upsert_posting(JobPosting(connection_id=ObjectId(), external_job_id="J1", title="A"))
        job_posting_repo.upsert_posting(JobPosting(connection_id=ObjectId(), external_job_id="J1", title="B"))
        assert job_posting_repo.count({}) == 2

    def test_candidate_lookup(self, candidate_repo):
        connection_id = ObjectId()
        candidate_repo.upsert_candidate(
            Candidate(connection_id=connection_id, external_candidate_id="C1", email="jane@example.com")
        )
        assert candidate_repo.get_by_external_id(connection_id, "C1").email == "jane@example.com"
        assert len(candidate_repo.get_by_email(" Jane@Example.com ")) == 1

    def test_application_keyed_by_job_and_candidate(self, application_repo):
        connection_id, job_id, candidate_id = ObjectId(), ObjectId(), ObjectId()
        _, created = application_repo.upsert_application(
            Application(
                connection_id=connection_id,
                job_posting_id=job_id,
                candidate_id=candidate_id,
                external_application_id="A1",
            )
        )
        _, created_again = application_repo.upsert_application(
            Application(
                connection_id=connection_id,
                job_posting_id=job_id,
                candidate_id=candidate_id,
                external_application_id="A1-resubmitted",
            )
        )
        assert (created, created_again) == (True, False)
        assert application_repo.count({}) == 1
        assert application_repo.get_by_external_id(connection_id, "A1-resubmitted") is not None


# ═══════════════════════════════════════════════════════════════════════════
#  field_mapping_repository.py
# ═══════════════════════════════════════════════════════════════════════════


class TestFieldMappingRepository:
    def test_save_replaces_existing_mapping(self, field_mapping_repo):
        connection_id = ObjectId()
        field_mapping_repo.save_mapping(
            connection_id, FieldMappingCreate(entity_type=EntityType.JOB, local_field="title", ats_field="name")
        )
        _, created = field_mapping_repo.save_mapping(
            connection_id, FieldMappingCreate(entity_type=EntityType.JOB, local_field="title", ats_field="text")
        )

        mappings = field_mapping_repo.get_for_entity(connection_id, EntityType.JOB)
        assert created is False
        assert list(mappings) == ["title"]
        assert mappings["title"].ats_field == "text"

    def test_entity_types_are_separate(self, field_mapping_repo):
        connection_id = ObjectId()
        field_mapping_repo.save_mapping(
            connection_id, FieldMappingCreate(entity_type=EntityType.JOB, local_field="status", ats_field="state")
        )
        assert field_mapping_repo.get_for_entity(connection_id, EntityType.CANDIDATE) == {}


# ═══════════════════════════════════════════════════════════════════════════
#  sync_log_repository.py
# ═══════════════════════════════════════════════════════════════════════════


class TestSyncLogRepository:
    def test_progress_accumulates(self, sync_log_repo):
        log = sync_log_repo.start(ObjectId(), SyncType.FULL, {"location": "Lisbon"})
        sync_log_repo.add_progress(log.id, processed=3, created=2, updated=1)
        sync_log_repo.add_progress(log.id, processed=2, failed=2, errors=["a", "b"])

        loaded = sync_log_repo.get_by_id(log.id)
        assert loaded.status == SyncStatus.STARTED
        assert loaded.filters == {"location": "Lisbon"}
        assert (loaded.records_processed, loaded.records_created, loaded.records_updated) == (5, 2, 1)
        assert loaded.records_failed == 2
        assert loaded.errors == ["a", "b"]

    def test_completion_is_terminal(self, sync_log_repo):
        log = sync_log_repo.start(ObjectId(), SyncType.JOBS)
        completed = sync_log_repo.mark_completed(log.id)
        assert completed.status == SyncStatus.COMPLETED
        assert completed.completed_at is not None
        assert completed.duration_seconds >= 0

        # A finished run ignores later transitions and progress
        assert sync_log_repo.mark_failed(log.id, ["late"]).status == SyncStatus.COMPLETED
        sync_log_repo.add_progress(log.id, processed=5)
        assert sync_log_repo.get_by_id(log.id).records_processed == 0

    def test_mark_failed_appends_errors(self, sync_log_repo):
        log = sync_log_repo.start(ObjectId(), SyncType.FULL)
        failed = sync_log_repo.mark_failed(log.id, ["fetch failed"])
        assert failed.status == SyncStatus.FAILED
        assert failed.errors == ["fetch failed"]

    def test_count_in_last_hour(self, sync_log_repo):
        connection_id = ObjectId()
        for _ in range(3):
            sync_log_repo.start(connection_id, SyncType.FULL)
        sync_log_repo.start(ObjectId(), SyncType.FULL)

        assert sync_log_repo.count_in_last_hour(connection_id) == 3
        later = utcnow() + timedelta(hours=2)
        assert sync_log_repo.count_in_last_hour(connection_id, now=later) == 0

    def test_recent_is_newest_first(self, sync_log_repo):
        connection_id = ObjectId()
        first = sync_log_repo.start(connection_id, SyncType.JOBS)
        sync_log_repo.update(first.id, {"started_at": utcnow() - timedelta(minutes=5)})
        second = sync_log_repo.start(connection_id, SyncType.CANDIDATES)
        assert [log.id for log in sync_log_repo.get_recent(connection_id)] == [second.id, first.id]


# ═══════════════════════════════════════════════════════════════════════════
#  webhook_repository.py
# ═══════════════════════════════════════════════════════════════════════════


class TestWebhookRepository:
    def _create(self, webhook_repo, connection_id, **kwargs) -> Webhook:
        return webhook_repo.create(
            Webhook(connection_id=connection_id, webhook_id=kwargs.pop("webhook_id", "w"), **kwargs)
        )

    def test_save_state(self, webhook_repo):
        webhook = self._create(webhook_repo, ObjectId(), event_type="job_created")
        webhook.mark_failed("boom")
        webhook_repo.save_state(webhook)

        loaded = webhook_repo.get_by_id(webhook.id)
        assert loaded.status == WebhookStatus.FAILED
        assert loaded.retry_count == 1
        assert loaded.error_message == "boom"

    def test_backlog_pending_oldest_first(self, webhook_repo):
        connection_id = ObjectId()
        now = utcnow()
        newer = self._create(webhook_repo, connection_id, webhook_id="new", received_at=now)
        older = self._create(webhook_repo, connection_id, webhook_id="old", received_at=now - timedelta(minutes=1))
        self._create(webhook_repo, connection_id, webhook_id="done", status=WebhookStatus.PROCESSED)

        backlog = webhook_repo.find_backlog(connection_id=connection_id)
        assert [w.webhook_id for w in backlog] == [older.webhook_id, newer.webhook_id]

    def test_backlog_failed_only_respects_retry_ceiling(self, webhook_repo):
        connection_id = ObjectId()
        self._create(webhook_repo, connection_id, webhook_id="retryable", status=WebhookStatus.FAILED, retry_count=2)
        self._create(webhook_repo, connection_id, webhook_id="exhausted", status=WebhookStatus.FAILED, retry_count=3)

        backlog = webhook_repo.find_backlog(failed_only=True)
        assert [w.webhook_id for w in backlog] == ["retryable"]

    def test_backlog_event_type_filter(self, webhook_repo):
        connection_id = ObjectId()
        self._create(webhook_repo, connection_id, webhook_id="a", event_type="job_created")
        self._create(webhook_repo, connection_id, webhook_id="b", event_type="hire_completed")
        backlog = webhook_repo.find_backlog(event_type="hire_completed")
        assert [w.webhook_id for w in backlog] == ["b"]

    def test_backlog_event_types_filter(self, webhook_repo):
        connection_id = ObjectId()
        self._create(webhook_repo, connection_id, webhook_id="a", event_type="job_created")
        self._create(webhook_repo, connection_id, webhook_id="b", event_type="survey_completed")

        backlog = webhook_repo.find_backlog(event_types=["job_created", "hire_completed"])
        assert [w.webhook_id for w in backlog] == ["a"]
        assert webhook_repo.find_backlog(event_type="survey_completed", event_types=["job_created"]) == []

    def test_count_by_status(self, webhook_repo):
        connection_id = ObjectId()
        self._create(webhook_repo, connection_id)
        self._create(webhook_repo, connection_id, status=WebhookStatus.FAILED)
        assert webhook_repo.count_by_status(connection_id) == {"pending": 1, "processed": 0, "failed": 1}
