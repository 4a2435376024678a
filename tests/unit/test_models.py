"""
Tests for Pydantic data models in ats_connect.data.models.
"""

from datetime import timedelta

import pytest
from bson import ObjectId
from pydantic import ValidationError

from ats_connect.data.models import (
    Application,
    AtsConnection,
    Candidate,
    ConnectionCreate,
    FieldMapping,
    JobPosting,
    SyncLog,
    TransformationRule,
    Webhook,
)
from ats_connect.data.models.base import BaseDocument, PyObjectId
from ats_connect.utils.constants import (
    ApplicationStatus,
    FieldType,
    JobStatus,
    SyncStatus,
    WebhookStatus,
)


# ═══════════════════════════════════════════════════════════════════════════
#  base.py
# ═══════════════════════════════════════════════════════════════════════════


class TestPyObjectId:
    def test_validate_valid_string(self):
        oid = ObjectId()
        assert PyObjectId.validate(str(oid)) == oid

    def test_validate_object_id_passthrough(self):
        oid = ObjectId()
        assert PyObjectId.validate(oid) is oid

    def test_validate_invalid(self):
        with pytest.raises(ValueError):
            PyObjectId.validate("not-an-id")

    def test_python_dump_keeps_object_id(self):
        oid = ObjectId()
        sync_log = SyncLog(connection_id=oid)
        assert sync_log.model_dump()["connection_id"] is oid
        assert sync_log.model_dump(mode="json")["connection_id"] == str(oid)


class TestBaseDocument:
    def test_mongo_dump_drops_missing_id(self):
        data = SyncLog(connection_id=ObjectId()).model_dump_mongo()
        assert "_id" not in data

    def test_id_alias(self):
        oid = ObjectId()
        doc = BaseDocument.model_validate({"_id": oid})
        assert doc.id == oid


# ═══════════════════════════════════════════════════════════════════════════
#  connection.py
# ═══════════════════════════════════════════════════════════════════════════


class TestAtsConnection:
    def test_provider_is_lowercased(self):
        connection = AtsConnection(name="GH", provider=" Greenhouse ", api_endpoint="https://x")
        assert connection.provider == "greenhouse"

    def test_rate_limit_and_display_name(self):
        connection = AtsConnection(name="BB", provider="bamboohr", api_endpoint="https://x")
        assert connection.hourly_rate_limit == 50
        assert connection.provider_display_name == "BambooHR"

    def test_unknown_provider_defaults(self):
        connection = AtsConnection(name="Acme", provider="acme-ats", api_endpoint="https://x")
        assert connection.hourly_rate_limit == 100
        assert connection.provider_enum is None

    def test_credentials_never_dumped(self):
        connection = AtsConnection(
            name="GH", provider="greenhouse", api_endpoint="https://x", credentials={"api_key": "s"}
        )
        assert "credentials" not in connection.model_dump_mongo()
        assert connection.credential("api_key") == "s"
        assert connection.credential("missing") == ""

    def test_create_schema_rejects_unknown_provider(self):
        with pytest.raises(ValidationError):
            ConnectionCreate(
                name="X", provider="acme-ats", api_endpoint="https://x.example.com", credentials={}
            )

    def test_create_schema_rejects_bad_url(self):
        with pytest.raises(ValidationError):
            ConnectionCreate(name="X", provider="lever", api_endpoint="not a url", credentials={})


# ═══════════════════════════════════════════════════════════════════════════
#  field_mapping.py
# ═══════════════════════════════════════════════════════════════════════════


class TestFieldMapping:
    def test_rule_params(self):
        rule = TransformationRule(type="replace", search="-", replace=" ")
        assert rule.params == {"search": "-", "replace": " "}
        assert rule.param("missing", "d") == "d"

    def test_defaults(self):
        mapping = FieldMapping(
            connection_id=ObjectId(), entity_type="job", local_field="title", ats_field="name"
        )
        assert mapping.field_type == FieldType.STRING
        assert mapping.is_required is False
        assert mapping.entity_display_name == "Job Posting"

    def test_empty_local_field_rejected(self):
        with pytest.raises(ValidationError):
            FieldMapping(connection_id=ObjectId(), entity_type="job", local_field="", ats_field="name")


# ═══════════════════════════════════════════════════════════════════════════
#  job_posting.py / candidate.py / application.py
# ═══════════════════════════════════════════════════════════════════════════


class TestJobPosting:
    def test_negative_salary_rejected(self):
        with pytest.raises(ValidationError):
            JobPosting(connection_id=ObjectId(), external_job_id="1", title="X", salary_min=-1)

    def test_salary_display(self):
        job = JobPosting(
            connection_id=ObjectId(), external_job_id="1", title="X", salary_min=50000, salary_max=70000
        )
        assert job.salary_display == "USD 50,000 - 70,000"

    def test_is_open(self):
        job = JobPosting(connection_id=ObjectId(), external_job_id="1", title="X", status=JobStatus.CLOSED)
        assert job.is_open is False


class TestCandidate:
    def test_full_name_fallback(self):
        candidate = Candidate(connection_id=ObjectId(), external_candidate_id="c-9")
        assert candidate.full_name == "Candidate c-9"


class TestApplication:
    def _application(self) -> Application:
        return Application(connection_id=ObjectId(), job_posting_id=ObjectId(), candidate_id=ObjectId())

    def test_rejection_records_reason(self):
        application = self._application()
        application.update_status(ApplicationStatus.REJECTED, "Position filled")
        assert application.status == ApplicationStatus.REJECTED
        assert application.rejection_reason == "Position filled"
        assert application.status_updated_at is not None
        assert application.is_closed is True

    def test_reason_ignored_for_other_statuses(self):
        application = self._application()
        application.update_status(ApplicationStatus.SCREENING, "irrelevant")
        assert application.rejection_reason is None

    def test_interview_note(self):
        application = self._application()
        entry = application.add_interview_note("Strong system design", "Ana")
        assert application.interview_notes == [entry]
        assert entry["interviewer"] == "Ana"

    def test_assessment_score(self):
        application = self._application()
        application.set_assessment_score("coding", 91)
        assert application.assessment_scores == {"coding": 91}


# ═══════════════════════════════════════════════════════════════════════════
#  sync_log.py / webhook.py
# ═══════════════════════════════════════════════════════════════════════════


class TestSyncLog:
    def test_success_rate(self):
        log = SyncLog(connection_id=ObjectId(), records_processed=8, records_failed=2)
        assert log.success_rate == 75.0

    def test_success_rate_without_records(self):
        assert SyncLog(connection_id=ObjectId()).success_rate == 0.0

    @pytest.mark.parametrize(
        "seconds,expected",
        [(None, "N/A"), (42.7, "42s"), (125, "2m 5s"), (3720, "1h 2m")],
    )
    def test_formatted_duration(self, seconds, expected):
        assert SyncLog(connection_id=ObjectId(), duration_seconds=seconds).formatted_duration == expected

    def test_terminal_states(self):
        assert SyncLog(connection_id=ObjectId(), status=SyncStatus.FAILED).is_terminal is True
        assert SyncLog(connection_id=ObjectId()).is_terminal is False


class TestWebhook:
    def _webhook(self, **kwargs) -> Webhook:
        return Webhook(connection_id=ObjectId(), webhook_id="wh-1", event_type="job_created", **kwargs)

    def test_mark_failed_increments_retry_count(self):
        webhook = self._webhook()
        webhook.mark_failed("boom")
        assert webhook.status == WebhookStatus.FAILED
        assert webhook.retry_count == 1
        assert webhook.error_message == "boom"

    @pytest.mark.parametrize("retry_count,expected", [(0, True), (2, True), (3, False), (5, False)])
    def test_can_retry_boundary(self, retry_count, expected):
        webhook = self._webhook(status=WebhookStatus.FAILED, retry_count=retry_count)
        assert webhook.can_retry is expected

    def test_pending_cannot_retry(self):
        assert self._webhook().can_retry is False

    def test_reset_keeps_retry_count(self):
        webhook = self._webhook()
        webhook.mark_failed("boom")
        webhook.reset_for_retry()
        assert webhook.status == WebhookStatus.PENDING
        assert webhook.retry_count == 1
        assert webhook.error_message is None
        assert webhook.processed_at is None

    def test_processing_time(self):
        webhook = self._webhook()
        webhook.mark_processed()
        webhook.processed_at = webhook.received_at + timedelta(seconds=3)
        assert webhook.processing_time == 3.0

    def test_negative_retry_count_rejected(self):
        with pytest.raises(ValidationError):
            self._webhook(retry_count=-1)

    def test_payload_summary(self):
        webhook = self._webhook(payload={"job_id": "J1", "title": "QA", "extra": True})
        assert webhook.payload_summary == {"job_id": "J1", "title": "QA", "department": None, "status": None}

    def test_unknown_event_display_name(self):
        webhook = Webhook(connection_id=ObjectId(), webhook_id="w", event_type="stage_moved")
        assert webhook.event_display_name == "Stage Moved"
