"""
Tests for ats_connect.utils.logger: redaction, the audit trail and sink setup.
"""

import json
import sys

import pytest
from loguru import logger

from ats_connect.utils import logger as logger_module
from ats_connect.utils.config import AppSettings, LoggingSettings
from ats_connect.utils.constants import AuditType
from ats_connect.utils.logger import REDACTED, audit_log, get_logger, redact, setup_logging


@pytest.fixture
def audit_records():
    """Audit records captured in memory."""
    records = []
    handler_id = logger.add(
        lambda message: records.append(message.record),
        filter=logger_module._is_audit,
        level="INFO",
    )
    yield records
    logger.remove(handler_id)


# ── Redaction ────────────────────────────────────────────────────────────────


class TestRedact:
    def test_masks_credential_like_keys(self):
        redacted = redact({"api_key": "k", "Password": "p", "user": "ana"})
        assert redacted == {"api_key": REDACTED, "Password": REDACTED, "user": "ana"}

    def test_recurses_into_nested_values(self):
        data = {
            "connection": {"credentials": {"token": "t"}, "name": "Main"},
            "items": [{"client_secret": "s"}, ("x", {"refresh_token": "r"})],
        }

        redacted = redact(data)

        assert redacted["connection"] == {"credentials": REDACTED, "name": "Main"}
        assert redacted["items"][0] == {"client_secret": REDACTED}
        assert redacted["items"][1] == ["x", {"refresh_token": REDACTED}]

    def test_leaves_input_untouched(self):
        data = {"api_key": "k"}
        redact(data)
        assert data == {"api_key": "k"}


# ── Audit trail ──────────────────────────────────────────────────────────────


class TestAuditLog:
    def test_fields_travel_as_extra(self, audit_records):
        audit_log(
            "webhook_received",
            {"webhook_id": "evt-1", "credentials": {"api_key": "k"}},
            audit_type=AuditType.WEBHOOK,
        )

        assert len(audit_records) == 1
        extra = audit_records[0]["extra"]
        assert extra["audit_type"] == "WEBHOOK"
        assert extra["action"] == "webhook_received"
        assert extra["details"] == {"webhook_id": "evt-1", "credentials": REDACTED}
        assert audit_records[0]["message"] == "WEBHOOK webhook_received"

    def test_string_category_is_accepted(self, audit_records):
        audit_log("connection_created", {}, audit_type="CONNECTION")
        assert audit_records[0]["extra"]["audit_type"] == "CONNECTION"

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            audit_log("x", {}, audit_type="BILLING")

    def test_plain_logs_are_not_audit_records(self, audit_records):
        get_logger("tests").info("hello")
        assert audit_records == []


# ── Sink setup ───────────────────────────────────────────────────────────────


class TestSetupLogging:
    @pytest.fixture
    def settings(self, tmp_path):
        return AppSettings(
            logging=LoggingSettings(
                file_path=tmp_path / "app.log",
                audit_file_path=tmp_path / "audit.jsonl",
                console_output=False,
            )
        )

    @pytest.fixture(autouse=True)
    def restore_sinks(self, monkeypatch):
        monkeypatch.setattr(logger_module, "_configured", False)
        yield
        logger.remove()
        logger.configure(extra={})
        logger.add(sys.stderr)

    def test_audit_events_land_in_their_own_json_file(self, settings):
        setup_logging(settings, force=True)
        audit_log("sync_completed", {"connection_id": "c1", "password": "p"})
        get_logger("tests").info("operational line")
        logger.remove()

        lines = settings.logging.audit_file_path.read_text().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])["record"]
        assert record["extra"]["action"] == "sync_completed"
        assert record["extra"]["details"] == {"connection_id": "c1", "password": REDACTED}

        text_log = settings.logging.file_path.read_text()
        assert "operational line" in text_log
        assert "sync_completed" not in text_log

    def test_second_call_is_a_no_op(self, settings, tmp_path):
        setup_logging(settings)
        other = AppSettings(
            logging=LoggingSettings(
                file_path=tmp_path / "other.log",
                audit_file_path=tmp_path / "other.jsonl",
                console_output=False,
            )
        )

        setup_logging(other)
        logger.remove()

        assert not (tmp_path / "other.log").exists()
