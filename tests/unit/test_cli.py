"""
Tests for the ats-connect command line interface.
"""

import pytest
from bson import ObjectId
from typer.testing import CliRunner

from ats_connect import cli
from ats_connect.utils.constants import SyncType

runner = CliRunner()


@pytest.fixture
def patched_service(monkeypatch, service):
    """Point the CLI at the mongomock-backed service and skip the live MongoDB check."""
    monkeypatch.setattr("ats_connect.services.get_integration_service", lambda: service)
    monkeypatch.setattr(cli, "_require_database", lambda: None)
    return service


class TestVersion:
    def test_version(self):
        result = runner.invoke(cli.app, ["version"])
        assert result.exit_code == 0
        assert "ATS-Connect" in result.output
        assert "0.1.0" in result.output


# ── sync ─────────────────────────────────────────────────────────────────────


class TestSyncCommand:
    def test_invalid_type(self):
        result = runner.invoke(cli.app, ["sync", "--type", "bogus"])
        assert result.exit_code == 1
        assert "Invalid sync type" in result.output

    def test_unknown_provider(self):
        result = runner.invoke(cli.app, ["sync", "--provider", "nope"])
        assert result.exit_code == 1
        assert "Unknown provider" in result.output

    def test_sync_one_connection(self, patched_service, greenhouse_routes, make_connection):
        connection = make_connection()

        result = runner.invoke(cli.app, ["sync", "--connection", str(connection.id), "--type", "jobs"])

        assert result.exit_code == 0
        assert "Synchronization completed." in result.output
        assert patched_service.job_postings.count({}) == 1

    def test_sync_missing_connection(self, patched_service):
        result = runner.invoke(cli.app, ["sync", "--connection", str(ObjectId())])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_rate_limited(self, patched_service, make_connection):
        connection = make_connection(provider="bamboohr")
        for _ in range(50):
            patched_service.sync_logs.start(connection.id, SyncType.FULL)

        result = runner.invoke(cli.app, ["sync", "--connection", str(connection.id)])

        assert result.exit_code == 1
        assert "--force" in result.output

    def test_failed_run_exits_non_zero(self, patched_service, make_connection):
        make_connection()
        result = runner.invoke(cli.app, ["sync"])
        assert result.exit_code == 1
        assert "Synchronization completed." not in result.output

    def test_nothing_to_sync(self, patched_service):
        result = runner.invoke(cli.app, ["sync"])
        assert result.exit_code == 0
        assert "No active connections" in result.output


# ── process-webhooks ─────────────────────────────────────────────────────────


class TestProcessWebhooksCommand:
    def test_empty_backlog(self, patched_service):
        result = runner.invoke(cli.app, ["process-webhooks"])
        assert result.exit_code == 0
        assert "No webhooks to process." in result.output

    def test_retry_failures(self, patched_service, make_connection):
        connection = make_connection()
        patched_service.receive_webhook(connection.id, {"event_type": "job_created", "data": {"name": "No id"}})

        result = runner.invoke(cli.app, ["process-webhooks", "--retry"])

        assert result.exit_code == 1
        assert "Failed: 1" in result.output


class TestStatsCommand:
    def test_counts(self, patched_service, make_connection):
        make_connection()
        result = runner.invoke(cli.app, ["stats"])
        assert result.exit_code == 0
        assert "Connections" in result.output
