"""
Tests for the HTTP surface, driven through FastAPI's TestClient with the
integration service swapped for one bound to mongomock.
"""

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from ats_connect.api.app import app
from ats_connect.api.dependencies import get_service
from ats_connect.utils.constants import SyncType


@pytest.fixture
def api(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def created(api):
    response = api.post(
        "/ats/connections",
        json={
            "name": "Greenhouse prod",
            "provider": "greenhouse",
            "api_endpoint": "https://api.example.com",
            "credentials": {"api_key": "secret-key"},
        },
        headers={"X-Owner-Id": "owner-1"},
    )
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_healthz(self, api):
        response = api.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


# ── Connections ──────────────────────────────────────────────────────────────


class TestConnectionRoutes:
    def test_create_hides_credentials(self, created):
        assert created["owner_id"] == "owner-1"
        assert created["provider_display_name"] == "Greenhouse"
        assert created["credential_keys"] == ["api_key"]
        assert "secret-key" not in str(created)
        assert "credentials" not in created

    def test_create_rejects_unknown_provider(self, api):
        response = api.post(
            "/ats/connections",
            json={
                "name": "x",
                "provider": "not-a-provider",
                "api_endpoint": "https://api.example.com",
                "credentials": {},
            },
        )
        assert response.status_code == 422

    def test_get(self, api, created):
        response = api.get(f"/ats/connections/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Greenhouse prod"

    @pytest.mark.parametrize("connection_id", [str(ObjectId()), "garbage"])
    def test_get_missing(self, api, connection_id):
        assert api.get(f"/ats/connections/{connection_id}").status_code == 404

    def test_patch(self, api, created):
        response = api.patch(f"/ats/connections/{created['id']}", json={"is_active": False})
        assert response.status_code == 200
        assert response.json()["is_active"] is False

    def test_test_connection(self, api, created, provider_api):
        provider_api.routes["/v1/jobs"] = (403, {"message": "forbidden"})
        response = api.post(f"/ats/connections/{created['id']}/test")
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["message"] == "Connection failed: 403"


# ── Sync ─────────────────────────────────────────────────────────────────────


class TestSyncRoute:
    def test_sync(self, api, created, greenhouse_routes):
        response = api.post(f"/ats/connections/{created['id']}/sync", json={"location": "Remote"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["message"] == "Sync completed successfully"
        assert body["result"]["records_created"] == 3

    def test_sync_jobs_only(self, api, created, greenhouse_routes):
        response = api.post(f"/ats/connections/{created['id']}/sync", json={"sync_type": "jobs"})
        assert list(response.json()["result"]["entities"]) == ["job"]

    def test_sync_failure_message(self, api, created):
        body = api.post(f"/ats/connections/{created['id']}/sync").json()
        assert body["success"] is False
        assert body["message"].startswith("Sync failed: ")

    def test_rate_limited(self, api, service, make_connection):
        connection = make_connection(provider="bamboohr")
        for _ in range(50):
            service.sync_logs.start(connection.id, SyncType.FULL)

        response = api.post(f"/ats/connections/{connection.id}/sync")

        assert response.status_code == 429
        assert "Rate limit reached" in response.json()["detail"]

    def test_sync_missing_connection(self, api):
        assert api.post(f"/ats/connections/{ObjectId()}/sync").status_code == 404


# ── Webhooks ─────────────────────────────────────────────────────────────────


class TestWebhookRoute:
    def test_accepts_and_processes(self, api, service, created, greenhouse_job):
        response = api.post(
            f"/ats/{created['id']}/webhook",
            json={"id": "evt-1", "event_type": "job_created", "data": greenhouse_job},
        )

        assert response.status_code == 202
        body = response.json()
        assert body["accepted"] is True
        assert body["event_type"] == "job_created"
        assert body["status"] == "processed"
        assert service.job_postings.count({}) == 1

    def test_processing_failure_is_still_accepted(self, api, created):
        response = api.post(
            f"/ats/{created['id']}/webhook",
            json={"event_type": "job_created", "data": {"name": "No id"}},
        )
        assert response.status_code == 202
        assert response.json()["status"] == "failed"
        assert response.json()["error"]

    def test_accepts_a_json_array(self, api, service, created):
        response = api.post(f"/ats/{created['id']}/webhook", json=[{"id": "x", "title": "QA"}])

        assert response.status_code == 202
        body = response.json()
        assert body["event_type"] == "unknown"
        assert body["status"] == "pending"
        assert service.webhooks.get_by_id(body["webhook_id"]).payload == [{"id": "x", "title": "QA"}]

    def test_unknown_connection(self, api):
        response = api.post(f"/ats/{ObjectId()}/webhook", json={"event_type": "job_created"})
        assert response.status_code == 404
