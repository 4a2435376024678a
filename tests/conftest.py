"""
Shared test fixtures for the ATS Connect test suite.

Sets environment variables before any ats_connect imports to prevent config
failures, then provides an in-memory MongoDB, repositories bound to it, a
mocked provider API and sample provider payloads.
"""

import os

from cryptography.fernet import Fernet

# === Set environment BEFORE any ats_connect imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("DB_NAME", "ats_connect_test")
os.environ.setdefault("SECURITY_ENCRYPTION_KEY", Fernet.generate_key().decode())

from types import SimpleNamespace
from typing import Any, Optional

import httpx
import mongomock
import pytest

from ats_connect.data.database import get_database_manager
from ats_connect.data.models import AtsConnection
from ats_connect.data.repositories import (
    ApplicationRepository,
    CandidateRepository,
    ConnectionRepository,
    FieldMappingRepository,
    JobPostingRepository,
    SyncLogRepository,
    WebhookRepository,
)
from ats_connect.services.integration_service import AtsIntegrationService
from ats_connect.utils.crypto import CredentialCipher


# ---------------------------------------------------------------------------
# Database and repositories
# ---------------------------------------------------------------------------


@pytest.fixture
def mongo_db():
    """Fresh in-memory database with the production indexes."""
    client = mongomock.MongoClient()
    database = client["ats_connect_test"]
    get_database_manager().ensure_indexes(database)
    yield database
    client.close()


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher(Fernet.generate_key())


@pytest.fixture
def connection_repo(mongo_db, cipher) -> ConnectionRepository:
    return ConnectionRepository(mongo_db, cipher)


@pytest.fixture
def field_mapping_repo(mongo_db) -> FieldMappingRepository:
    return FieldMappingRepository(mongo_db)


@pytest.fixture
def job_posting_repo(mongo_db) -> JobPostingRepository:
    return JobPostingRepository(mongo_db)


@pytest.fixture
def candidate_repo(mongo_db) -> CandidateRepository:
    return CandidateRepository(mongo_db)


@pytest.fixture
def application_repo(mongo_db) -> ApplicationRepository:
    return ApplicationRepository(mongo_db)


@pytest.fixture
def sync_log_repo(mongo_db) -> SyncLogRepository:
    return SyncLogRepository(mongo_db)


@pytest.fixture
def webhook_repo(mongo_db) -> WebhookRepository:
    return WebhookRepository(mongo_db)


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


@pytest.fixture
def make_connection(connection_repo):
    """Factory that builds (and by default persists) AtsConnection documents."""

    def _factory(
        provider: str = "greenhouse",
        name: Optional[str] = None,
        api_endpoint: str = "https://api.example.com",
        credentials: Optional[dict[str, Any]] = None,
        configuration: Optional[dict[str, Any]] = None,
        field_mapping: Optional[dict[str, Any]] = None,
        is_active: bool = True,
        owner_id: Optional[str] = "owner-1",
        persist: bool = True,
    ) -> AtsConnection:
        connection = AtsConnection(
            owner_id=owner_id,
            name=name or f"{provider.title()} Test",
            provider=provider,
            api_endpoint=api_endpoint,
            credentials={"api_key": "secret-key"} if credentials is None else credentials,
            configuration=configuration or {},
            field_mapping=field_mapping or {},
            is_active=is_active,
        )
        if not persist:
            return connection
        return connection_repo.create(connection)

    return _factory


# ---------------------------------------------------------------------------
# Mocked provider API
# ---------------------------------------------------------------------------


@pytest.fixture
def provider_api():
    """
    httpx client whose requests are answered from ``routes``.

    Routes are keyed by URL path. A value is a JSON body (served with 200),
    a ``(status, body)`` tuple, or a callable taking the request and
    returning an ``httpx.Response``. Unrouted paths answer 404. Every request
    is recorded in ``requests``.
    """
    routes: dict[str, Any] = {}
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(route, tuple):
            status_code, body = route
            return httpx.Response(status_code, json=body)
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    yield SimpleNamespace(routes=routes, requests=requests, client=client)
    client.close()


@pytest.fixture
def service(mongo_db, cipher, provider_api) -> AtsIntegrationService:
    return AtsIntegrationService(database=mongo_db, http_client=provider_api.client, cipher=cipher)


# ---------------------------------------------------------------------------
# Sample provider payloads (Greenhouse shapes)
# ---------------------------------------------------------------------------


@pytest.fixture
def greenhouse_job() -> dict[str, Any]:
    return {
        "id": 4001,
        "name": "Backend Engineer",
        "departments": [{"id": 1, "name": "Engineering"}],
        "offices": [{"id": 9, "name": "Remote"}],
        "notes": "Build and run our public APIs.",
        "status": "open",
        "opened_at": "2024-03-01T12:00:00Z",
        "employment_type": "Full_Time",
        "salary": "$50,000 - $70,000",
        "requirements": ["Python", "MongoDB"],
        "hiring_team": {
            "hiring_managers": [{"name": "Ana Lima"}],
            "recruiters": [{"name": "Rui Costa"}],
        },
        "requisition_id": "REQ-7",
    }


@pytest.fixture
def greenhouse_candidate() -> dict[str, Any]:
    return {
        "id": 5001,
        "first_name": "Jane",
        "last_name": "Doe",
        "email_addresses": [{"value": "Jane.Doe@Example.com", "type": "personal"}],
        "phone_numbers": [{"value": "+1 555 0100"}],
        "title": "Software Engineer",
        "company": "Acme",
        "skills": ["python", "sql"],
        "availability": "2 weeks",
        "open_to_remote": "yes",
    }


@pytest.fixture
def greenhouse_application() -> dict[str, Any]:
    return {
        "id": 6001,
        "jobs": [{"id": 4001}],
        "candidate_id": 5001,
        "status": "onsite",
        "applied_at": "2024-03-05T09:00:00Z",
    }


@pytest.fixture
def greenhouse_routes(provider_api, greenhouse_job, greenhouse_candidate, greenhouse_application):
    """Serve one job, one candidate and one application from the Greenhouse paths."""
    provider_api.routes["/v1/jobs"] = [greenhouse_job]
    provider_api.routes["/v1/candidates"] = [greenhouse_candidate]
    provider_api.routes["/v1/applications"] = [greenhouse_application]
    return provider_api
