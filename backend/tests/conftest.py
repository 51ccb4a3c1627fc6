"""Pytest configuration and fixtures."""

import os
import secrets
from unittest.mock import MagicMock

import pytest

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", _TEST_JWT_SECRET)

from app.auth import create_access_token  # noqa: E402
from app.config import get_settings  # noqa: E402
from app.database import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.rate_limit import limiter  # noqa: E402
from app.services import (  # noqa: E402
    get_application_storage,
    get_project_storage,
    get_ticket_storage,
)
from fastapi.testclient import TestClient  # noqa: E402

from sweaquity.applications import InMemoryApplicationStorage  # noqa: E402
from sweaquity.projects import InMemoryProjectStorage  # noqa: E402
from sweaquity.tickets import InMemoryTicketStorage  # noqa: E402

# Clearly invalid test IDs that cannot collide with production IDs
BUSINESS_ID = "usr_TEST_BUSINESS_0000"
SEEKER_ID = "usr_TEST_SEEKER_00000"
OTHER_SEEKER_ID = "usr_TEST_SEEKER_00001"


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep marketplace event logs out of the home directory."""
    monkeypatch.setenv("SWEAQUITY_DATA_DIR", str(tmp_path))


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture
def project_storage():
    return InMemoryProjectStorage()


@pytest.fixture
def application_storage():
    return InMemoryApplicationStorage()


@pytest.fixture
def ticket_storage():
    return InMemoryTicketStorage()


@pytest.fixture
def mock_db():
    """Stand-in Supabase client for routes that query tables directly."""
    return MagicMock()


@pytest.fixture
def client(project_storage, application_storage, ticket_storage, mock_db):
    """Test client wired to in-memory storages."""
    app.dependency_overrides[get_project_storage] = lambda: project_storage
    app.dependency_overrides[get_application_storage] = lambda: application_storage
    app.dependency_overrides[get_ticket_storage] = lambda: ticket_storage
    app.dependency_overrides[get_db] = lambda: mock_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _headers(user_id: str, account_type: str) -> dict:
    token = create_access_token(
        user_id,
        get_settings(),
        email=f"{user_id.lower()}@example.com",
        account_type=account_type,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def business_headers():
    return _headers(BUSINESS_ID, "business")


@pytest.fixture
def seeker_headers():
    return _headers(SEEKER_ID, "job_seeker")


@pytest.fixture
def other_seeker_headers():
    return _headers(OTHER_SEEKER_ID, "job_seeker")


@pytest.fixture
def project(client, business_headers):
    """An active project with 20% equity on offer."""
    response = client.post(
        "/projects",
        json={"title": "Marketplace MVP", "equity_allocation": 20, "skills_required": ["Python"]},
        headers=business_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def task(client, business_headers, project):
    """An open task carrying 5% of the project's equity."""
    response = client.post(
        f"/projects/{project['project_id']}/tasks",
        json={
            "title": "Build the API",
            "timeframe": "4 weeks",
            "equity_allocation": 5,
            "skill_requirements": [{"skill": "Python", "level": "Advanced"}, {"skill": "SQL"}],
        },
        headers=business_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def accepted(client, business_headers, seeker_headers, task):
    """An application both parties have accepted. Returns the accept response."""
    app_response = client.post(
        "/applications", json={"task_id": task["task_id"], "message": "Hi"}, headers=seeker_headers
    )
    assert app_response.status_code == 201
    job_app_id = app_response.json()["job_app_id"]
    client.post(f"/applications/{job_app_id}/accept", headers=business_headers)
    response = client.post(f"/applications/{job_app_id}/accept", headers=seeker_headers)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def business_id():
    return BUSINESS_ID


@pytest.fixture
def seeker_id():
    return SEEKER_ID
