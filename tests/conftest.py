"""
Pytest fixtures for the sweaquity library tests.
"""

import logging

import pytest

from sweaquity.applications import ApplicationService, InMemoryApplicationStorage
from sweaquity.config import MarketplaceConfig
from sweaquity.equity import EquityService
from sweaquity.projects import InMemoryProjectStorage, ProjectService
from sweaquity.tickets import InMemoryTicketStorage, TicketService

BUSINESS_ID = "usr_TEST_BUSINESS_0000"
SEEKER_ID = "usr_TEST_SEEKER_00000"
OTHER_SEEKER_ID = "usr_TEST_SEEKER_00001"


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Send marketplace event logs to a temp directory."""
    monkeypatch.setenv("SWEAQUITY_DATA_DIR", str(tmp_path))
    yield tmp_path
    events = logging.getLogger("sweaquity.events")
    for handler in list(events.handlers):
        events.removeHandler(handler)
        handler.close()


@pytest.fixture
def config():
    return MarketplaceConfig()


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
def project_service(project_storage, config):
    return ProjectService(project_storage, config)


@pytest.fixture
def application_service(application_storage, project_storage, config):
    return ApplicationService(application_storage, project_storage, config)


@pytest.fixture
def ticket_service(ticket_storage, config):
    return TicketService(ticket_storage, config)


@pytest.fixture
def equity_service(project_storage, application_storage, ticket_storage, config):
    return EquityService(project_storage, application_storage, ticket_storage, config)


@pytest.fixture
def business_id():
    return BUSINESS_ID


@pytest.fixture
def seeker_id():
    return SEEKER_ID


@pytest.fixture
def other_seeker_id():
    return OTHER_SEEKER_ID


@pytest.fixture
def project(project_service):
    """An active project offering 20% equity."""
    return project_service.create_project(
        BUSINESS_ID, "Marketplace MVP", 20, skills_required=["Python", "React"]
    )


@pytest.fixture
def task(project_service, project):
    """An open task carrying 5% of the project's equity."""
    return project_service.add_task(
        project.project_id,
        BUSINESS_ID,
        "Build the API",
        "4 weeks",
        5,
        skill_requirements=[{"skill": "Python", "level": "Advanced"}, "SQL"],
    )


@pytest.fixture
def application(application_service, task):
    return application_service.apply(task.task_id, SEEKER_ID, message="Hello")


@pytest.fixture
def accepted(application_service, application):
    """(application, accepted job) after both parties accepted."""
    application_service.accept_as_business(application.job_app_id, BUSINESS_ID)
    return application_service.accept_as_job_seeker(application.job_app_id, SEEKER_ID)
