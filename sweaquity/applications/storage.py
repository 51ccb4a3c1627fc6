"""
Applications storage layer.

Persistence protocol for job applications and accepted jobs, plus an
in-memory implementation for tests and local development.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Protocol

from sweaquity.applications.models import AcceptedJob, ApplicationStatus, JobApplication

logger = logging.getLogger(__name__)


class ApplicationStorage(Protocol):
    """Protocol for application persistence backends."""

    # Applications
    def save_application(self, application: JobApplication) -> str:
        """Save an application. Returns the application ID."""
        ...

    def get_application(self, job_app_id: str) -> Optional[JobApplication]:
        ...

    def list_applications(
        self,
        task_id: Optional[str] = None,
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[ApplicationStatus] = None,
        limit: int = 100,
    ) -> List[JobApplication]:
        """List applications, newest first."""
        ...

    def update_application(self, application: JobApplication) -> bool:
        ...

    # Accepted jobs
    def save_accepted_job(self, job: AcceptedJob) -> str:
        ...

    def get_accepted_job(self, job_app_id: str) -> Optional[AcceptedJob]:
        """Get the accepted job for an application."""
        ...

    def list_accepted_jobs(self, job_app_ids: Iterable[str]) -> List[AcceptedJob]:
        ...

    def update_accepted_job(self, job: AcceptedJob) -> bool:
        ...


class InMemoryApplicationStorage:
    """In-memory application storage for testing and local development."""

    def __init__(self):
        self._applications: dict[str, JobApplication] = {}
        self._accepted: dict[str, AcceptedJob] = {}  # job_app_id -> accepted job

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    # === Applications ===

    def save_application(self, application: JobApplication) -> str:
        self._applications[application.job_app_id] = application
        return application.job_app_id

    def get_application(self, job_app_id: str) -> Optional[JobApplication]:
        return self._applications.get(job_app_id)

    def list_applications(
        self,
        task_id: Optional[str] = None,
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[ApplicationStatus] = None,
        limit: int = 100,
    ) -> List[JobApplication]:
        apps = list(self._applications.values())

        if task_id is not None:
            apps = [a for a in apps if a.task_id == task_id]
        if project_id is not None:
            apps = [a for a in apps if a.project_id == project_id]
        if user_id is not None:
            apps = [a for a in apps if a.user_id == user_id]
        if status is not None:
            status_val = status.value if isinstance(status, ApplicationStatus) else status
            apps = [a for a in apps if a.status == status_val]

        apps.sort(key=lambda a: a.applied_at or self._utc_now(), reverse=True)
        return apps[:limit]

    def update_application(self, application: JobApplication) -> bool:
        if application.job_app_id not in self._applications:
            return False
        self._applications[application.job_app_id] = application
        return True

    # === Accepted jobs ===

    def save_accepted_job(self, job: AcceptedJob) -> str:
        self._accepted[job.job_app_id] = job
        return job.id

    def get_accepted_job(self, job_app_id: str) -> Optional[AcceptedJob]:
        return self._accepted.get(job_app_id)

    def list_accepted_jobs(self, job_app_ids: Iterable[str]) -> List[AcceptedJob]:
        return [self._accepted[i] for i in job_app_ids if i in self._accepted]

    def update_accepted_job(self, job: AcceptedJob) -> bool:
        if job.job_app_id not in self._accepted:
            return False
        self._accepted[job.job_app_id] = job
        return True
