"""
Projects storage layer.

Defines the persistence protocol for businesses, projects and tasks, plus an
in-memory implementation. The Supabase-backed implementation lives with the
backend service.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from sweaquity.projects.models import Business, Project, ProjectStatus, ProjectTask

logger = logging.getLogger(__name__)


class ProjectStorage(Protocol):
    """Protocol for project persistence backends."""

    # Businesses
    def save_business(self, business: Business) -> str:
        """Insert or update a business profile. Returns the business ID."""
        ...

    def get_business(self, business_id: str) -> Optional[Business]:
        ...

    # Projects
    def save_project(self, project: Project) -> str:
        """Save a project. Returns the project ID."""
        ...

    def get_project(self, project_id: str) -> Optional[Project]:
        ...

    def list_projects(
        self,
        business_id: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Project]:
        """List projects, newest first."""
        ...

    def update_project(self, project: Project) -> bool:
        """Update a project. Returns True if it existed."""
        ...

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and its tasks."""
        ...

    # Tasks
    def save_task(self, task: ProjectTask) -> str:
        ...

    def get_task(self, task_id: str) -> Optional[ProjectTask]:
        ...

    def list_tasks(
        self,
        project_id: Optional[str] = None,
        open_only: bool = False,
    ) -> List[ProjectTask]:
        """List tasks, oldest first."""
        ...

    def update_task(self, task: ProjectTask) -> bool:
        ...

    def delete_task(self, task_id: str) -> bool:
        ...


class InMemoryProjectStorage:
    """In-memory project storage for testing and local development."""

    def __init__(self):
        self._businesses: dict[str, Business] = {}
        self._projects: dict[str, Project] = {}
        self._tasks: dict[str, ProjectTask] = {}

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    # === Businesses ===

    def save_business(self, business: Business) -> str:
        self._businesses[business.businesses_id] = business
        return business.businesses_id

    def get_business(self, business_id: str) -> Optional[Business]:
        return self._businesses.get(business_id)

    # === Projects ===

    def save_project(self, project: Project) -> str:
        self._projects[project.project_id] = project
        return project.project_id

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def list_projects(
        self,
        business_id: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Project]:
        projects = list(self._projects.values())

        if business_id is not None:
            projects = [p for p in projects if p.business_id == business_id]
        if status is not None:
            status_val = status.value if isinstance(status, ProjectStatus) else status
            projects = [p for p in projects if p.status == status_val]

        projects.sort(key=lambda p: p.created_at or self._utc_now(), reverse=True)
        return projects[offset : offset + limit]

    def update_project(self, project: Project) -> bool:
        if project.project_id not in self._projects:
            return False
        self._projects[project.project_id] = project
        return True

    def delete_project(self, project_id: str) -> bool:
        if self._projects.pop(project_id, None) is None:
            return False
        for task_id in [t.task_id for t in self._tasks.values() if t.project_id == project_id]:
            del self._tasks[task_id]
        return True

    # === Tasks ===

    def save_task(self, task: ProjectTask) -> str:
        self._tasks[task.task_id] = task
        return task.task_id

    def get_task(self, task_id: str) -> Optional[ProjectTask]:
        return self._tasks.get(task_id)

    def list_tasks(
        self,
        project_id: Optional[str] = None,
        open_only: bool = False,
    ) -> List[ProjectTask]:
        tasks = list(self._tasks.values())
        if project_id is not None:
            tasks = [t for t in tasks if t.project_id == project_id]
        if open_only:
            tasks = [t for t in tasks if t.is_open]
        tasks.sort(key=lambda t: t.created_at or self._utc_now())
        return tasks

    def update_task(self, task: ProjectTask) -> bool:
        if task.task_id not in self._tasks:
            return False
        self._tasks[task.task_id] = task
        return True

    def delete_task(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None
