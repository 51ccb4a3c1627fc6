"""
Project service.

Business logic for business profiles, projects and their equity-bearing
tasks. The sum of task equity in a project never exceeds the equity the
project offers.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, List, Optional

from sweaquity.config import EQUITY_TOLERANCE, MarketplaceConfig
from sweaquity.projects.models import (
    Business,
    Project,
    ProjectStatus,
    ProjectTask,
    TaskAvailability,
)
from sweaquity.projects.storage import ProjectStorage
from sweaquity.skills import filter_opportunities, to_skill_requirement

logger = logging.getLogger(__name__)

PROJECT_UPDATABLE_FIELDS = {
    "title",
    "description",
    "status",
    "equity_allocation",
    "skills_required",
    "project_timeframe",
}
TASK_UPDATABLE_FIELDS = {
    "title",
    "description",
    "timeframe",
    "equity_allocation",
    "skill_requirements",
    "estimated_hours",
    "status",
    "completion_percentage",
    "dependencies",
}
BUSINESS_UPDATABLE_FIELDS = {
    "company_name",
    "industry",
    "contact_email",
    "website",
    "location",
}


class ProjectServiceError(Exception):
    """Base exception for project service errors."""

    pass


class ProjectNotFoundError(ProjectServiceError):
    """Project not found."""

    pass


class TaskNotFoundError(ProjectServiceError):
    """Task not found."""

    pass


class BusinessNotFoundError(ProjectServiceError):
    """Business profile not found."""

    pass


class UnauthorizedError(ProjectServiceError):
    """Actor is not the owning business."""

    pass


class EquityExceededError(ProjectServiceError):
    """Requested equity is more than the project has left."""

    pass


class ProjectService:
    """Service for projects and tasks."""

    def __init__(self, storage: ProjectStorage, config: Optional[MarketplaceConfig] = None):
        self.storage = storage
        self.config = config or MarketplaceConfig()

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _reject_unknown(self, fields: dict, allowed: set) -> None:
        unknown = set(fields) - allowed
        if unknown:
            raise ProjectServiceError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    # =========================================================================
    # Businesses
    # =========================================================================

    def save_business(self, business_id: str, **fields: Any) -> Business:
        """Create or update the business profile owned by ``business_id``."""
        self._reject_unknown(fields, BUSINESS_UPDATABLE_FIELDS)
        now = self._now()
        existing = self.storage.get_business(business_id)
        if existing:
            business = replace(existing, updated_at=now, **fields)
        else:
            business = Business(businesses_id=business_id, created_at=now, updated_at=now, **fields)
        self.storage.save_business(business)
        logger.info(f"Saved business profile {business_id}")
        return business

    def get_business(self, business_id: str) -> Business:
        business = self.storage.get_business(business_id)
        if not business:
            raise BusinessNotFoundError(f"Business {business_id} not found")
        return business

    # =========================================================================
    # Projects
    # =========================================================================

    def create_project(
        self,
        business_id: str,
        title: str,
        equity_allocation: float,
        description: Optional[str] = None,
        skills_required: Optional[List[str]] = None,
        project_timeframe: Optional[str] = None,
        status: str = "active",
    ) -> Project:
        """Create a project listing.

        Raises:
            ProjectServiceError: If the equity offered is out of range
        """
        if equity_allocation > self.config.max_project_equity:
            raise ProjectServiceError(
                f"Equity allocation cannot exceed {self.config.max_project_equity}%"
            )
        now = self._now()
        try:
            project = Project(
                project_id=str(uuid.uuid4()),
                business_id=business_id,
                title=title,
                description=description,
                equity_allocation=equity_allocation,
                skills_required=skills_required or [],
                project_timeframe=project_timeframe,
                status=status,
                created_at=now,
                updated_at=now,
            )
        except ValueError as e:
            raise ProjectServiceError(str(e)) from e

        self.storage.save_project(project)
        logger.info(f"Created project {project.project_id} for business {business_id}")
        return project

    def get_project(self, project_id: str) -> Project:
        project = self.storage.get_project(project_id)
        if not project:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return project

    def list_projects(
        self,
        business_id: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Project]:
        return self.storage.list_projects(
            business_id=business_id, status=status, limit=limit, offset=offset
        )

    def _owned_project(self, project_id: str, actor_id: str) -> Project:
        project = self.get_project(project_id)
        if project.business_id != actor_id:
            raise UnauthorizedError("Only the owning business can modify this project")
        return project

    def update_project(self, project_id: str, actor_id: str, **fields: Any) -> Project:
        """Update project fields.

        Lowering ``equity_allocation`` below what tasks already hold, or below
        what has already been granted, is rejected.
        """
        self._reject_unknown(fields, PROJECT_UPDATABLE_FIELDS)
        project = self._owned_project(project_id, actor_id)

        new_equity = fields.get("equity_allocation")
        if new_equity is not None:
            if new_equity > self.config.max_project_equity:
                raise ProjectServiceError(
                    f"Equity allocation cannot exceed {self.config.max_project_equity}%"
                )
            committed = self.task_equity_total(project_id)
            if new_equity + EQUITY_TOLERANCE < committed:
                raise EquityExceededError(
                    f"Tasks already hold {committed:g}% equity; "
                    f"cannot lower the project allocation to {new_equity:g}%"
                )

        try:
            updated = replace(project, updated_at=self._now(), **fields)
        except ValueError as e:
            raise ProjectServiceError(str(e)) from e

        self.storage.update_project(updated)
        logger.info(f"Updated project {project_id}: {sorted(fields)}")
        return updated

    def delete_project(self, project_id: str, actor_id: str) -> None:
        self._owned_project(project_id, actor_id)
        self.storage.delete_project(project_id)
        logger.info(f"Deleted project {project_id}")

    # =========================================================================
    # Tasks
    # =========================================================================

    def task_equity_total(self, project_id: str, exclude_task_id: Optional[str] = None) -> float:
        """Sum of task equity in a project."""
        return sum(
            t.equity_allocation
            for t in self.storage.list_tasks(project_id=project_id)
            if t.task_id != exclude_task_id
        )

    def remaining_equity(self, project_id: str, exclude_task_id: Optional[str] = None) -> float:
        """Equity the project can still hand out to new or resized tasks."""
        project = self.get_project(project_id)
        return max(
            0.0,
            project.equity_allocation - self.task_equity_total(project_id, exclude_task_id),
        )

    def _check_task_equity(
        self, project_id: str, equity: float, exclude_task_id: Optional[str] = None
    ) -> None:
        if equity <= 0:
            raise ProjectServiceError("Equity allocation must be positive")
        available = self.remaining_equity(project_id, exclude_task_id)
        if equity > available + EQUITY_TOLERANCE:
            raise EquityExceededError(
                f"Equity allocation cannot exceed remaining equity ({available:g}%)"
            )

    def add_task(
        self,
        project_id: str,
        actor_id: str,
        title: str,
        timeframe: str,
        equity_allocation: float,
        description: Optional[str] = None,
        skill_requirements: Optional[List[Any]] = None,
        estimated_hours: Optional[float] = None,
        dependencies: Optional[List[str]] = None,
    ) -> ProjectTask:
        """Add a task to a project, taking equity from what remains."""
        self._owned_project(project_id, actor_id)
        self._check_task_equity(project_id, equity_allocation)

        now = self._now()
        try:
            task = ProjectTask(
                task_id=str(uuid.uuid4()),
                project_id=project_id,
                title=title,
                timeframe=timeframe,
                equity_allocation=equity_allocation,
                description=description,
                skill_requirements=[
                    to_skill_requirement(s, self.config.default_skill_level)
                    for s in skill_requirements or []
                ],
                estimated_hours=estimated_hours,
                dependencies=dependencies or [],
                created_by=actor_id,
                created_at=now,
                updated_at=now,
                last_activity_at=now,
            )
        except ValueError as e:
            raise ProjectServiceError(str(e)) from e

        self.storage.save_task(task)
        logger.info(
            f"Added task {task.task_id} to project {project_id} "
            f"with {equity_allocation:g}% equity"
        )
        return task

    def get_task(self, task_id: str) -> ProjectTask:
        task = self.storage.get_task(task_id)
        if not task:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def list_tasks(self, project_id: str) -> List[ProjectTask]:
        self.get_project(project_id)
        return self.storage.list_tasks(project_id=project_id)

    def update_task(self, task_id: str, actor_id: str, **fields: Any) -> ProjectTask:
        """Update a task; equity changes are re-checked against what remains."""
        self._reject_unknown(fields, TASK_UPDATABLE_FIELDS)
        task = self.get_task(task_id)
        self._owned_project(task.project_id, actor_id)

        if "equity_allocation" in fields:
            self._check_task_equity(task.project_id, fields["equity_allocation"], task_id)
        if "skill_requirements" in fields:
            fields["skill_requirements"] = [
                to_skill_requirement(s, self.config.default_skill_level)
                for s in fields["skill_requirements"] or []
            ]

        now = self._now()
        try:
            updated = replace(task, updated_at=now, last_activity_at=now, **fields)
        except ValueError as e:
            raise ProjectServiceError(str(e)) from e

        self.storage.update_task(updated)
        if "completion_percentage" in fields:
            self.refresh_completion(task.project_id)
        return updated

    def delete_task(self, task_id: str, actor_id: str) -> None:
        task = self.get_task(task_id)
        self._owned_project(task.project_id, actor_id)
        self.storage.delete_task(task_id)
        self.refresh_completion(task.project_id)
        logger.info(f"Deleted task {task_id} from project {task.project_id}")

    def close_task(self, task_id: str, actor_id: str) -> ProjectTask:
        """Stop taking applications for a task."""
        task = self.get_task(task_id)
        self._owned_project(task.project_id, actor_id)
        if not task.is_open:
            return task
        updated = replace(task, status=TaskAvailability.CLOSED.value, updated_at=self._now())
        self.storage.update_task(updated)
        return updated

    def refresh_completion(self, project_id: str) -> Project:
        """Recompute project completion as the mean of its tasks' completion."""
        project = self.get_project(project_id)
        tasks = self.storage.list_tasks(project_id=project_id)
        if tasks:
            completion = sum(t.completion_percentage for t in tasks) / len(tasks)
        else:
            completion = 0.0
        updated = replace(project, completion_percentage=round(completion, 2), updated_at=self._now())
        self.storage.update_project(updated)
        return updated

    # =========================================================================
    # Opportunities
    # =========================================================================

    def open_opportunities(
        self,
        search_term: Optional[str] = None,
        skill: Optional[str] = None,
    ) -> List[ProjectTask]:
        """Open tasks of active projects, optionally filtered by text and skill."""
        active = {
            p.project_id
            for p in self.storage.list_projects(status=ProjectStatus.ACTIVE, limit=1000)
        }
        tasks = [t for t in self.storage.list_tasks(open_only=True) if t.project_id in active]
        return filter_opportunities(tasks, search_term, skill)
