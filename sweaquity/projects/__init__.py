"""Projects subsystem.

Models:
- Business: A business profile
- Project: A project listing with a total equity offer
- ProjectTask: An equity-bearing unit of work within a project

Service:
- ProjectService: Project and task operations with equity bookkeeping
"""

from sweaquity.projects.models import (
    VALID_TASK_TRANSITIONS,
    Business,
    Project,
    ProjectStatus,
    ProjectTask,
    TaskAvailability,
    TaskStatus,
)
from sweaquity.projects.service import (
    BusinessNotFoundError,
    EquityExceededError,
    ProjectNotFoundError,
    ProjectService,
    ProjectServiceError,
    TaskNotFoundError,
    UnauthorizedError,
)
from sweaquity.projects.storage import InMemoryProjectStorage, ProjectStorage

__all__ = [
    # Models
    "Business",
    "Project",
    "ProjectTask",
    "ProjectStatus",
    "TaskStatus",
    "TaskAvailability",
    "VALID_TASK_TRANSITIONS",
    # Storage
    "ProjectStorage",
    "InMemoryProjectStorage",
    # Service
    "ProjectService",
    "ProjectServiceError",
    "ProjectNotFoundError",
    "BusinessNotFoundError",
    "TaskNotFoundError",
    "UnauthorizedError",
    "EquityExceededError",
]
