"""
Project data models.

A business posts projects; each project offers a total equity percentage
that is split across its tasks.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sweaquity.skills import SkillRequirement, to_skill_requirement


class ProjectStatus(Enum):
    """Project lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(Enum):
    """Work status of a project task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PENDING_REVIEW = "pending_review"
    COMPLETED = "completed"


class TaskAvailability(Enum):
    """Whether a task is still taking applications."""

    OPEN = "open"
    CLOSED = "closed"


VALID_TASK_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.PENDING_REVIEW},
    TaskStatus.IN_PROGRESS: {TaskStatus.PENDING_REVIEW},
    TaskStatus.PENDING_REVIEW: {TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS},
    TaskStatus.COMPLETED: set(),
}


def _enum_value(value, enum_cls, label: str) -> str:
    if isinstance(value, enum_cls):
        return value.value
    valid = {e.value for e in enum_cls}
    if value not in valid:
        raise ValueError(f"Invalid {label}: {value}. Must be one of {sorted(valid)}")
    return value


def _check_percentage(value: float, label: str) -> None:
    if value < 0 or value > 100:
        raise ValueError(f"{label} must be between 0 and 100")


@dataclass
class Business:
    """A business profile. ``businesses_id`` is the owner's auth user id."""

    businesses_id: str
    company_name: Optional[str] = None
    industry: Optional[str] = None
    contact_email: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.company_name or "Business"


@dataclass
class Project:
    """A project listing.

    Attributes:
        project_id: Unique identifier
        business_id: Owning business (auth user id)
        title: Project title
        equity_allocation: Total equity offered across all tasks (percent)
        equity_allocated: Equity actually granted to workers so far
        completion_percentage: Mean completion of the project's tasks
    """

    project_id: str
    business_id: str
    title: str
    equity_allocation: float
    description: Optional[str] = None
    status: str = "active"
    equity_allocated: float = 0.0
    skills_required: List[str] = field(default_factory=list)
    project_timeframe: Optional[str] = None
    completion_percentage: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = _enum_value(self.status, ProjectStatus, "status")
        if not self.title or not self.title.strip():
            raise ValueError("Title is required")
        if len(self.title) > 200:
            raise ValueError("Title too long (max 200 characters)")
        if self.equity_allocation <= 0 or self.equity_allocation > 100:
            raise ValueError("Equity allocation must be greater than 0 and at most 100")
        if self.equity_allocated < 0:
            raise ValueError("Allocated equity cannot be negative")
        if self.equity_allocated > self.equity_allocation:
            raise ValueError("Allocated equity cannot exceed the equity allocation")
        _check_percentage(self.completion_percentage, "Completion percentage")
        self.skills_required = [s.lower().strip() for s in self.skills_required if s.strip()]

    @property
    def is_active(self) -> bool:
        return self.status == ProjectStatus.ACTIVE.value

    @property
    def unallocated_equity(self) -> float:
        """Equity offered but not yet granted."""
        return self.equity_allocation - self.equity_allocated


@dataclass
class ProjectTask:
    """A unit of work within a project carrying an equity share."""

    task_id: str
    project_id: str
    title: str
    timeframe: str
    equity_allocation: float
    description: Optional[str] = None
    skill_requirements: List[SkillRequirement] = field(default_factory=list)
    estimated_hours: Optional[float] = None
    status: str = "open"
    task_status: str = "pending"
    completion_percentage: float = 0.0
    dependencies: List[str] = field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = _enum_value(self.status, TaskAvailability, "status")
        self.task_status = _enum_value(self.task_status, TaskStatus, "task status")
        if not self.title or not self.title.strip():
            raise ValueError("Title is required")
        if not self.timeframe or not self.timeframe.strip():
            raise ValueError("Timeframe is required")
        if self.equity_allocation <= 0:
            raise ValueError("Equity allocation must be positive")
        if self.estimated_hours is not None and self.estimated_hours < 0:
            raise ValueError("Estimated hours cannot be negative")
        _check_percentage(self.completion_percentage, "Completion percentage")
        self.skill_requirements = [to_skill_requirement(s) for s in self.skill_requirements]

    @property
    def skills_required(self) -> List[str]:
        """Lowercased names of the required skills."""
        return [s.key for s in self.skill_requirements]

    @property
    def is_open(self) -> bool:
        return self.status == TaskAvailability.OPEN.value

    def can_transition_to(self, new_status: TaskStatus) -> bool:
        """Check if the task can move to the given work status."""
        current = TaskStatus(self.task_status)
        return new_status in VALID_TASK_TRANSITIONS.get(current, set())
