"""
Ticket data models.

Tickets are the generic work items of a project: tasks, bugs and beta-test
reports. Time entries record hours worked against a ticket.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class TicketType(Enum):
    TASK = "task"
    BUG = "bug"
    BETA_TESTING = "beta_testing"


class TicketStatus(Enum):
    """Ticket workflow status. Statuses are free to move in any direction."""

    NEW = "new"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    REVIEW = "review"
    DONE = "done"
    CLOSED = "closed"


class TicketPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TicketHealth(Enum):
    GOOD = "good"
    AT_RISK = "at_risk"
    OFF_TRACK = "off_track"


# Board column order; closed tickets are shown with done
KANBAN_COLUMNS = (
    TicketStatus.NEW.value,
    TicketStatus.IN_PROGRESS.value,
    TicketStatus.BLOCKED.value,
    TicketStatus.REVIEW.value,
    TicketStatus.DONE.value,
)

CLOSED_TICKET_STATUSES = {TicketStatus.DONE.value, TicketStatus.CLOSED.value}


def _enum_value(value, enum_cls, label: str) -> str:
    if isinstance(value, enum_cls):
        return value.value
    valid = {e.value for e in enum_cls}
    if value not in valid:
        raise ValueError(f"Invalid {label}: {value}. Must be one of {sorted(valid)}")
    return value


@dataclass
class TicketNote:
    """An entry in a ticket's activity log."""

    id: str
    user: str
    timestamp: datetime
    comment: str
    action: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class Ticket:
    """A work item on a project.

    Attributes:
        id: Unique identifier
        reporter: User who created the ticket
        assigned_to: User working the ticket
        task_id: Project task the ticket tracks, if any
        job_app_id: Accepted application the work is done under, if any
        hours_logged: Sum of logged time entries
        equity_points: Equity earned when the ticket's task was approved
        reproduction_steps: How to trigger a reported bug (bug and beta test tickets)
        system_info: Browser details captured with a beta test report
        deleted_at: Set when the ticket is soft-deleted
    """

    id: str
    title: str
    reporter: str
    description: Optional[str] = None
    ticket_type: str = "task"
    status: str = "new"
    priority: str = "medium"
    health: str = "good"
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    job_app_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    hours_logged: float = 0.0
    completion_percentage: float = 0.0
    equity_points: float = 0.0
    notes: List[TicketNote] = field(default_factory=list)
    reproduction_steps: Optional[str] = None
    system_info: Optional[Dict[str, Any]] = None
    reported_url: Optional[str] = None
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.ticket_type = _enum_value(self.ticket_type, TicketType, "ticket type")
        self.status = _enum_value(self.status, TicketStatus, "status")
        self.priority = _enum_value(self.priority, TicketPriority, "priority")
        self.health = _enum_value(self.health, TicketHealth, "health")
        if not self.title or not self.title.strip():
            raise ValueError("Title is required")
        if self.completion_percentage < 0 or self.completion_percentage > 100:
            raise ValueError("Completion percentage must be between 0 and 100")
        if self.estimated_hours is not None and self.estimated_hours < 0:
            raise ValueError("Estimated hours cannot be negative")
        if self.hours_logged < 0:
            raise ValueError("Logged hours cannot be negative")
        if self.system_info is not None and not isinstance(self.system_info, dict):
            raise ValueError("System info must be a mapping")

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_TICKET_STATUSES

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def involves(self, user_id: str) -> bool:
        return user_id in (self.assigned_to, self.reporter)


@dataclass
class TimeEntry:
    """Hours worked on a ticket."""

    id: str
    ticket_id: str
    user_id: str
    hours_logged: float
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    job_app_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.hours_logged <= 0:
            raise ValueError("Hours must be positive")
        if self.end_time < self.start_time:
            raise ValueError("End time cannot be before start time")
