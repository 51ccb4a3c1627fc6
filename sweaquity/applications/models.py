"""
Job application data models.

A job seeker applies to a task. Once both the business and the job seeker
accept, an AcceptedJob records the equity agreed for the work.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sweaquity.config import EQUITY_TOLERANCE


class ApplicationStatus(Enum):
    """Application lifecycle status."""

    PENDING = "pending"
    NEGOTIATION = "negotiation"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class ContractStatus(Enum):
    """Work contract status on an accepted job."""

    PENDING = "pending"  # no document attached yet
    SENT = "sent"
    SIGNED = "signed"
    DECLINED = "declined"


VALID_APPLICATION_TRANSITIONS = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.NEGOTIATION,
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.NEGOTIATION: {
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.ACCEPTED: {ApplicationStatus.WITHDRAWN},
    ApplicationStatus.REJECTED: set(),
    ApplicationStatus.WITHDRAWN: set(),
}

# Statuses that block a second application to the same task
ACTIVE_APPLICATION_STATUSES = {
    ApplicationStatus.PENDING.value,
    ApplicationStatus.NEGOTIATION.value,
    ApplicationStatus.ACCEPTED.value,
}


@dataclass
class JobApplication:
    """An application by a job seeker to a project task.

    Attributes:
        job_app_id: Unique identifier
        task_id: Task applied to
        project_id: Project owning the task
        user_id: Applicant (job seeker auth user id)
        accepted_business: Business has confirmed the applicant
        accepted_jobseeker: Applicant has confirmed the offer
        task_discourse: Running negotiation log between the parties
        notes: Withdrawal or rejection reason
    """

    job_app_id: str
    task_id: str
    project_id: str
    user_id: str
    message: str = ""
    cv_url: Optional[str] = None
    status: str = "pending"
    accepted_business: bool = False
    accepted_jobseeker: bool = False
    task_discourse: Optional[str] = None
    notes: Optional[str] = None
    applied_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.status, ApplicationStatus):
            self.status = self.status.value
        valid = {s.value for s in ApplicationStatus}
        if self.status not in valid:
            raise ValueError(f"Invalid status: {self.status}. Must be one of {sorted(valid)}")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_APPLICATION_STATUSES

    @property
    def is_mutually_accepted(self) -> bool:
        return self.accepted_business and self.accepted_jobseeker

    def can_transition_to(self, new_status: ApplicationStatus) -> bool:
        current = ApplicationStatus(self.status)
        return new_status in VALID_APPLICATION_TRANSITIONS.get(current, set())


@dataclass
class AcceptedJob:
    """Agreement created when both parties accept an application."""

    id: str
    job_app_id: str
    equity_agreed: float
    jobs_equity_allocated: float = 0.0
    date_accepted: Optional[datetime] = None
    document_url: Optional[str] = None
    accepted_discourse: Optional[str] = None
    work_contract_status: str = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.work_contract_status, ContractStatus):
            self.work_contract_status = self.work_contract_status.value
        valid = {s.value for s in ContractStatus}
        if self.work_contract_status not in valid:
            raise ValueError(f"Invalid contract status: {self.work_contract_status}")
        if self.equity_agreed < 0:
            raise ValueError("Agreed equity cannot be negative")
        if self.jobs_equity_allocated < 0:
            raise ValueError("Allocated equity cannot be negative")
        if self.jobs_equity_allocated > self.equity_agreed + EQUITY_TOLERANCE:
            raise ValueError("Allocated equity cannot exceed agreed equity")

    @property
    def remaining_equity(self) -> float:
        return max(0.0, self.equity_agreed - self.jobs_equity_allocated)

    @property
    def completion_percentage(self) -> float:
        """Share of the agreed equity already allocated, 0-100."""
        if self.equity_agreed <= 0:
            return 0.0
        return min(100.0, self.jobs_equity_allocated / self.equity_agreed * 100)

    @property
    def is_fully_allocated(self) -> bool:
        return (
            self.equity_agreed > 0
            and self.jobs_equity_allocated + EQUITY_TOLERANCE >= self.equity_agreed
        )
