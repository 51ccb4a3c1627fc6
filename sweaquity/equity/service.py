"""
Equity service.

Ties projects, accepted jobs and tickets together:

- summaries of offered, agreed and earned equity per project
- partial equity grants to an accepted job
- task completion: the worker submits, the business approves, and the rest
  of the agreed equity is granted
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sweaquity.applications.models import AcceptedJob, ApplicationStatus, JobApplication
from sweaquity.applications.service import ApplicationNotFoundError
from sweaquity.applications.storage import ApplicationStorage
from sweaquity.config import EQUITY_TOLERANCE, MarketplaceConfig
from sweaquity.equity.models import JobEquityProgress, ProjectEquitySummary
from sweaquity.logging_config import log_equity
from sweaquity.projects.models import Project, ProjectTask, TaskStatus
from sweaquity.projects.service import ProjectNotFoundError, ProjectService, TaskNotFoundError
from sweaquity.projects.storage import ProjectStorage
from sweaquity.tickets.models import Ticket, TicketStatus
from sweaquity.tickets.service import TicketService
from sweaquity.tickets.storage import TicketStorage

logger = logging.getLogger(__name__)


class EquityServiceError(Exception):
    """Base exception for equity service errors."""

    pass


class EquityExceededError(EquityServiceError):
    """Grant is larger than what is left to give."""

    pass


class UnauthorizedError(EquityServiceError):
    """Actor is not the business or worker for this job."""

    pass


class InvalidTransitionError(EquityServiceError):
    """Task is not in a status that allows the action."""

    pass


class EquityService:
    """Service for equity accounting and task completion."""

    def __init__(
        self,
        project_storage: ProjectStorage,
        application_storage: ApplicationStorage,
        ticket_storage: TicketStorage,
        config: Optional[MarketplaceConfig] = None,
    ):
        self.project_storage = project_storage
        self.application_storage = application_storage
        self.ticket_storage = ticket_storage
        self.config = config or MarketplaceConfig()
        self.projects = ProjectService(project_storage, self.config)
        self.tickets = TicketService(ticket_storage, self.config)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _project(self, project_id: str) -> Project:
        project = self.project_storage.get_project(project_id)
        if not project:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return project

    def _task(self, task_id: str) -> ProjectTask:
        task = self.project_storage.get_task(task_id)
        if not task:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def _accepted_jobs(self, applications: List[JobApplication]) -> List[AcceptedJob]:
        return self.application_storage.list_accepted_jobs(a.job_app_id for a in applications)

    def _worker_for_task(self, task_id: str) -> Tuple[JobApplication, AcceptedJob]:
        """The accepted application and job for a task."""
        applications = self.application_storage.list_applications(
            task_id=task_id, status=ApplicationStatus.ACCEPTED
        )
        for application in applications:
            accepted = self.application_storage.get_accepted_job(application.job_app_id)
            if accepted:
                return application, accepted
        raise EquityServiceError(f"Task {task_id} has no accepted worker")

    # =========================================================================
    # Summaries
    # =========================================================================

    def project_summary(self, project_id: str) -> ProjectEquitySummary:
        project = self._project(project_id)
        task_total = sum(
            t.equity_allocation for t in self.project_storage.list_tasks(project_id=project_id)
        )

        applications = self.application_storage.list_applications(project_id=project_id, limit=1000)
        accepted_ids = {
            a.job_app_id for a in applications if a.status == ApplicationStatus.ACCEPTED.value
        }
        jobs = self._accepted_jobs(applications)

        return ProjectEquitySummary(
            project_id=project_id,
            equity_offered=project.equity_allocation,
            task_equity_total=task_total,
            agreed_equity_total=sum(j.equity_agreed for j in jobs if j.job_app_id in accepted_ids),
            # Granted equity stays earned even if the worker later withdraws
            earned_equity_total=sum(j.jobs_equity_allocated for j in jobs),
            remaining_task_equity=max(0.0, project.equity_allocation - task_total),
            unallocated_equity=project.unallocated_equity,
        )

    def business_summaries(self, business_id: str) -> List[ProjectEquitySummary]:
        return [
            self.project_summary(p.project_id)
            for p in self.project_storage.list_projects(business_id=business_id, limit=1000)
        ]

    def job_progress(self, job_app_id: str) -> JobEquityProgress:
        accepted = self.application_storage.get_accepted_job(job_app_id)
        if not accepted:
            raise ApplicationNotFoundError(f"No accepted job for application {job_app_id}")
        return self._progress(accepted)

    def _progress(self, accepted: AcceptedJob) -> JobEquityProgress:
        return JobEquityProgress(
            job_app_id=accepted.job_app_id,
            equity_agreed=accepted.equity_agreed,
            equity_allocated=accepted.jobs_equity_allocated,
            completion_percentage=accepted.completion_percentage,
        )

    @staticmethod
    def is_fully_allocated(accepted: AcceptedJob) -> bool:
        return accepted.is_fully_allocated

    # =========================================================================
    # Grants
    # =========================================================================

    def allocate(self, job_app_id: str, business_id: str, amount: float) -> JobEquityProgress:
        """Grant part of an accepted job's agreed equity.

        Raises:
            EquityServiceError: If the amount is not positive or there is no accepted job
            UnauthorizedError: If the caller does not own the project
            EquityExceededError: If the grant exceeds what the job or project has left
        """
        if amount <= 0:
            raise EquityServiceError("Amount must be positive")
        application = self.application_storage.get_application(job_app_id)
        if not application:
            raise ApplicationNotFoundError(f"Application {job_app_id} not found")
        project = self._project(application.project_id)
        if project.business_id != business_id:
            raise UnauthorizedError("Only the project's business can allocate equity")
        accepted = self.application_storage.get_accepted_job(job_app_id)
        if not accepted:
            raise EquityServiceError("Equity can only be allocated to an accepted job")

        return self._grant(project, accepted, amount, business_id)

    @staticmethod
    def _check_grant(project: Project, accepted: AcceptedJob, amount: float) -> None:
        if amount > accepted.remaining_equity + EQUITY_TOLERANCE:
            raise EquityExceededError(
                f"Only {accepted.remaining_equity:g}% of the agreed equity is left to allocate"
            )
        if amount > project.unallocated_equity + EQUITY_TOLERANCE:
            raise EquityExceededError(
                f"Project only has {project.unallocated_equity:g}% unallocated equity"
            )

    def _grant(
        self, project: Project, accepted: AcceptedJob, amount: float, actor_id: str
    ) -> JobEquityProgress:
        self._check_grant(project, accepted, amount)

        now = self._now()
        job_total = min(accepted.equity_agreed, accepted.jobs_equity_allocated + amount)
        project_total = min(project.equity_allocation, project.equity_allocated + amount)
        accepted = replace(accepted, jobs_equity_allocated=job_total, updated_at=now)
        self.application_storage.update_accepted_job(accepted)
        self.project_storage.update_project(
            replace(project, equity_allocated=project_total, updated_at=now)
        )

        logger.info(f"Allocated {amount:g}% on {accepted.job_app_id}")
        log_equity(actor_id, project.project_id, amount, project_total)
        return self._progress(accepted)

    # =========================================================================
    # Completion
    # =========================================================================

    def _task_tickets(self, task_id: str, job_app_id: str, ticket_id: Optional[str]) -> List[Ticket]:
        if ticket_id:
            ticket = self.tickets.get_ticket(ticket_id)
            if ticket.task_id != task_id or ticket.job_app_id not in (None, job_app_id):
                raise EquityServiceError(f"Ticket {ticket_id} does not belong to task {task_id}")
            return [ticket]
        return [
            t
            for t in self.ticket_storage.list_tickets(task_id=task_id)
            if t.job_app_id in (None, job_app_id)
        ]

    def submit_completion(
        self,
        task_id: str,
        user_id: str,
        notes: str,
        ticket_id: Optional[str] = None,
    ) -> ProjectTask:
        """Worker marks a task ready for review."""
        task = self._task(task_id)
        application, _ = self._worker_for_task(task_id)
        if application.user_id != user_id:
            raise UnauthorizedError("Only the accepted worker can submit this task")
        if not task.can_transition_to(TaskStatus.PENDING_REVIEW):
            raise InvalidTransitionError(f"Cannot submit a task that is {task.task_status}")
        tickets = self._task_tickets(task_id, application.job_app_id, ticket_id)

        now = self._now()
        task = replace(
            task, task_status=TaskStatus.PENDING_REVIEW.value, updated_at=now, last_activity_at=now
        )
        self.project_storage.update_task(task)

        line = f"[{now.strftime('%Y-%m-%d %H:%M')}] Completion submitted: {notes}"
        discourse = (
            f"{application.task_discourse}\n{line}" if application.task_discourse else line
        )
        self.application_storage.update_application(
            replace(application, task_discourse=discourse, updated_at=now)
        )

        for ticket in tickets:
            self.tickets.update_status(ticket.id, TicketStatus.REVIEW, actor_id=user_id)
            self.tickets.add_note(ticket.id, user_id, notes, action="completion_submitted")

        logger.info(f"Task {task_id} submitted for review by {user_id}")
        return task

    def approve_completion(
        self, task_id: str, business_id: str
    ) -> Tuple[ProjectTask, JobEquityProgress]:
        """Business approves a submitted task and grants the rest of the agreed equity."""
        task = self._task(task_id)
        project = self._project(task.project_id)
        if project.business_id != business_id:
            raise UnauthorizedError("Only the project's business can approve this task")
        if not task.can_transition_to(TaskStatus.COMPLETED):
            raise InvalidTransitionError(f"Cannot approve a task that is {task.task_status}")
        application, accepted = self._worker_for_task(task_id)
        grant = accepted.remaining_equity if accepted.remaining_equity > EQUITY_TOLERANCE else 0.0
        if grant:
            self._check_grant(project, accepted, grant)

        now = self._now()
        task = replace(
            task,
            task_status=TaskStatus.COMPLETED.value,
            completion_percentage=100.0,
            updated_at=now,
            last_activity_at=now,
        )
        self.project_storage.update_task(task)

        if grant:
            progress = self._grant(project, accepted, grant, business_id)
        else:
            progress = self._progress(accepted)

        for ticket in self._task_tickets(task_id, application.job_app_id, None):
            self.ticket_storage.update_ticket(
                replace(
                    ticket,
                    status=TicketStatus.DONE.value,
                    completion_percentage=100.0,
                    equity_points=accepted.equity_agreed,
                    updated_at=now,
                )
            )

        self.projects.refresh_completion(project.project_id)
        logger.info(f"Task {task_id} approved, {progress.equity_allocated:g}% granted")
        return task, progress

    # =========================================================================
    # Job seeker views
    # =========================================================================

    def active_tickets_for_user(self, user_id: str) -> List[Ticket]:
        """Tickets for a user, hiding those whose accepted job is fully allocated."""
        tickets = self.ticket_storage.list_tickets(user_id=user_id)
        job_ids = {t.job_app_id for t in tickets if t.job_app_id}
        finished = {
            j.job_app_id
            for j in self.application_storage.list_accepted_jobs(job_ids)
            if self.is_fully_allocated(j)
        }
        return [t for t in tickets if t.job_app_id not in finished]
