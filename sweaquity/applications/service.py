"""
Application service.

Handles the application lifecycle and the mutual acceptance handshake:

1. A job seeker applies to an open task
2. The business may move it to negotiation, reject it, or accept
3. The job seeker accepts (before or after the business)
4. When both have accepted, an AcceptedJob is created once with the task's
   equity as the agreed equity
5. Contract management (attach, sign, decline) is only available once the
   AcceptedJob exists
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sweaquity.applications.models import (
    AcceptedJob,
    ApplicationStatus,
    ContractStatus,
    JobApplication,
)
from sweaquity.applications.storage import ApplicationStorage
from sweaquity.config import MarketplaceConfig
from sweaquity.logging_config import log_application
from sweaquity.projects.models import Project, ProjectStatus, TaskAvailability, TaskStatus
from sweaquity.projects.service import ProjectNotFoundError, TaskNotFoundError
from sweaquity.projects.storage import ProjectStorage

logger = logging.getLogger(__name__)


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    pass


class ApplicationNotFoundError(ApplicationServiceError):
    """Application not found."""

    pass


class AcceptedJobNotFoundError(ApplicationNotFoundError):
    """No accepted job exists for the application."""

    pass


class DuplicateApplicationError(ApplicationServiceError):
    """Applicant already has an active application for the task."""

    pass


class InvalidTransitionError(ApplicationServiceError):
    """Status change not allowed from the current status."""

    pass


class UnauthorizedError(ApplicationServiceError):
    """Actor is not a party to the application."""

    pass


class ContractNotAvailableError(ApplicationServiceError):
    """Contract actions need a mutually accepted application."""

    pass


class ApplicationService:
    """Service for job applications and accepted jobs."""

    def __init__(
        self,
        storage: ApplicationStorage,
        project_storage: ProjectStorage,
        config: Optional[MarketplaceConfig] = None,
    ):
        self.storage = storage
        self.project_storage = project_storage
        self.config = config or MarketplaceConfig()

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _project(self, project_id: str) -> Project:
        project = self.project_storage.get_project(project_id)
        if not project:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return project

    def _require_business(self, application: JobApplication, business_id: str) -> Project:
        project = self._project(application.project_id)
        if project.business_id != business_id:
            raise UnauthorizedError("Only the project's business can do this")
        return project

    def _require_applicant(self, application: JobApplication, user_id: str) -> None:
        if application.user_id != user_id:
            raise UnauthorizedError("Only the applicant can do this")

    def _transition(
        self,
        application: JobApplication,
        new_status: ApplicationStatus,
        **updates,
    ) -> JobApplication:
        if not application.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot change application from '{application.status}' to '{new_status.value}'"
            )
        updated = replace(application, status=new_status.value, updated_at=self._now(), **updates)
        self.storage.update_application(updated)
        return updated

    # =========================================================================
    # Applying
    # =========================================================================

    def apply(
        self,
        task_id: str,
        user_id: str,
        message: str = "",
        cv_url: Optional[str] = None,
    ) -> JobApplication:
        """Apply to an open task.

        Raises:
            TaskNotFoundError: If the task doesn't exist
            ApplicationServiceError: If the task is not taking applications
                or the applicant owns the project
            DuplicateApplicationError: If an active application already exists
        """
        task = self.project_storage.get_task(task_id)
        if not task:
            raise TaskNotFoundError(f"Task {task_id} not found")
        project = self._project(task.project_id)

        if project.status != ProjectStatus.ACTIVE.value or task.status != TaskAvailability.OPEN.value:
            raise ApplicationServiceError("This task is not accepting applications")
        if project.business_id == user_id:
            raise ApplicationServiceError("Cannot apply to your own project")

        existing = self.storage.list_applications(task_id=task_id, user_id=user_id)
        if any(a.is_active for a in existing):
            raise DuplicateApplicationError("You have already applied to this task")

        now = self._now()
        application = JobApplication(
            job_app_id=str(uuid.uuid4()),
            task_id=task_id,
            project_id=task.project_id,
            user_id=user_id,
            message=message.strip(),
            cv_url=cv_url,
            applied_at=now,
            updated_at=now,
        )
        self.storage.save_application(application)

        logger.info(f"Application {application.job_app_id} created for task {task_id}")
        log_application(user_id, "apply", application.job_app_id, application.status)
        return application

    def get_application(self, job_app_id: str) -> JobApplication:
        application = self.storage.get_application(job_app_id)
        if not application:
            raise ApplicationNotFoundError(f"Application {job_app_id} not found")
        return application

    def get_application_for_party(self, job_app_id: str, actor_id: str) -> JobApplication:
        """Get an application visible to its applicant or the owning business."""
        application = self.get_application(job_app_id)
        if application.user_id != actor_id:
            self._require_business(application, actor_id)
        return application

    # =========================================================================
    # Status changes
    # =========================================================================

    def withdraw(self, job_app_id: str, user_id: str, reason: str) -> JobApplication:
        """Withdraw an application. A reason is required."""
        if not reason or not reason.strip():
            raise ApplicationServiceError("A withdrawal reason is required")
        application = self.get_application(job_app_id)
        self._require_applicant(application, user_id)

        updated = self._transition(application, ApplicationStatus.WITHDRAWN, notes=reason.strip())
        log_application(user_id, "withdraw", job_app_id, updated.status)
        return updated

    def reject(self, job_app_id: str, business_id: str, reason: Optional[str] = None) -> JobApplication:
        """Reject an application on behalf of the owning business."""
        application = self.get_application(job_app_id)
        self._require_business(application, business_id)

        updated = self._transition(
            application,
            ApplicationStatus.REJECTED,
            notes=reason.strip() if reason else application.notes,
        )
        log_application(business_id, "reject", job_app_id, updated.status)
        return updated

    def update_status(
        self,
        job_app_id: str,
        business_id: str,
        status: ApplicationStatus,
    ) -> Tuple[JobApplication, Optional[AcceptedJob]]:
        """Business-driven status change to negotiation or accepted.

        Choosing ``accepted`` records the business acceptance; the application
        only becomes accepted once the job seeker has accepted too.
        """
        if isinstance(status, str):
            status = ApplicationStatus(status)
        if status == ApplicationStatus.ACCEPTED:
            return self.accept_as_business(job_app_id, business_id)
        if status != ApplicationStatus.NEGOTIATION:
            raise InvalidTransitionError(
                f"Use reject or withdraw to move an application to '{status.value}'"
            )

        application = self.get_application(job_app_id)
        self._require_business(application, business_id)
        if application.status == ApplicationStatus.NEGOTIATION.value:
            return application, None
        updated = self._transition(application, ApplicationStatus.NEGOTIATION)
        log_application(business_id, "negotiate", job_app_id, updated.status)
        return updated, None

    def add_discourse(self, job_app_id: str, actor_id: str, message: str) -> JobApplication:
        """Append a timestamped line to the negotiation log."""
        if not message or not message.strip():
            raise ApplicationServiceError("Message cannot be empty")
        application = self.get_application(job_app_id)
        if application.user_id == actor_id:
            author = "Job seeker"
        else:
            self._require_business(application, actor_id)
            author = "Business"

        now = self._now()
        line = f"[{now.strftime('%Y-%m-%d %H:%M')}] {author}: {message.strip()}"
        discourse = f"{application.task_discourse}\n{line}" if application.task_discourse else line
        updated = replace(application, task_discourse=discourse, updated_at=now)
        self.storage.update_application(updated)
        return updated

    # =========================================================================
    # Mutual acceptance
    # =========================================================================

    def accept_as_business(
        self, job_app_id: str, business_id: str
    ) -> Tuple[JobApplication, Optional[AcceptedJob]]:
        """Record the business's acceptance of a candidate."""
        application = self.get_application(job_app_id)
        self._require_business(application, business_id)
        return self._accept(application, business_id, accepted_business=True)

    def accept_as_job_seeker(
        self, job_app_id: str, user_id: str
    ) -> Tuple[JobApplication, Optional[AcceptedJob]]:
        """Record the job seeker's acceptance of the offer."""
        application = self.get_application(job_app_id)
        self._require_applicant(application, user_id)
        return self._accept(application, user_id, accepted_jobseeker=True)

    def _accept(
        self, application: JobApplication, actor_id: str, **flag: bool
    ) -> Tuple[JobApplication, Optional[AcceptedJob]]:
        if not application.is_active:
            raise InvalidTransitionError(
                f"Cannot accept an application that is {application.status}"
            )

        updated = replace(application, updated_at=self._now(), **flag)
        if updated.is_mutually_accepted:
            updated = replace(updated, status=ApplicationStatus.ACCEPTED.value)
        self.storage.update_application(updated)
        log_application(actor_id, "accept", updated.job_app_id, updated.status)

        if not updated.is_mutually_accepted:
            return updated, None
        return updated, self._create_accepted_job(updated)

    def _create_accepted_job(self, application: JobApplication) -> AcceptedJob:
        """Create the accepted job once; later calls return the existing one."""
        existing = self.storage.get_accepted_job(application.job_app_id)
        if existing:
            logger.debug(f"Accepted job already exists for {application.job_app_id}")
            return existing

        task = self.project_storage.get_task(application.task_id)
        equity = task.equity_allocation if task else 0.0
        now = self._now()
        accepted = AcceptedJob(
            id=str(uuid.uuid4()),
            job_app_id=application.job_app_id,
            equity_agreed=equity,
            date_accepted=now,
            created_at=now,
            updated_at=now,
        )
        self.storage.save_accepted_job(accepted)

        if task:
            # One worker per task: stop taking applications and start the work
            self.project_storage.update_task(
                replace(
                    task,
                    status=TaskAvailability.CLOSED.value,
                    task_status=(
                        TaskStatus.IN_PROGRESS.value
                        if task.task_status == TaskStatus.PENDING.value
                        else task.task_status
                    ),
                    updated_at=now,
                    last_activity_at=now,
                )
            )
            self._reject_other_applications(application)

        logger.info(
            f"Accepted job created | app={application.job_app_id} | equity={equity:g}%"
        )
        return accepted

    def _reject_other_applications(self, accepted: JobApplication) -> None:
        """Reject the remaining open applications for the same task."""
        for other in self.storage.list_applications(task_id=accepted.task_id):
            if other.job_app_id == accepted.job_app_id or other.status not in (
                ApplicationStatus.PENDING.value,
                ApplicationStatus.NEGOTIATION.value,
            ):
                continue
            self.storage.update_application(
                replace(
                    other,
                    status=ApplicationStatus.REJECTED.value,
                    notes="Position filled",
                    updated_at=self._now(),
                )
            )

    def get_accepted_job(self, job_app_id: str) -> AcceptedJob:
        accepted = self.storage.get_accepted_job(job_app_id)
        if not accepted:
            raise AcceptedJobNotFoundError(f"No accepted job for application {job_app_id}")
        return accepted

    # =========================================================================
    # Listing
    # =========================================================================

    def list_for_project(
        self,
        project_id: str,
        business_id: str,
        status: Optional[ApplicationStatus] = None,
    ) -> List[JobApplication]:
        project = self._project(project_id)
        if project.business_id != business_id:
            raise UnauthorizedError("Only the project's business can view its applications")
        return self.storage.list_applications(project_id=project_id, status=status)

    def list_for_applicant(
        self,
        user_id: str,
        status: Optional[ApplicationStatus] = None,
    ) -> List[JobApplication]:
        return self.storage.list_applications(user_id=user_id, status=status)

    def list_for_business(
        self,
        business_id: str,
        status: Optional[ApplicationStatus] = None,
    ) -> List[JobApplication]:
        applications = []
        for project in self.project_storage.list_projects(business_id=business_id, limit=1000):
            applications.extend(
                self.storage.list_applications(project_id=project.project_id, status=status)
            )
        applications.sort(key=lambda a: a.applied_at or self._now(), reverse=True)
        return applications

    # =========================================================================
    # Contracts
    # =========================================================================

    def _contract_job(self, job_app_id: str) -> Tuple[JobApplication, AcceptedJob]:
        application = self.get_application(job_app_id)
        accepted = self.storage.get_accepted_job(job_app_id)
        if not application.is_mutually_accepted or not accepted:
            raise ContractNotAvailableError(
                "Contracts are available once both parties have accepted"
            )
        return application, accepted

    def attach_contract(self, job_app_id: str, business_id: str, document_url: str) -> AcceptedJob:
        """Attach (or re-send) the work contract document."""
        if not document_url or not document_url.strip():
            raise ApplicationServiceError("A contract document URL is required")
        application, accepted = self._contract_job(job_app_id)
        self._require_business(application, business_id)
        if accepted.work_contract_status == ContractStatus.SIGNED.value:
            raise InvalidTransitionError("Contract is already signed")

        updated = replace(
            accepted,
            document_url=document_url.strip(),
            work_contract_status=ContractStatus.SENT.value,
            updated_at=self._now(),
        )
        self.storage.update_accepted_job(updated)
        logger.info(f"Contract sent for {job_app_id}")
        return updated

    def sign_contract(self, job_app_id: str, user_id: str) -> AcceptedJob:
        application, accepted = self._contract_job(job_app_id)
        self._require_applicant(application, user_id)
        if accepted.work_contract_status != ContractStatus.SENT.value:
            raise InvalidTransitionError(
                f"Cannot sign a contract that is {accepted.work_contract_status}"
            )
        updated = replace(
            accepted, work_contract_status=ContractStatus.SIGNED.value, updated_at=self._now()
        )
        self.storage.update_accepted_job(updated)
        logger.info(f"Contract signed for {job_app_id}")
        return updated

    def decline_contract(self, job_app_id: str, user_id: str, reason: str) -> AcceptedJob:
        if not reason or not reason.strip():
            raise ApplicationServiceError("A reason is required to decline a contract")
        application, accepted = self._contract_job(job_app_id)
        self._require_applicant(application, user_id)
        if accepted.work_contract_status != ContractStatus.SENT.value:
            raise InvalidTransitionError(
                f"Cannot decline a contract that is {accepted.work_contract_status}"
            )
        discourse = (
            f"{accepted.accepted_discourse}\n{reason.strip()}"
            if accepted.accepted_discourse
            else reason.strip()
        )
        updated = replace(
            accepted,
            work_contract_status=ContractStatus.DECLINED.value,
            accepted_discourse=discourse,
            updated_at=self._now(),
        )
        self.storage.update_accepted_job(updated)
        logger.info(f"Contract declined for {job_app_id}")
        return updated
