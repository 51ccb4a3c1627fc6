"""Applications subsystem.

Models:
- JobApplication: A job seeker's application to a task
- AcceptedJob: The agreement created once both parties accept

Service:
- ApplicationService: Application lifecycle, mutual acceptance and contracts
"""

from sweaquity.applications.models import (
    ACTIVE_APPLICATION_STATUSES,
    VALID_APPLICATION_TRANSITIONS,
    AcceptedJob,
    ApplicationStatus,
    ContractStatus,
    JobApplication,
)
from sweaquity.applications.service import (
    AcceptedJobNotFoundError,
    ApplicationNotFoundError,
    ApplicationService,
    ApplicationServiceError,
    ContractNotAvailableError,
    DuplicateApplicationError,
    InvalidTransitionError,
    UnauthorizedError,
)
from sweaquity.applications.storage import ApplicationStorage, InMemoryApplicationStorage

__all__ = [
    # Models
    "JobApplication",
    "AcceptedJob",
    "ApplicationStatus",
    "ContractStatus",
    "VALID_APPLICATION_TRANSITIONS",
    "ACTIVE_APPLICATION_STATUSES",
    # Storage
    "ApplicationStorage",
    "InMemoryApplicationStorage",
    # Service
    "ApplicationService",
    "ApplicationServiceError",
    "ApplicationNotFoundError",
    "AcceptedJobNotFoundError",
    "DuplicateApplicationError",
    "InvalidTransitionError",
    "UnauthorizedError",
    "ContractNotAvailableError",
]
