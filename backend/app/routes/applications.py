"""Job application routes.

Covers applying, the negotiation/withdraw/reject lifecycle, the mutual
acceptance handshake and contract management on the resulting accepted job.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Query, Request, status
from pydantic import BaseModel, Field

from ..auth import CurrentUser
from ..logging_config import get_logger
from ..rate_limit import DESTRUCTIVE_LIMIT, READ_LIMIT, STATE_CHANGE_LIMIT, WRITE_LIMIT, limiter
from ..services import Applications

logger = get_logger("sweaquity.api.applications")
router = APIRouter(prefix="/applications", tags=["applications"])


# =============================================================================
# Request/Response Models
# =============================================================================

ApplicationStatus = Literal["pending", "negotiation", "accepted", "rejected", "withdrawn"]
ContractStatus = Literal["pending", "sent", "signed", "declined"]


class ApplicationCreate(BaseModel):
    """Request to apply to a task."""

    task_id: str = Field(..., min_length=1)
    message: str = Field("", max_length=5000)
    cv_url: str | None = None


class ApplicationResponse(BaseModel):
    job_app_id: str
    task_id: str
    project_id: str
    user_id: str
    message: str
    cv_url: str | None = None
    status: ApplicationStatus
    accepted_business: bool
    accepted_jobseeker: bool
    task_discourse: str | None = None
    notes: str | None = None
    applied_at: datetime | None = None
    updated_at: datetime | None = None


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationResponse]
    total: int


class AcceptedJobResponse(BaseModel):
    id: str
    job_app_id: str
    equity_agreed: float
    jobs_equity_allocated: float
    date_accepted: datetime | None = None
    document_url: str | None = None
    accepted_discourse: str | None = None
    work_contract_status: ContractStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AcceptResponse(BaseModel):
    """Result of one party accepting; ``accepted_job`` is set once both have."""

    application: ApplicationResponse
    accepted_job: AcceptedJobResponse | None = None


class ReasonRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=2000)


class StatusUpdateRequest(BaseModel):
    status: Literal["negotiation", "accepted"]


class DiscourseRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)


class ContractRequest(BaseModel):
    document_url: str = Field(..., min_length=1)


def to_application_response(application) -> ApplicationResponse:
    return ApplicationResponse(**asdict(application))


def to_accepted_job_response(accepted) -> AcceptedJobResponse:
    return AcceptedJobResponse(**asdict(accepted))


def to_accept_response(result) -> AcceptResponse:
    application, accepted = result
    return AcceptResponse(
        application=to_application_response(application),
        accepted_job=to_accepted_job_response(accepted) if accepted else None,
    )


def _listing(applications) -> ApplicationListResponse:
    return ApplicationListResponse(
        applications=[to_application_response(a) for a in applications],
        total=len(applications),
    )


# =============================================================================
# Routes
# =============================================================================


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_LIMIT)
async def apply_to_task(
    request: Request,
    payload: ApplicationCreate,
    auth: CurrentUser,
    applications: Applications,
):
    """Apply to an open task of an active project."""
    logger.info(f"POST /applications | user={auth.user_id} | task={payload.task_id}")
    application = applications.apply(
        payload.task_id, auth.user_id, message=payload.message, cv_url=payload.cv_url
    )
    logger.info(f"Application created | id={application.job_app_id} | user={auth.user_id}")
    return to_application_response(application)


@router.get("/mine", response_model=ApplicationListResponse)
@limiter.limit(READ_LIMIT)
async def list_my_applications(
    request: Request,
    auth: CurrentUser,
    applications: Applications,
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
):
    logger.info(f"GET /applications/mine | user={auth.user_id} | status={status_filter}")
    return _listing(applications.list_for_applicant(auth.user_id, status=status_filter))


@router.get("/business", response_model=ApplicationListResponse)
@limiter.limit(READ_LIMIT)
async def list_business_applications(
    request: Request,
    auth: CurrentUser,
    applications: Applications,
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
):
    """Applications across all of the caller's projects."""
    logger.info(f"GET /applications/business | business={auth.user_id} | status={status_filter}")
    return _listing(applications.list_for_business(auth.user_id, status=status_filter))


@router.get("/projects/{project_id}", response_model=ApplicationListResponse)
@limiter.limit(READ_LIMIT)
async def list_project_applications(
    request: Request,
    project_id: str,
    auth: CurrentUser,
    applications: Applications,
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
):
    logger.info(f"GET /applications/projects/{project_id} | business={auth.user_id}")
    return _listing(
        applications.list_for_project(project_id, auth.user_id, status=status_filter)
    )


@router.get("/{job_app_id}", response_model=ApplicationResponse)
@limiter.limit(READ_LIMIT)
async def get_application(
    request: Request,
    job_app_id: str,
    auth: CurrentUser,
    applications: Applications,
):
    logger.info(f"GET /applications/{job_app_id} | user={auth.user_id}")
    return to_application_response(applications.get_application_for_party(job_app_id, auth.user_id))


@router.post("/{job_app_id}/withdraw", response_model=ApplicationResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def withdraw_application(
    request: Request,
    job_app_id: str,
    payload: ReasonRequest,
    auth: CurrentUser,
    applications: Applications,
):
    logger.info(f"POST /applications/{job_app_id}/withdraw | user={auth.user_id}")
    return to_application_response(applications.withdraw(job_app_id, auth.user_id, payload.reason))


@router.post("/{job_app_id}/reject", response_model=ApplicationResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def reject_application(
    request: Request,
    job_app_id: str,
    payload: RejectRequest,
    auth: CurrentUser,
    applications: Applications,
):
    logger.info(f"POST /applications/{job_app_id}/reject | business={auth.user_id}")
    return to_application_response(applications.reject(job_app_id, auth.user_id, payload.reason))


@router.patch("/{job_app_id}/status", response_model=AcceptResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def update_application_status(
    request: Request,
    job_app_id: str,
    payload: StatusUpdateRequest,
    auth: CurrentUser,
    applications: Applications,
):
    """Business moves an application to negotiation, or accepts the candidate."""
    logger.info(
        f"PATCH /applications/{job_app_id}/status | business={auth.user_id} | "
        f"status={payload.status}"
    )
    return to_accept_response(
        applications.update_status(job_app_id, auth.user_id, payload.status)
    )


@router.post("/{job_app_id}/discourse", response_model=ApplicationResponse)
@limiter.limit(WRITE_LIMIT)
async def add_discourse(
    request: Request,
    job_app_id: str,
    payload: DiscourseRequest,
    auth: CurrentUser,
    applications: Applications,
):
    logger.info(f"POST /applications/{job_app_id}/discourse | user={auth.user_id}")
    return to_application_response(
        applications.add_discourse(job_app_id, auth.user_id, payload.message)
    )


@router.post("/{job_app_id}/accept", response_model=AcceptResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def accept_application(
    request: Request,
    job_app_id: str,
    auth: CurrentUser,
    applications: Applications,
):
    """
    Accept an application.

    The applicant accepts as the job seeker; anyone else is checked as the
    owning business. The accepted job is returned once both have accepted.
    """
    application = applications.get_application(job_app_id)
    if application.user_id == auth.user_id:
        logger.info(f"POST /applications/{job_app_id}/accept | job_seeker={auth.user_id}")
        result = applications.accept_as_job_seeker(job_app_id, auth.user_id)
    else:
        logger.info(f"POST /applications/{job_app_id}/accept | business={auth.user_id}")
        result = applications.accept_as_business(job_app_id, auth.user_id)

    if result[1]:
        logger.info(f"Accepted job created | app={job_app_id} | equity={result[1].equity_agreed:g}")
    return to_accept_response(result)


@router.get("/{job_app_id}/accepted-job", response_model=AcceptedJobResponse)
@limiter.limit(READ_LIMIT)
async def get_accepted_job(
    request: Request,
    job_app_id: str,
    auth: CurrentUser,
    applications: Applications,
):
    logger.info(f"GET /applications/{job_app_id}/accepted-job | user={auth.user_id}")
    applications.get_application_for_party(job_app_id, auth.user_id)
    return to_accepted_job_response(applications.get_accepted_job(job_app_id))


# =============================================================================
# Contracts
# =============================================================================


@router.post("/{job_app_id}/contract", response_model=AcceptedJobResponse)
@limiter.limit(DESTRUCTIVE_LIMIT)
async def attach_contract(
    request: Request,
    job_app_id: str,
    payload: ContractRequest,
    auth: CurrentUser,
    applications: Applications,
):
    """Attach the work contract document (business only)."""
    logger.info(f"POST /applications/{job_app_id}/contract | business={auth.user_id}")
    return to_accepted_job_response(
        applications.attach_contract(job_app_id, auth.user_id, payload.document_url)
    )


@router.post("/{job_app_id}/contract/sign", response_model=AcceptedJobResponse)
@limiter.limit(DESTRUCTIVE_LIMIT)
async def sign_contract(
    request: Request,
    job_app_id: str,
    auth: CurrentUser,
    applications: Applications,
):
    logger.info(f"POST /applications/{job_app_id}/contract/sign | user={auth.user_id}")
    return to_accepted_job_response(applications.sign_contract(job_app_id, auth.user_id))


@router.post("/{job_app_id}/contract/decline", response_model=AcceptedJobResponse)
@limiter.limit(DESTRUCTIVE_LIMIT)
async def decline_contract(
    request: Request,
    job_app_id: str,
    payload: ReasonRequest,
    auth: CurrentUser,
    applications: Applications,
):
    logger.info(f"POST /applications/{job_app_id}/contract/decline | user={auth.user_id}")
    return to_accepted_job_response(
        applications.decline_contract(job_app_id, auth.user_id, payload.reason)
    )
