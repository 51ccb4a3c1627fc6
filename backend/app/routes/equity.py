"""Equity routes.

Summaries for businesses, progress for accepted jobs, partial grants and the
submit/approve completion flow that grants the remaining agreed equity.
"""

from dataclasses import asdict

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..auth import CurrentUser
from ..logging_config import get_logger
from ..rate_limit import READ_LIMIT, STATE_CHANGE_LIMIT, limiter
from ..services import Applications, Equity
from .projects import EquitySummaryResponse, TaskResponse, to_task_response

logger = get_logger("sweaquity.api.equity")
router = APIRouter(prefix="/equity", tags=["equity"])


# =============================================================================
# Request/Response Models
# =============================================================================


class JobProgressResponse(BaseModel):
    job_app_id: str
    equity_agreed: float
    equity_allocated: float
    remaining_equity: float
    completion_percentage: float


class AllocateRequest(BaseModel):
    amount: float = Field(..., gt=0, le=100)


class SubmitCompletionRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=5000)
    ticket_id: str | None = None


class ApprovalResponse(BaseModel):
    task: TaskResponse
    progress: JobProgressResponse


def to_progress_response(progress) -> JobProgressResponse:
    return JobProgressResponse(remaining_equity=progress.remaining_equity, **asdict(progress))


# =============================================================================
# Routes
# =============================================================================


@router.get("/business", response_model=list[EquitySummaryResponse])
@limiter.limit(READ_LIMIT)
async def business_equity(request: Request, auth: CurrentUser, equity: Equity):
    """Equity summaries for every project the caller owns."""
    logger.info(f"GET /equity/business | business={auth.user_id}")
    return [EquitySummaryResponse(**asdict(s)) for s in equity.business_summaries(auth.user_id)]


@router.get("/jobs/{job_app_id}", response_model=JobProgressResponse)
@limiter.limit(READ_LIMIT)
async def job_progress(
    request: Request,
    job_app_id: str,
    auth: CurrentUser,
    equity: Equity,
    applications: Applications,
):
    logger.info(f"GET /equity/jobs/{job_app_id} | user={auth.user_id}")
    applications.get_application_for_party(job_app_id, auth.user_id)
    return to_progress_response(equity.job_progress(job_app_id))


@router.post("/jobs/{job_app_id}/allocate", response_model=JobProgressResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def allocate_equity(
    request: Request,
    job_app_id: str,
    payload: AllocateRequest,
    auth: CurrentUser,
    equity: Equity,
):
    """Grant part of the agreed equity to an accepted job (business only)."""
    logger.info(
        f"POST /equity/jobs/{job_app_id}/allocate | business={auth.user_id} | "
        f"amount={payload.amount:g}"
    )
    return to_progress_response(equity.allocate(job_app_id, auth.user_id, payload.amount))


@router.post("/tasks/{task_id}/submit", response_model=TaskResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def submit_completion(
    request: Request,
    task_id: str,
    payload: SubmitCompletionRequest,
    auth: CurrentUser,
    equity: Equity,
):
    """Worker submits a task for review."""
    logger.info(f"POST /equity/tasks/{task_id}/submit | user={auth.user_id}")
    task = equity.submit_completion(
        task_id, auth.user_id, payload.notes, ticket_id=payload.ticket_id
    )
    return to_task_response(task)


@router.post("/tasks/{task_id}/approve", response_model=ApprovalResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def approve_completion(request: Request, task_id: str, auth: CurrentUser, equity: Equity):
    """Business approves a submitted task; the rest of the agreed equity is granted."""
    logger.info(f"POST /equity/tasks/{task_id}/approve | business={auth.user_id}")
    task, progress = equity.approve_completion(task_id, auth.user_id)
    logger.info(f"Task approved | id={task_id} | granted={progress.equity_allocated:g}")
    return ApprovalResponse(task=to_task_response(task), progress=to_progress_response(progress))
