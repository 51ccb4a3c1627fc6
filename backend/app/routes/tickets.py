"""Ticket routes.

Tickets, their activity notes, time entries and the stats/board views.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from pydantic import AwareDatetime, BaseModel, Field

from sweaquity.tickets import KANBAN_COLUMNS

from ..auth import CurrentUser
from ..logging_config import get_logger
from ..rate_limit import READ_LIMIT, STATE_CHANGE_LIMIT, WRITE_LIMIT, limiter
from ..services import Equity, Tickets

logger = get_logger("sweaquity.api.tickets")
router = APIRouter(prefix="/tickets", tags=["tickets"])


# =============================================================================
# Request/Response Models
# =============================================================================

TicketType = Literal["task", "bug", "beta_testing"]
TicketStatus = Literal["new", "in-progress", "blocked", "review", "done", "closed"]
TicketPriority = Literal["low", "medium", "high"]
TicketHealth = Literal["good", "at_risk", "off_track"]


class SystemInfo(BaseModel):
    """Browser details captured with a beta test report."""

    url: str | None = Field(None, max_length=2000)
    user_agent: str | None = Field(None, max_length=500)
    viewport_size: str | None = Field(None, max_length=50)
    referrer: str | None = Field(None, max_length=2000)
    captured_at: AwareDatetime | None = None


class TicketCreate(BaseModel):
    """Request to create a ticket."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    ticket_type: TicketType = "task"
    priority: TicketPriority | None = None
    health: TicketHealth | None = None
    project_id: str | None = None
    task_id: str | None = None
    job_app_id: str | None = None
    assigned_to: str | None = None
    due_date: datetime | None = None
    estimated_hours: float | None = Field(None, ge=0)
    reproduction_steps: str | None = Field(None, max_length=5000)
    system_info: SystemInfo | None = None
    reported_url: str | None = Field(None, max_length=2000)


class TicketUpdate(BaseModel):
    """Field-level ticket actions; only the fields sent are applied."""

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    due_date: datetime | None = None
    completion_percentage: float | None = Field(None, ge=0, le=100)
    estimated_hours: float | None = Field(None, ge=0)
    assigned_to: str | None = None


class NoteCreate(BaseModel):
    comment: str = Field(..., min_length=1, max_length=5000)
    action: str | None = Field(None, max_length=50)


class TimeEntryCreate(BaseModel):
    hours: float = Field(..., gt=0)
    description: str | None = Field(None, max_length=2000)
    job_app_id: str | None = None
    start_time: AwareDatetime | None = None


class NoteResponse(BaseModel):
    id: str
    user: str
    timestamp: datetime
    comment: str
    action: str | None = None


class TicketResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    ticket_type: TicketType
    status: TicketStatus
    priority: TicketPriority
    health: TicketHealth
    project_id: str | None = None
    task_id: str | None = None
    job_app_id: str | None = None
    reporter: str
    assigned_to: str | None = None
    due_date: datetime | None = None
    estimated_hours: float | None = None
    hours_logged: float
    completion_percentage: float
    equity_points: float
    notes: list[NoteResponse]
    reproduction_steps: str | None = None
    system_info: SystemInfo | None = None
    reported_url: str | None = None
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TicketListResponse(BaseModel):
    tickets: list[TicketResponse]
    total: int


class TicketStatsResponse(BaseModel):
    total: int
    open: int
    closed: int
    high_priority: int


class KanbanColumn(BaseModel):
    status: str
    tickets: list[TicketResponse]


class TimeEntryResponse(BaseModel):
    id: str
    ticket_id: str
    user_id: str
    hours_logged: float
    start_time: datetime
    end_time: datetime
    description: str | None = None
    job_app_id: str | None = None
    created_at: datetime | None = None


class TimeEntryListResponse(BaseModel):
    entries: list[TimeEntryResponse]
    total_hours: float


def to_ticket_response(ticket) -> TicketResponse:
    return TicketResponse(**asdict(ticket))


def to_time_entry_response(entry) -> TimeEntryResponse:
    return TimeEntryResponse(**asdict(entry))


def _filtered(
    tickets,
    auth,
    project_id: str | None,
    status_filter: str | None,
    mine: bool,
    include_deleted: bool = False,
):
    return tickets.list_tickets(
        project_id=project_id,
        user_id=auth.user_id if mine else None,
        status=status_filter,
        include_deleted=include_deleted,
    )


# =============================================================================
# Tickets
# =============================================================================


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_LIMIT)
async def create_ticket(
    request: Request,
    payload: TicketCreate,
    auth: CurrentUser,
    tickets: Tickets,
):
    """Create a ticket reported by the caller."""
    logger.info(f"POST /tickets | user={auth.user_id} | type={payload.ticket_type}")
    ticket = tickets.create_ticket(auth.user_id, **payload.model_dump())
    return to_ticket_response(ticket)


@router.get("", response_model=TicketListResponse)
@limiter.limit(READ_LIMIT)
async def list_tickets(
    request: Request,
    auth: CurrentUser,
    tickets: Tickets,
    project_id: str | None = Query(None),
    status_filter: TicketStatus | None = Query(None, alias="status"),
    mine: bool = Query(False, description="Only tickets assigned to or reported by me"),
    include_deleted: bool = Query(False),
):
    logger.info(
        f"GET /tickets | user={auth.user_id} | project={project_id} | "
        f"status={status_filter} | mine={mine}"
    )
    found = _filtered(tickets, auth, project_id, status_filter, mine, include_deleted)
    return TicketListResponse(tickets=[to_ticket_response(t) for t in found], total=len(found))


@router.get("/active", response_model=TicketListResponse)
@limiter.limit(READ_LIMIT)
async def list_active_tickets(request: Request, auth: CurrentUser, equity: Equity):
    """The caller's tickets, minus those whose accepted job is fully allocated."""
    logger.info(f"GET /tickets/active | user={auth.user_id}")
    found = equity.active_tickets_for_user(auth.user_id)
    return TicketListResponse(tickets=[to_ticket_response(t) for t in found], total=len(found))


@router.get("/stats", response_model=TicketStatsResponse)
@limiter.limit(READ_LIMIT)
async def ticket_stats(
    request: Request,
    auth: CurrentUser,
    tickets: Tickets,
    project_id: str | None = Query(None),
    mine: bool = Query(False),
):
    logger.info(f"GET /tickets/stats | user={auth.user_id} | project={project_id}")
    found = _filtered(tickets, auth, project_id, None, mine)
    return TicketStatsResponse(**asdict(tickets.ticket_stats(found)))


@router.get("/kanban", response_model=list[KanbanColumn])
@limiter.limit(READ_LIMIT)
async def ticket_kanban(
    request: Request,
    auth: CurrentUser,
    tickets: Tickets,
    project_id: str | None = Query(None),
    mine: bool = Query(False),
):
    """Tickets grouped into board columns, in column order."""
    logger.info(f"GET /tickets/kanban | user={auth.user_id} | project={project_id}")
    columns = tickets.kanban_columns(_filtered(tickets, auth, project_id, None, mine))
    return [
        KanbanColumn(status=name, tickets=[to_ticket_response(t) for t in columns[name]])
        for name in KANBAN_COLUMNS
    ]


@router.get("/{ticket_id}", response_model=TicketResponse)
@limiter.limit(READ_LIMIT)
async def get_ticket(request: Request, ticket_id: str, auth: CurrentUser, tickets: Tickets):
    logger.info(f"GET /tickets/{ticket_id} | user={auth.user_id}")
    return to_ticket_response(tickets.get_ticket(ticket_id))


@router.patch("/{ticket_id}", response_model=TicketResponse)
@limiter.limit(WRITE_LIMIT)
async def update_ticket(
    request: Request,
    ticket_id: str,
    payload: TicketUpdate,
    auth: CurrentUser,
    tickets: Tickets,
):
    """Apply the requested ticket actions in order."""
    fields = payload.model_dump(exclude_unset=True)
    logger.info(f"PATCH /tickets/{ticket_id} | user={auth.user_id} | fields={sorted(fields)}")
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    ticket = tickets.get_ticket(ticket_id)
    if "status" in fields:
        ticket = tickets.update_status(ticket_id, fields["status"], actor_id=auth.user_id)
    if "priority" in fields:
        ticket = tickets.update_priority(ticket_id, fields["priority"])
    if "due_date" in fields:
        ticket = tickets.update_due_date(ticket_id, fields["due_date"])
    if "completion_percentage" in fields:
        ticket = tickets.update_completion(ticket_id, fields["completion_percentage"])
    if "estimated_hours" in fields:
        ticket = tickets.update_estimated_hours(ticket_id, fields["estimated_hours"])
    if "assigned_to" in fields:
        ticket = tickets.assign(ticket_id, fields["assigned_to"])
    return to_ticket_response(ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(STATE_CHANGE_LIMIT)
async def delete_ticket(request: Request, ticket_id: str, auth: CurrentUser, tickets: Tickets):
    """Soft-delete a ticket (reporter only)."""
    logger.info(f"DELETE /tickets/{ticket_id} | user={auth.user_id}")
    tickets.delete_ticket(ticket_id, auth.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Notes and time entries
# =============================================================================


@router.post("/{ticket_id}/notes", response_model=TicketResponse)
@limiter.limit(WRITE_LIMIT)
async def add_note(
    request: Request,
    ticket_id: str,
    payload: NoteCreate,
    auth: CurrentUser,
    tickets: Tickets,
):
    logger.info(f"POST /tickets/{ticket_id}/notes | user={auth.user_id}")
    return to_ticket_response(
        tickets.add_note(ticket_id, auth.user_id, payload.comment, action=payload.action)
    )


@router.post(
    "/{ticket_id}/time", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED
)
@limiter.limit(WRITE_LIMIT)
async def log_time(
    request: Request,
    ticket_id: str,
    payload: TimeEntryCreate,
    auth: CurrentUser,
    tickets: Tickets,
):
    """Log hours against a ticket; they are added to its running total."""
    logger.info(f"POST /tickets/{ticket_id}/time | user={auth.user_id} | hours={payload.hours:g}")
    entry = tickets.log_time(
        ticket_id,
        auth.user_id,
        payload.hours,
        description=payload.description,
        job_app_id=payload.job_app_id,
        start_time=payload.start_time,
    )
    return to_time_entry_response(entry)


@router.get("/{ticket_id}/time", response_model=TimeEntryListResponse)
@limiter.limit(READ_LIMIT)
async def list_time_entries(
    request: Request,
    ticket_id: str,
    auth: CurrentUser,
    tickets: Tickets,
):
    logger.info(f"GET /tickets/{ticket_id}/time | user={auth.user_id}")
    tickets.get_ticket(ticket_id)
    entries = tickets.list_time_entries(ticket_id=ticket_id)
    return TimeEntryListResponse(
        entries=[to_time_entry_response(e) for e in entries],
        total_hours=tickets.total_hours(ticket_id=ticket_id),
    )
