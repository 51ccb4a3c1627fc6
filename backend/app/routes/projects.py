"""Project and task routes.

Businesses manage projects and their equity-bearing tasks; job seekers browse
open opportunities and see the tasks that best match their skills.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from pydantic import BaseModel, Field, field_validator

from sweaquity.skills import extract_unique_skills, rank_matches

from ..auth import AuthContext, CurrentUser
from ..database import Database, get_profile
from ..logging_config import get_logger
from ..rate_limit import DESTRUCTIVE_LIMIT, READ_LIMIT, STATE_CHANGE_LIMIT, WRITE_LIMIT, limiter
from ..services import Config, Equity, Projects
from .profiles import SkillItem

logger = get_logger("sweaquity.api.projects")
router = APIRouter(prefix="/projects", tags=["projects"])


# =============================================================================
# Request/Response Models
# =============================================================================

ProjectStatus = Literal["draft", "active", "completed", "archived"]


def _normalize_skills(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    return [s.lower().strip() for s in v if s.strip()]


class ProjectCreate(BaseModel):
    """Request to create a project."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    equity_allocation: float = Field(..., gt=0, le=100)
    skills_required: list[str] = Field(default_factory=list)
    project_timeframe: str | None = None
    status: ProjectStatus = "active"

    @field_validator("skills_required")
    @classmethod
    def validate_skills(cls, v: list[str]) -> list[str]:
        return _normalize_skills(v)


class ProjectUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    equity_allocation: float | None = Field(None, gt=0, le=100)
    skills_required: list[str] | None = None
    project_timeframe: str | None = None
    status: ProjectStatus | None = None

    @field_validator("skills_required")
    @classmethod
    def validate_skills(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_skills(v)


class ProjectResponse(BaseModel):
    project_id: str
    business_id: str
    title: str
    description: str | None = None
    status: ProjectStatus
    equity_allocation: float
    equity_allocated: float
    skills_required: list[str]
    project_timeframe: str | None = None
    completion_percentage: float
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskCreate(BaseModel):
    """Request to add a task to a project."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    timeframe: str = Field(..., min_length=1)
    equity_allocation: float = Field(..., gt=0, le=100)
    skill_requirements: list[SkillItem] = Field(default_factory=list)
    estimated_hours: float | None = Field(None, ge=0)
    dependencies: list[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    timeframe: str | None = Field(None, min_length=1)
    equity_allocation: float | None = Field(None, gt=0, le=100)
    skill_requirements: list[SkillItem] | None = None
    estimated_hours: float | None = Field(None, ge=0)
    completion_percentage: float | None = Field(None, ge=0, le=100)
    dependencies: list[str] | None = None


class SkillRequirementResponse(BaseModel):
    skill: str
    level: str


class TaskResponse(BaseModel):
    task_id: str
    project_id: str
    title: str
    description: str | None = None
    timeframe: str
    equity_allocation: float
    skill_requirements: list[SkillRequirementResponse]
    estimated_hours: float | None = None
    status: Literal["open", "closed"]
    task_status: Literal["pending", "in_progress", "pending_review", "completed"]
    completion_percentage: float
    dependencies: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_activity_at: datetime | None = None


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int
    remaining_equity: float


class OpportunityListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int
    skills: list[str]


class MatchResponse(BaseModel):
    task: TaskResponse
    score: float
    matching_skills: list[str]


class EquitySummaryResponse(BaseModel):
    project_id: str
    equity_offered: float
    task_equity_total: float
    agreed_equity_total: float
    earned_equity_total: float
    remaining_task_equity: float
    unallocated_equity: float


def to_project_response(project) -> ProjectResponse:
    return ProjectResponse(**asdict(project))


def to_task_response(task) -> TaskResponse:
    data = asdict(task)
    data.pop("created_by", None)
    return TaskResponse(**data)


def _require_business(auth: AuthContext) -> None:
    if not auth.is_business:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only business accounts can manage projects",
        )


# =============================================================================
# Opportunities
# =============================================================================


@router.get("/opportunities", response_model=OpportunityListResponse)
@limiter.limit(READ_LIMIT)
async def list_opportunities(
    request: Request,
    auth: CurrentUser,
    projects: Projects,
    search: str | None = Query(None, max_length=200),
    skill: str | None = Query(None, max_length=100),
):
    """Open tasks of active projects, filtered by text search and a required skill."""
    logger.info(f"GET /projects/opportunities | user={auth.user_id} | search={search} | skill={skill}")
    everything = projects.open_opportunities()
    tasks = projects.open_opportunities(search_term=search, skill=skill)
    return OpportunityListResponse(
        tasks=[to_task_response(t) for t in tasks],
        total=len(tasks),
        skills=extract_unique_skills(everything),
    )


@router.get("/opportunities/matches", response_model=list[MatchResponse])
@limiter.limit(READ_LIMIT)
async def list_matches(
    request: Request,
    auth: CurrentUser,
    projects: Projects,
    config: Config,
    db: Database,
    limit: int = Query(20, ge=1, le=100),
):
    """Open tasks ranked by how many of their required skills the caller has."""
    logger.info(f"GET /projects/opportunities/matches | user={auth.user_id}")
    profile = await get_profile(db, auth.user_id)
    user_skills = (profile or {}).get("skills") or []
    matches = rank_matches(user_skills, projects.open_opportunities(), config.min_match_score)
    return [
        MatchResponse(
            task=to_task_response(m.item),
            score=round(m.score, 4),
            matching_skills=m.matching_skills,
        )
        for m in matches[:limit]
    ]


# =============================================================================
# Projects
# =============================================================================


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(STATE_CHANGE_LIMIT)
async def create_project(
    request: Request,
    payload: ProjectCreate,
    auth: CurrentUser,
    projects: Projects,
):
    """Create a project owned by the caller's business."""
    logger.info(f"POST /projects | business={auth.user_id} | title={payload.title[:50]}")
    _require_business(auth)
    project = projects.create_project(auth.user_id, **payload.model_dump())
    logger.info(f"Project created | id={project.project_id} | business={auth.user_id}")
    return to_project_response(project)


@router.get("", response_model=list[ProjectResponse])
@limiter.limit(READ_LIMIT)
async def list_projects(
    request: Request,
    auth: CurrentUser,
    projects: Projects,
    business_id: str | None = Query(None),
    mine: bool = Query(False, description="Only projects owned by the caller"),
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    logger.info(f"GET /projects | user={auth.user_id} | mine={mine} | status={status_filter}")
    owner = auth.user_id if mine else business_id
    found = projects.list_projects(
        business_id=owner, status=status_filter, limit=limit, offset=offset
    )
    return [to_project_response(p) for p in found]


@router.get("/{project_id}", response_model=ProjectResponse)
@limiter.limit(READ_LIMIT)
async def get_project(request: Request, project_id: str, auth: CurrentUser, projects: Projects):
    logger.info(f"GET /projects/{project_id} | user={auth.user_id}")
    return to_project_response(projects.get_project(project_id))


@router.patch("/{project_id}", response_model=ProjectResponse)
@limiter.limit(WRITE_LIMIT)
async def update_project(
    request: Request,
    project_id: str,
    payload: ProjectUpdate,
    auth: CurrentUser,
    projects: Projects,
):
    logger.info(f"PATCH /projects/{project_id} | business={auth.user_id}")
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    return to_project_response(projects.update_project(project_id, auth.user_id, **fields))


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(DESTRUCTIVE_LIMIT)
async def delete_project(request: Request, project_id: str, auth: CurrentUser, projects: Projects):
    logger.info(f"DELETE /projects/{project_id} | business={auth.user_id}")
    projects.delete_project(project_id, auth.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/equity", response_model=EquitySummaryResponse)
@limiter.limit(READ_LIMIT)
async def get_project_equity(request: Request, project_id: str, auth: CurrentUser, equity: Equity):
    """Offered, agreed and earned equity for a project."""
    logger.info(f"GET /projects/{project_id}/equity | user={auth.user_id}")
    return EquitySummaryResponse(**asdict(equity.project_summary(project_id)))


# =============================================================================
# Tasks
# =============================================================================


@router.get("/{project_id}/tasks", response_model=TaskListResponse)
@limiter.limit(READ_LIMIT)
async def list_tasks(request: Request, project_id: str, auth: CurrentUser, projects: Projects):
    logger.info(f"GET /projects/{project_id}/tasks | user={auth.user_id}")
    tasks = projects.list_tasks(project_id)
    return TaskListResponse(
        tasks=[to_task_response(t) for t in tasks],
        total=len(tasks),
        remaining_equity=projects.remaining_equity(project_id),
    )


@router.post(
    "/{project_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED
)
@limiter.limit(WRITE_LIMIT)
async def add_task(
    request: Request,
    project_id: str,
    payload: TaskCreate,
    auth: CurrentUser,
    projects: Projects,
):
    """Add a task; its equity comes out of what the project has left."""
    logger.info(
        f"POST /projects/{project_id}/tasks | business={auth.user_id} | "
        f"equity={payload.equity_allocation:g}"
    )
    data = payload.model_dump()
    task = projects.add_task(project_id, auth.user_id, **data)
    return to_task_response(task)


@router.patch("/{project_id}/tasks/{task_id}", response_model=TaskResponse)
@limiter.limit(WRITE_LIMIT)
async def update_task(
    request: Request,
    project_id: str,
    task_id: str,
    payload: TaskUpdate,
    auth: CurrentUser,
    projects: Projects,
):
    logger.info(f"PATCH /projects/{project_id}/tasks/{task_id} | business={auth.user_id}")
    _task_in_project(projects, project_id, task_id)
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    return to_task_response(projects.update_task(task_id, auth.user_id, **fields))


@router.post("/{project_id}/tasks/{task_id}/close", response_model=TaskResponse)
@limiter.limit(WRITE_LIMIT)
async def close_task(
    request: Request,
    project_id: str,
    task_id: str,
    auth: CurrentUser,
    projects: Projects,
):
    """Stop taking applications for a task."""
    logger.info(f"POST /projects/{project_id}/tasks/{task_id}/close | business={auth.user_id}")
    _task_in_project(projects, project_id, task_id)
    return to_task_response(projects.close_task(task_id, auth.user_id))


@router.delete("/{project_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(STATE_CHANGE_LIMIT)
async def delete_task(
    request: Request,
    project_id: str,
    task_id: str,
    auth: CurrentUser,
    projects: Projects,
):
    logger.info(f"DELETE /projects/{project_id}/tasks/{task_id} | business={auth.user_id}")
    _task_in_project(projects, project_id, task_id)
    projects.delete_task(task_id, auth.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _task_in_project(projects, project_id: str, task_id: str) -> None:
    if projects.get_task(task_id).project_id != project_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
