"""Database utilities for Supabase integration.

Provides the cached Supabase client and Supabase-backed implementations of
the sweaquity storage protocols. Rows are mapped to and from the library
dataclasses here; timestamps arrive from PostgREST as ISO strings.
"""

from dataclasses import MISSING, asdict, fields
from datetime import datetime
from typing import Annotated, Any, Iterable, List, Optional

from dateutil.parser import parse
from fastapi import Depends
from supabase import Client, create_client

from sweaquity.applications import AcceptedJob, ApplicationStatus, JobApplication
from sweaquity.projects import Business, Project, ProjectStatus, ProjectTask
from sweaquity.tickets import Ticket, TicketNote, TicketStatus, TimeEntry

from .config import Settings, get_settings

_supabase_client: Client | None = None


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Get cached Supabase client."""
    global _supabase_client
    if _supabase_client is None:
        if settings is None:
            settings = get_settings()
        # Prefer new secret key, fall back to legacy service_role_key
        api_key = settings.supabase_secret_key or settings.supabase_service_role_key
        if not api_key:
            raise ValueError("Either SUPABASE_SECRET_KEY or SUPABASE_SERVICE_ROLE_KEY must be set")
        _supabase_client = create_client(settings.supabase_url, api_key)
    return _supabase_client


def get_db(settings: Annotated[Settings, Depends(get_settings)]) -> Client:
    """FastAPI dependency for Supabase client."""
    return get_supabase_client(settings)


# Type alias for dependency injection
Database = Annotated[Client, Depends(get_db)]


# =============================================================================
# Table Names
# =============================================================================

BUSINESSES_TABLE = "businesses"
PROFILES_TABLE = "profiles"
PROJECTS_TABLE = "business_projects"
TASKS_TABLE = "project_sub_tasks"
JOB_APPLICATIONS_TABLE = "job_applications"
ACCEPTED_JOBS_TABLE = "accepted_jobs"
TICKETS_TABLE = "tickets"
TIME_ENTRIES_TABLE = "time_entries"


# =============================================================================
# Row Mapping
# =============================================================================


def _parse_dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return parse(value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def to_row(record: Any) -> dict:
    """Dataclass -> JSON-ready row."""
    return _jsonable(asdict(record))


def _has_default(f) -> bool:
    return f.default_factory is not MISSING or f.default not in (MISSING, None)


def from_row(cls, row: dict, datetime_fields: Iterable[str] = ()):
    """Row -> dataclass, ignoring columns the dataclass does not know.

    NULL in a column whose field has a non-null default falls back to that
    default, since the hosted schema leaves most columns nullable.
    """
    defaulted = {f.name for f in fields(cls) if _has_default(f)}
    names = {f.name for f in fields(cls)}
    data = {
        k: v
        for k, v in row.items()
        if k in names and not (v is None and k in defaulted)
    }
    for name in datetime_fields:
        if name in data:
            data[name] = _parse_dt(data[name])
    return cls(**data)


_AUDIT_FIELDS = ("created_at", "updated_at")


def _business(row: dict) -> Business:
    return from_row(Business, row, _AUDIT_FIELDS)


def _project(row: dict) -> Project:
    row = {**row, "skills_required": row.get("skills_required") or []}
    return from_row(Project, row, _AUDIT_FIELDS)


def _task(row: dict) -> ProjectTask:
    row = {
        **row,
        "skill_requirements": row.get("skill_requirements") or [],
        "dependencies": row.get("dependencies") or [],
    }
    return from_row(ProjectTask, row, _AUDIT_FIELDS + ("last_activity_at",))


def _application(row: dict) -> JobApplication:
    return from_row(JobApplication, row, ("applied_at", "updated_at"))


def _accepted_job(row: dict) -> AcceptedJob:
    return from_row(AcceptedJob, row, _AUDIT_FIELDS + ("date_accepted",))


def _ticket(row: dict) -> Ticket:
    notes = [from_row(TicketNote, n, ("timestamp",)) for n in row.get("notes") or []]
    row = {**row, "notes": notes}
    return from_row(Ticket, row, _AUDIT_FIELDS + ("due_date", "deleted_at"))


def _time_entry(row: dict) -> TimeEntry:
    return from_row(TimeEntry, row, ("start_time", "end_time", "created_at"))


def _status_value(status: Any) -> Any:
    return getattr(status, "value", status)


# =============================================================================
# Projects
# =============================================================================


class SupabaseProjectStorage:
    """Project storage backed by the businesses/business_projects/project_sub_tasks tables."""

    def __init__(self, db: Client):
        self.db = db

    def save_business(self, business: Business) -> str:
        self.db.table(BUSINESSES_TABLE).upsert(to_row(business)).execute()
        return business.businesses_id

    def get_business(self, business_id: str) -> Optional[Business]:
        result = (
            self.db.table(BUSINESSES_TABLE).select("*").eq("businesses_id", business_id).execute()
        )
        return _business(result.data[0]) if result.data else None

    def save_project(self, project: Project) -> str:
        self.db.table(PROJECTS_TABLE).insert(to_row(project)).execute()
        return project.project_id

    def get_project(self, project_id: str) -> Optional[Project]:
        result = self.db.table(PROJECTS_TABLE).select("*").eq("project_id", project_id).execute()
        return _project(result.data[0]) if result.data else None

    def list_projects(
        self,
        business_id: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Project]:
        query = self.db.table(PROJECTS_TABLE).select("*")
        if business_id:
            query = query.eq("business_id", business_id)
        if status:
            query = query.eq("status", _status_value(status))
        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = query.execute()
        return [_project(r) for r in result.data or []]

    def update_project(self, project: Project) -> bool:
        result = (
            self.db.table(PROJECTS_TABLE)
            .update(to_row(project))
            .eq("project_id", project.project_id)
            .execute()
        )
        return bool(result.data)

    def delete_project(self, project_id: str) -> bool:
        self.db.table(TASKS_TABLE).delete().eq("project_id", project_id).execute()
        result = self.db.table(PROJECTS_TABLE).delete().eq("project_id", project_id).execute()
        return bool(result.data)

    def save_task(self, task: ProjectTask) -> str:
        self.db.table(TASKS_TABLE).insert(to_row(task)).execute()
        return task.task_id

    def get_task(self, task_id: str) -> Optional[ProjectTask]:
        result = self.db.table(TASKS_TABLE).select("*").eq("task_id", task_id).execute()
        return _task(result.data[0]) if result.data else None

    def list_tasks(
        self,
        project_id: Optional[str] = None,
        open_only: bool = False,
    ) -> List[ProjectTask]:
        query = self.db.table(TASKS_TABLE).select("*")
        if project_id:
            query = query.eq("project_id", project_id)
        if open_only:
            query = query.eq("status", "open")
        result = query.order("created_at").execute()
        return [_task(r) for r in result.data or []]

    def update_task(self, task: ProjectTask) -> bool:
        result = (
            self.db.table(TASKS_TABLE).update(to_row(task)).eq("task_id", task.task_id).execute()
        )
        return bool(result.data)

    def delete_task(self, task_id: str) -> bool:
        result = self.db.table(TASKS_TABLE).delete().eq("task_id", task_id).execute()
        return bool(result.data)


# =============================================================================
# Applications
# =============================================================================


class SupabaseApplicationStorage:
    """Application storage backed by the job_applications/accepted_jobs tables."""

    def __init__(self, db: Client):
        self.db = db

    def save_application(self, application: JobApplication) -> str:
        self.db.table(JOB_APPLICATIONS_TABLE).insert(to_row(application)).execute()
        return application.job_app_id

    def get_application(self, job_app_id: str) -> Optional[JobApplication]:
        result = (
            self.db.table(JOB_APPLICATIONS_TABLE).select("*").eq("job_app_id", job_app_id).execute()
        )
        return _application(result.data[0]) if result.data else None

    def list_applications(
        self,
        task_id: Optional[str] = None,
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[ApplicationStatus] = None,
        limit: int = 100,
    ) -> List[JobApplication]:
        query = self.db.table(JOB_APPLICATIONS_TABLE).select("*")
        if task_id:
            query = query.eq("task_id", task_id)
        if project_id:
            query = query.eq("project_id", project_id)
        if user_id:
            query = query.eq("user_id", user_id)
        if status:
            query = query.eq("status", _status_value(status))
        result = query.order("applied_at", desc=True).limit(limit).execute()
        return [_application(r) for r in result.data or []]

    def update_application(self, application: JobApplication) -> bool:
        result = (
            self.db.table(JOB_APPLICATIONS_TABLE)
            .update(to_row(application))
            .eq("job_app_id", application.job_app_id)
            .execute()
        )
        return bool(result.data)

    def save_accepted_job(self, job: AcceptedJob) -> str:
        self.db.table(ACCEPTED_JOBS_TABLE).insert(to_row(job)).execute()
        return job.id

    def get_accepted_job(self, job_app_id: str) -> Optional[AcceptedJob]:
        result = (
            self.db.table(ACCEPTED_JOBS_TABLE).select("*").eq("job_app_id", job_app_id).execute()
        )
        return _accepted_job(result.data[0]) if result.data else None

    def list_accepted_jobs(self, job_app_ids: Iterable[str]) -> List[AcceptedJob]:
        ids = list(job_app_ids)
        if not ids:
            return []
        result = self.db.table(ACCEPTED_JOBS_TABLE).select("*").in_("job_app_id", ids).execute()
        return [_accepted_job(r) for r in result.data or []]

    def update_accepted_job(self, job: AcceptedJob) -> bool:
        result = (
            self.db.table(ACCEPTED_JOBS_TABLE)
            .update(to_row(job))
            .eq("job_app_id", job.job_app_id)
            .execute()
        )
        return bool(result.data)


# =============================================================================
# Tickets
# =============================================================================


class SupabaseTicketStorage:
    """Ticket storage backed by the tickets/time_entries tables."""

    def __init__(self, db: Client):
        self.db = db

    def save_ticket(self, ticket: Ticket) -> str:
        self.db.table(TICKETS_TABLE).insert(to_row(ticket)).execute()
        return ticket.id

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        result = self.db.table(TICKETS_TABLE).select("*").eq("id", ticket_id).execute()
        return _ticket(result.data[0]) if result.data else None

    def list_tickets(
        self,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[TicketStatus] = None,
        include_deleted: bool = False,
    ) -> List[Ticket]:
        query = self.db.table(TICKETS_TABLE).select("*")
        if not include_deleted:
            query = query.is_("deleted_at", "null")
        if project_id:
            query = query.eq("project_id", project_id)
        if task_id:
            query = query.eq("task_id", task_id)
        if user_id:
            query = query.or_(f"assigned_to.eq.{user_id},reporter.eq.{user_id}")
        if status:
            query = query.eq("status", _status_value(status))
        result = query.order("created_at", desc=True).execute()
        return [_ticket(r) for r in result.data or []]

    def update_ticket(self, ticket: Ticket) -> bool:
        result = self.db.table(TICKETS_TABLE).update(to_row(ticket)).eq("id", ticket.id).execute()
        return bool(result.data)

    def save_time_entry(self, entry: TimeEntry) -> str:
        self.db.table(TIME_ENTRIES_TABLE).insert(to_row(entry)).execute()
        return entry.id

    def list_time_entries(
        self,
        ticket_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[TimeEntry]:
        query = self.db.table(TIME_ENTRIES_TABLE).select("*")
        if ticket_id:
            query = query.eq("ticket_id", ticket_id)
        if user_id:
            query = query.eq("user_id", user_id)
        result = query.order("start_time", desc=True).execute()
        return [_time_entry(r) for r in result.data or []]


# =============================================================================
# Profiles
# =============================================================================


async def get_profile(db: Client, user_id: str) -> dict | None:
    """Get a job seeker profile by auth user id."""
    result = db.table(PROFILES_TABLE).select("*").eq("id", user_id).execute()
    return result.data[0] if result.data else None


async def upsert_profile(db: Client, user_id: str, data: dict) -> dict | None:
    """Create or update a job seeker profile."""
    result = db.table(PROFILES_TABLE).upsert({**data, "id": user_id}).execute()
    return result.data[0] if result.data else None
