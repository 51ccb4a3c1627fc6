"""
Ticket service.

Ticket CRUD, the activity log, time tracking and board/stat views.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from sweaquity.config import MarketplaceConfig
from sweaquity.logging_config import log_time_entry
from sweaquity.tickets.models import (
    KANBAN_COLUMNS,
    Ticket,
    TicketNote,
    TicketPriority,
    TicketStatus,
    TimeEntry,
)
from sweaquity.tickets.storage import TicketStorage

logger = logging.getLogger(__name__)


class TicketServiceError(Exception):
    """Base exception for ticket service errors."""

    pass


class TicketNotFoundError(TicketServiceError):
    """Ticket not found (or soft-deleted)."""

    pass


class UnauthorizedError(TicketServiceError):
    """Actor is not allowed to change the ticket."""

    pass


@dataclass
class TicketStats:
    total: int
    open: int
    closed: int
    high_priority: int


class TicketService:
    """Service for tickets and time entries."""

    def __init__(self, storage: TicketStorage, config: Optional[MarketplaceConfig] = None):
        self.storage = storage
        self.config = config or MarketplaceConfig()

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _save(self, ticket: Ticket, **changes) -> Ticket:
        try:
            updated = replace(ticket, updated_at=self._now(), **changes)
        except ValueError as e:
            raise TicketServiceError(str(e)) from e
        self.storage.update_ticket(updated)
        return updated

    # =========================================================================
    # Tickets
    # =========================================================================

    def create_ticket(
        self,
        reporter: str,
        title: str,
        description: Optional[str] = None,
        ticket_type: str = "task",
        priority: Optional[str] = None,
        health: Optional[str] = None,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        job_app_id: Optional[str] = None,
        assigned_to: Optional[str] = None,
        due_date: Optional[datetime] = None,
        estimated_hours: Optional[float] = None,
        reproduction_steps: Optional[str] = None,
        system_info: Optional[Dict[str, Any]] = None,
        reported_url: Optional[str] = None,
    ) -> Ticket:
        """Create a ticket in the ``new`` status."""
        now = self._now()
        try:
            ticket = Ticket(
                id=str(uuid.uuid4()),
                title=title,
                reporter=reporter,
                description=description,
                ticket_type=ticket_type,
                status=TicketStatus.NEW,
                priority=priority or self.config.default_ticket_priority,
                health=health or self.config.default_ticket_health,
                project_id=project_id,
                task_id=task_id,
                job_app_id=job_app_id,
                assigned_to=assigned_to,
                due_date=due_date,
                estimated_hours=estimated_hours,
                reproduction_steps=reproduction_steps,
                system_info=system_info,
                reported_url=reported_url,
                created_at=now,
                updated_at=now,
            )
        except ValueError as e:
            raise TicketServiceError(str(e)) from e

        self.storage.save_ticket(ticket)
        logger.info(f"Created {ticket.ticket_type} ticket {ticket.id}")
        return ticket

    def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = self.storage.get_ticket(ticket_id)
        if not ticket or ticket.is_deleted:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    def list_tickets(
        self,
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[TicketStatus] = None,
        include_deleted: bool = False,
        task_id: Optional[str] = None,
    ) -> List[Ticket]:
        return self.storage.list_tickets(
            project_id=project_id,
            task_id=task_id,
            user_id=user_id,
            status=status,
            include_deleted=include_deleted,
        )

    def update_status(
        self, ticket_id: str, status: TicketStatus, actor_id: Optional[str] = None
    ) -> Ticket:
        """Move a ticket to any status; the change is noted when an actor is given."""
        ticket = self.get_ticket(ticket_id)
        new_status = status.value if isinstance(status, TicketStatus) else status
        notes = ticket.notes
        if actor_id and new_status != ticket.status:
            notes = notes + [
                self._note(actor_id, f"Status changed from {ticket.status} to {new_status}", "status")
            ]
        return self._save(ticket, status=new_status, notes=notes)

    def update_priority(self, ticket_id: str, priority: TicketPriority) -> Ticket:
        return self._save(self.get_ticket(ticket_id), priority=priority)

    def update_due_date(self, ticket_id: str, due_date: Optional[datetime]) -> Ticket:
        return self._save(self.get_ticket(ticket_id), due_date=due_date)

    def update_completion(self, ticket_id: str, completion_percentage: float) -> Ticket:
        if completion_percentage < 0 or completion_percentage > 100:
            raise TicketServiceError("Completion percentage must be between 0 and 100")
        return self._save(self.get_ticket(ticket_id), completion_percentage=completion_percentage)

    def update_estimated_hours(self, ticket_id: str, hours: float) -> Ticket:
        if hours < 0:
            raise TicketServiceError("Estimated hours cannot be negative")
        return self._save(self.get_ticket(ticket_id), estimated_hours=hours)

    def assign(self, ticket_id: str, user_id: Optional[str]) -> Ticket:
        return self._save(self.get_ticket(ticket_id), assigned_to=user_id)

    def delete_ticket(self, ticket_id: str, actor_id: str) -> Ticket:
        """Soft-delete a ticket. Only the reporter may delete it."""
        ticket = self.get_ticket(ticket_id)
        if ticket.reporter != actor_id:
            raise UnauthorizedError("Only the reporter can delete this ticket")
        deleted = self._save(ticket, deleted_at=self._now())
        logger.info(f"Deleted ticket {ticket_id}")
        return deleted

    # =========================================================================
    # Notes
    # =========================================================================

    def _note(self, user: str, comment: str, action: Optional[str] = None) -> TicketNote:
        return TicketNote(
            id=str(uuid.uuid4()),
            user=user,
            timestamp=self._now(),
            comment=comment,
            action=action,
        )

    def add_note(
        self, ticket_id: str, user: str, comment: str, action: Optional[str] = None
    ) -> Ticket:
        if not comment or not comment.strip():
            raise TicketServiceError("Comment cannot be empty")
        ticket = self.get_ticket(ticket_id)
        return self._save(ticket, notes=ticket.notes + [self._note(user, comment.strip(), action)])

    # =========================================================================
    # Time tracking
    # =========================================================================

    def log_time(
        self,
        ticket_id: str,
        user_id: str,
        hours: float,
        description: Optional[str] = None,
        job_app_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
    ) -> TimeEntry:
        """Record hours against a ticket and add them to its running total.

        Raises:
            TicketServiceError: If hours are not positive or exceed the per-entry cap,
                or the start time is naive
        """
        if hours <= 0:
            raise TicketServiceError("Hours must be positive")
        if hours > self.config.max_hours_per_entry:
            raise TicketServiceError(
                f"Cannot log more than {self.config.max_hours_per_entry:g} hours in one entry"
            )
        if start_time is not None and start_time.tzinfo is None:
            raise TicketServiceError("Start time must include a timezone")
        ticket = self.get_ticket(ticket_id)

        now = self._now()
        start = start_time or now
        entry = TimeEntry(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            user_id=user_id,
            hours_logged=hours,
            start_time=start,
            end_time=start + timedelta(hours=hours),
            description=description,
            job_app_id=job_app_id or ticket.job_app_id,
            created_at=now,
        )
        self.storage.save_time_entry(entry)
        self._save(ticket, hours_logged=ticket.hours_logged + hours)

        log_time_entry(user_id, ticket_id, hours)
        return entry

    def list_time_entries(
        self,
        ticket_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[TimeEntry]:
        return self.storage.list_time_entries(ticket_id=ticket_id, user_id=user_id)

    def total_hours(self, ticket_id: Optional[str] = None, user_id: Optional[str] = None) -> float:
        return sum(e.hours_logged for e in self.list_time_entries(ticket_id, user_id))

    # =========================================================================
    # Views
    # =========================================================================

    @staticmethod
    def ticket_stats(tickets: Iterable[Ticket]) -> TicketStats:
        tickets = list(tickets)
        closed = sum(1 for t in tickets if not t.is_open)
        return TicketStats(
            total=len(tickets),
            open=len(tickets) - closed,
            closed=closed,
            high_priority=sum(1 for t in tickets if t.priority == TicketPriority.HIGH.value),
        )

    @staticmethod
    def kanban_columns(tickets: Iterable[Ticket]) -> Dict[str, List[Ticket]]:
        """Group tickets into board columns.

        Closed tickets go to ``done``; any other status without a column goes
        to ``new``.
        """
        columns: Dict[str, List[Ticket]] = {status: [] for status in KANBAN_COLUMNS}
        for ticket in tickets:
            if ticket.status == TicketStatus.CLOSED.value:
                columns[TicketStatus.DONE.value].append(ticket)
            else:
                columns.get(ticket.status, columns[TicketStatus.NEW.value]).append(ticket)
        return columns
