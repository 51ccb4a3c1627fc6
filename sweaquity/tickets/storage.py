"""
Tickets storage layer.

Persistence protocol for tickets and time entries, plus an in-memory
implementation.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from sweaquity.tickets.models import Ticket, TicketStatus, TimeEntry

logger = logging.getLogger(__name__)


class TicketStorage(Protocol):
    """Protocol for ticket persistence backends."""

    # Tickets
    def save_ticket(self, ticket: Ticket) -> str:
        ...

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        ...

    def list_tickets(
        self,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[TicketStatus] = None,
        include_deleted: bool = False,
    ) -> List[Ticket]:
        """List tickets, newest first. ``user_id`` matches assignee or reporter."""
        ...

    def update_ticket(self, ticket: Ticket) -> bool:
        ...

    # Time entries
    def save_time_entry(self, entry: TimeEntry) -> str:
        ...

    def list_time_entries(
        self,
        ticket_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[TimeEntry]:
        """List time entries, most recent start first."""
        ...


class InMemoryTicketStorage:
    """In-memory ticket storage for testing and local development."""

    def __init__(self):
        self._tickets: dict[str, Ticket] = {}
        self._entries: dict[str, TimeEntry] = {}

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    # === Tickets ===

    def save_ticket(self, ticket: Ticket) -> str:
        self._tickets[ticket.id] = ticket
        return ticket.id

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return self._tickets.get(ticket_id)

    def list_tickets(
        self,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[TicketStatus] = None,
        include_deleted: bool = False,
    ) -> List[Ticket]:
        tickets = list(self._tickets.values())

        if not include_deleted:
            tickets = [t for t in tickets if not t.is_deleted]
        if project_id is not None:
            tickets = [t for t in tickets if t.project_id == project_id]
        if task_id is not None:
            tickets = [t for t in tickets if t.task_id == task_id]
        if user_id is not None:
            tickets = [t for t in tickets if t.involves(user_id)]
        if status is not None:
            status_val = status.value if isinstance(status, TicketStatus) else status
            tickets = [t for t in tickets if t.status == status_val]

        tickets.sort(key=lambda t: t.created_at or self._utc_now(), reverse=True)
        return tickets

    def update_ticket(self, ticket: Ticket) -> bool:
        if ticket.id not in self._tickets:
            return False
        self._tickets[ticket.id] = ticket
        return True

    # === Time entries ===

    def save_time_entry(self, entry: TimeEntry) -> str:
        self._entries[entry.id] = entry
        return entry.id

    def list_time_entries(
        self,
        ticket_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[TimeEntry]:
        entries = list(self._entries.values())
        if ticket_id is not None:
            entries = [e for e in entries if e.ticket_id == ticket_id]
        if user_id is not None:
            entries = [e for e in entries if e.user_id == user_id]
        entries.sort(key=lambda e: e.start_time, reverse=True)
        return entries
