"""Tickets subsystem.

Models:
- Ticket: A task, bug or beta-test work item
- TicketNote: An entry in a ticket's activity log
- TimeEntry: Hours logged against a ticket

Service:
- TicketService: Ticket updates, notes, time tracking, stats and board views
"""

from sweaquity.tickets.models import (
    KANBAN_COLUMNS,
    Ticket,
    TicketHealth,
    TicketNote,
    TicketPriority,
    TicketStatus,
    TicketType,
    TimeEntry,
)
from sweaquity.tickets.service import (
    TicketNotFoundError,
    TicketService,
    TicketServiceError,
    TicketStats,
    UnauthorizedError,
)
from sweaquity.tickets.storage import InMemoryTicketStorage, TicketStorage

__all__ = [
    # Models
    "Ticket",
    "TicketNote",
    "TimeEntry",
    "TicketType",
    "TicketStatus",
    "TicketPriority",
    "TicketHealth",
    "KANBAN_COLUMNS",
    # Storage
    "TicketStorage",
    "InMemoryTicketStorage",
    # Service
    "TicketService",
    "TicketStats",
    "TicketServiceError",
    "TicketNotFoundError",
    "UnauthorizedError",
]
