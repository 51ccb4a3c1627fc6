"""Tests for ticket service."""

from datetime import datetime, timedelta, timezone

import pytest

from sweaquity.config import MarketplaceConfig
from sweaquity.tickets import (
    Ticket,
    TicketNotFoundError,
    TicketService,
    TicketServiceError,
    TicketStats,
    TicketStatus,
    UnauthorizedError,
)


@pytest.fixture
def ticket(ticket_service, business_id, seeker_id):
    return ticket_service.create_ticket(
        business_id, "Set up CI", project_id="p1", assigned_to=seeker_id
    )


class TestTicketCrud:
    """Tests for creating, reading and deleting tickets."""

    def test_create_uses_config_defaults(self, ticket_storage, business_id):
        service = TicketService(
            ticket_storage,
            MarketplaceConfig(default_ticket_priority="low", default_ticket_health="at_risk"),
        )
        ticket = service.create_ticket(business_id, "Triage")
        assert ticket.status == "new"
        assert ticket.priority == "low"
        assert ticket.health == "at_risk"

    def test_create_invalid(self, ticket_service, business_id):
        with pytest.raises(TicketServiceError):
            ticket_service.create_ticket(business_id, "Odd", ticket_type="epic")

    def test_get_missing(self, ticket_service):
        with pytest.raises(TicketNotFoundError):
            ticket_service.get_ticket("nope")

    def test_list_for_user(self, ticket_service, ticket, seeker_id, other_seeker_id):
        assert ticket_service.list_tickets(user_id=seeker_id) == [ticket]
        assert ticket_service.list_tickets(user_id=other_seeker_id) == []

    def test_delete_reporter_only(self, ticket_service, ticket, seeker_id, business_id):
        with pytest.raises(UnauthorizedError):
            ticket_service.delete_ticket(ticket.id, seeker_id)

        deleted = ticket_service.delete_ticket(ticket.id, business_id)
        assert deleted.is_deleted
        with pytest.raises(TicketNotFoundError):
            ticket_service.get_ticket(ticket.id)
        assert ticket_service.list_tickets() == []
        assert len(ticket_service.list_tickets(include_deleted=True)) == 1


class TestTicketUpdates:
    """Tests for field-level ticket actions."""

    def test_status_change_notes_actor(self, ticket_service, ticket, seeker_id):
        updated = ticket_service.update_status(ticket.id, TicketStatus.BLOCKED, actor_id=seeker_id)
        assert updated.status == "blocked"
        assert len(updated.notes) == 1
        assert updated.notes[0].action == "status"
        assert updated.notes[0].comment == "Status changed from new to blocked"

    def test_status_any_direction(self, ticket_service, ticket):
        ticket_service.update_status(ticket.id, "done")
        reopened = ticket_service.update_status(ticket.id, "new")
        assert reopened.status == "new"
        assert reopened.notes == []

    def test_same_status_no_note(self, ticket_service, ticket, seeker_id):
        updated = ticket_service.update_status(ticket.id, "new", actor_id=seeker_id)
        assert updated.notes == []

    def test_invalid_status(self, ticket_service, ticket):
        with pytest.raises(TicketServiceError):
            ticket_service.update_status(ticket.id, "doing")

    def test_priority_due_date_assign(self, ticket_service, ticket, other_seeker_id):
        due = datetime(2026, 12, 1, tzinfo=timezone.utc)
        ticket_service.update_priority(ticket.id, "high")
        ticket_service.update_due_date(ticket.id, due)
        updated = ticket_service.assign(ticket.id, other_seeker_id)
        assert updated.priority == "high"
        assert updated.due_date == due
        assert updated.assigned_to == other_seeker_id

    def test_completion_bounds(self, ticket_service, ticket):
        assert ticket_service.update_completion(ticket.id, 100).completion_percentage == 100
        with pytest.raises(TicketServiceError):
            ticket_service.update_completion(ticket.id, -1)

    def test_estimated_hours(self, ticket_service, ticket):
        assert ticket_service.update_estimated_hours(ticket.id, 0).estimated_hours == 0
        with pytest.raises(TicketServiceError):
            ticket_service.update_estimated_hours(ticket.id, -2)

    def test_add_note(self, ticket_service, ticket, seeker_id):
        updated = ticket_service.add_note(ticket.id, seeker_id, "  Green build  ", action="comment")
        assert updated.notes[-1].comment == "Green build"
        assert updated.notes[-1].action == "comment"
        with pytest.raises(TicketServiceError):
            ticket_service.add_note(ticket.id, seeker_id, " ")


class TestTimeTracking:
    """Tests for logging hours."""

    def test_log_time(self, ticket_service, ticket, seeker_id):
        start = datetime(2026, 10, 1, 9, tzinfo=timezone.utc)
        entry = ticket_service.log_time(ticket.id, seeker_id, 1.5, "Pipeline", start_time=start)
        assert entry.end_time == start + timedelta(hours=1.5)
        assert ticket_service.get_ticket(ticket.id).hours_logged == 1.5

    def test_naive_start_time_rejected(self, ticket_service, ticket, seeker_id):
        with pytest.raises(TicketServiceError, match="timezone"):
            ticket_service.log_time(ticket.id, seeker_id, 1, start_time=datetime(2026, 10, 1, 9))
        assert ticket_service.list_time_entries(ticket_id=ticket.id) == []

    def test_entry_inherits_job(self, ticket_service, business_id, seeker_id):
        ticket = ticket_service.create_ticket(business_id, "Work", job_app_id="j1")
        entry = ticket_service.log_time(ticket.id, seeker_id, 1)
        assert entry.job_app_id == "j1"

    def test_totals(self, ticket_service, ticket, seeker_id, other_seeker_id):
        ticket_service.log_time(ticket.id, seeker_id, 2)
        ticket_service.log_time(ticket.id, other_seeker_id, 3)
        assert ticket_service.total_hours(ticket_id=ticket.id) == 5
        assert ticket_service.total_hours(user_id=seeker_id) == 2
        assert len(ticket_service.list_time_entries(ticket_id=ticket.id)) == 2

    @pytest.mark.parametrize("hours", [0, -1, 24.5])
    def test_hours_out_of_range(self, ticket_service, ticket, seeker_id, hours):
        with pytest.raises(TicketServiceError):
            ticket_service.log_time(ticket.id, seeker_id, hours)

    def test_configured_cap(self, ticket_storage, business_id, seeker_id):
        service = TicketService(ticket_storage, MarketplaceConfig(max_hours_per_entry=8))
        ticket = service.create_ticket(business_id, "Work")
        with pytest.raises(TicketServiceError, match="8 hours"):
            service.log_time(ticket.id, seeker_id, 9)

    def test_log_time_on_deleted_ticket(self, ticket_service, ticket, business_id, seeker_id):
        ticket_service.delete_ticket(ticket.id, business_id)
        with pytest.raises(TicketNotFoundError):
            ticket_service.log_time(ticket.id, seeker_id, 1)

    def test_logs_event(self, ticket_service, ticket, seeker_id, isolated_data_dir):
        ticket_service.log_time(ticket.id, seeker_id, 2)
        content = next((isolated_data_dir / "logs").glob("marketplace-events-*.log")).read_text()
        assert "time | user=" in content
        assert "hours=2.00" in content


class TestTicketViews:
    """Tests for stats and board grouping."""

    def _tickets(self):
        return [
            Ticket(id="a", title="A", reporter="u", status="new", priority="high"),
            Ticket(id="b", title="B", reporter="u", status="review"),
            Ticket(id="c", title="C", reporter="u", status="done", priority="high"),
            Ticket(id="d", title="D", reporter="u", status="closed"),
        ]

    def test_stats(self):
        assert TicketService.ticket_stats(self._tickets()) == TicketStats(
            total=4, open=2, closed=2, high_priority=2
        )

    def test_stats_empty(self):
        assert TicketService.ticket_stats([]) == TicketStats(total=0, open=0, closed=0, high_priority=0)

    def test_kanban(self):
        columns = TicketService.kanban_columns(self._tickets())
        assert list(columns) == ["new", "in-progress", "blocked", "review", "done"]
        assert [t.id for t in columns["new"]] == ["a"]
        assert [t.id for t in columns["review"]] == ["b"]
        assert [t.id for t in columns["done"]] == ["c", "d"]
        assert columns["blocked"] == []
