"""Tests for ticket, note and time-entry routes."""

import pytest


@pytest.fixture
def ticket(client, business_headers, seeker_id, project):
    response = client.post(
        "/tickets",
        json={
            "title": "Set up CI",
            "description": "Run tests on every push",
            "project_id": project["project_id"],
            "assigned_to": seeker_id,
            "estimated_hours": 6,
        },
        headers=business_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestTicketRoutes:
    """Tests for ticket CRUD."""

    def test_create_ticket_defaults(self, ticket, business_id):
        assert ticket["status"] == "new"
        assert ticket["ticket_type"] == "task"
        assert ticket["priority"] == "medium"
        assert ticket["health"] == "good"
        assert ticket["reporter"] == business_id
        assert ticket["hours_logged"] == 0
        assert ticket["notes"] == []

    def test_create_ticket_rejects_unknown_type(self, client, business_headers):
        response = client.post(
            "/tickets", json={"title": "Odd", "ticket_type": "epic"}, headers=business_headers
        )
        assert response.status_code == 422

    def test_beta_test_report(self, client, seeker_headers):
        response = client.post(
            "/tickets",
            json={
                "title": "Checkout button does nothing",
                "ticket_type": "beta_testing",
                "reproduction_steps": "1. Add item\n2. Click checkout",
                "reported_url": "https://app.example.com/cart",
                "system_info": {
                    "user_agent": "Mozilla/5.0",
                    "viewport_size": "1280x720",
                    "captured_at": "2026-10-01T09:00:00Z",
                },
            },
            headers=seeker_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["reproduction_steps"].startswith("1. Add item")
        assert data["reported_url"] == "https://app.example.com/cart"
        assert data["system_info"]["viewport_size"] == "1280x720"
        assert data["system_info"]["captured_at"].startswith("2026-10-01T09:00")

        fetched = client.get(f"/tickets/{data['id']}", headers=seeker_headers).json()
        assert fetched["system_info"]["user_agent"] == "Mozilla/5.0"

    def test_get_missing_ticket(self, client, business_headers):
        assert client.get("/tickets/nope", headers=business_headers).status_code == 404

    def test_list_mine(self, client, seeker_headers, other_seeker_headers, ticket):
        assert client.get("/tickets?mine=true", headers=seeker_headers).json()["total"] == 1
        assert client.get("/tickets?mine=true", headers=other_seeker_headers).json()["total"] == 0

    def test_list_by_status(self, client, business_headers, ticket):
        assert client.get("/tickets?status=new", headers=business_headers).json()["total"] == 1
        assert client.get("/tickets?status=done", headers=business_headers).json()["total"] == 0

    def test_update_status_records_note(self, client, seeker_headers, seeker_id, ticket):
        response = client.patch(
            f"/tickets/{ticket['id']}", json={"status": "in-progress"}, headers=seeker_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in-progress"
        assert data["notes"][0]["action"] == "status"
        assert data["notes"][0]["user"] == seeker_id

    def test_update_several_fields(self, client, business_headers, ticket):
        response = client.patch(
            f"/tickets/{ticket['id']}",
            json={
                "priority": "high",
                "completion_percentage": 40,
                "estimated_hours": 8,
                "due_date": "2026-12-01T00:00:00Z",
            },
            headers=business_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["priority"] == "high"
        assert data["completion_percentage"] == 40
        assert data["estimated_hours"] == 8
        assert data["due_date"].startswith("2026-12-01")

    def test_update_requires_fields(self, client, business_headers, ticket):
        response = client.patch(f"/tickets/{ticket['id']}", json={}, headers=business_headers)
        assert response.status_code == 400

    def test_completion_out_of_range(self, client, business_headers, ticket):
        response = client.patch(
            f"/tickets/{ticket['id']}", json={"completion_percentage": 120}, headers=business_headers
        )
        assert response.status_code == 422

    def test_reassign(self, client, business_headers, other_seeker_headers, ticket):
        client.patch(
            f"/tickets/{ticket['id']}",
            json={"assigned_to": "usr_TEST_SEEKER_00001"},
            headers=business_headers,
        )
        assert client.get("/tickets?mine=true", headers=other_seeker_headers).json()["total"] == 1

    def test_delete_is_reporter_only(self, client, business_headers, seeker_headers, ticket):
        url = f"/tickets/{ticket['id']}"
        assert client.delete(url, headers=seeker_headers).status_code == 403
        assert client.delete(url, headers=business_headers).status_code == 204
        assert client.get(url, headers=business_headers).status_code == 404

    def test_deleted_tickets_listed_on_request(self, client, business_headers, ticket):
        client.delete(f"/tickets/{ticket['id']}", headers=business_headers)
        assert client.get("/tickets", headers=business_headers).json()["total"] == 0
        listed = client.get("/tickets?include_deleted=true", headers=business_headers).json()
        assert listed["total"] == 1
        assert listed["tickets"][0]["deleted_at"] is not None


class TestTicketViews:
    """Tests for stats and the kanban board."""

    def test_stats(self, client, business_headers, ticket):
        client.post("/tickets", json={"title": "Hotfix", "priority": "high"}, headers=business_headers)
        client.patch(f"/tickets/{ticket['id']}", json={"status": "done"}, headers=business_headers)

        stats = client.get("/tickets/stats", headers=business_headers).json()
        assert stats == {"total": 2, "open": 1, "closed": 1, "high_priority": 1}

    def test_kanban_columns(self, client, business_headers, ticket):
        other = client.post("/tickets", json={"title": "Retire"}, headers=business_headers).json()
        client.patch(f"/tickets/{other['id']}", json={"status": "closed"}, headers=business_headers)

        columns = client.get("/tickets/kanban", headers=business_headers).json()
        assert [c["status"] for c in columns] == ["new", "in-progress", "blocked", "review", "done"]
        by_status = {c["status"]: [t["id"] for t in c["tickets"]] for c in columns}
        assert by_status["new"] == [ticket["id"]]
        assert by_status["done"] == [other["id"]]


class TestNotesAndTime:
    """Tests for notes and time tracking."""

    def test_add_note(self, client, seeker_headers, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/notes",
            json={"comment": "  Pipeline is green  "},
            headers=seeker_headers,
        )
        assert response.status_code == 200
        assert response.json()["notes"][-1]["comment"] == "Pipeline is green"

    def test_empty_note_rejected(self, client, seeker_headers, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/notes", json={"comment": ""}, headers=seeker_headers
        )
        assert response.status_code == 422

    def test_log_time(self, client, seeker_headers, seeker_id, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/time",
            json={"hours": 2.5, "description": "Wrote workflow", "start_time": "2026-10-01T09:00:00Z"},
            headers=seeker_headers,
        )
        assert response.status_code == 201
        entry = response.json()
        assert entry["user_id"] == seeker_id
        assert entry["hours_logged"] == 2.5
        assert entry["end_time"].startswith("2026-10-01T11:30")

        client.post(f"/tickets/{ticket['id']}/time", json={"hours": 1}, headers=seeker_headers)
        listing = client.get(f"/tickets/{ticket['id']}/time", headers=seeker_headers).json()
        assert len(listing["entries"]) == 2
        assert listing["total_hours"] == 3.5

        updated = client.get(f"/tickets/{ticket['id']}", headers=seeker_headers).json()
        assert updated["hours_logged"] == 3.5

    def test_log_time_over_daily_cap(self, client, seeker_headers, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/time", json={"hours": 25}, headers=seeker_headers
        )
        assert response.status_code == 400

    def test_log_time_requires_positive_hours(self, client, seeker_headers, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/time", json={"hours": 0}, headers=seeker_headers
        )
        assert response.status_code == 422

    def test_log_time_requires_timezone(self, client, seeker_headers, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/time",
            json={"hours": 1, "start_time": "2026-10-01T09:00:00"},
            headers=seeker_headers,
        )
        assert response.status_code == 422

    def test_time_on_missing_ticket(self, client, seeker_headers):
        assert client.get("/tickets/nope/time", headers=seeker_headers).status_code == 404
