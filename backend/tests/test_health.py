"""Tests for the health endpoint."""


class TestHealth:
    """Tests for GET /health."""

    def test_all_tables_reachable(self, client, mock_db):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert set(data["tables"]) == {
            "businesses",
            "business_projects",
            "job_applications",
            "accepted_jobs",
            "tickets",
        }
        assert all(state == "ok" for state in data["tables"].values())

    def test_failing_table_degrades(self, client, mock_db):
        def table(name):
            if name == "tickets":
                raise RuntimeError("relation does not exist")
            return mock_db.default_table

        mock_db.table.side_effect = table
        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["tables"]["tickets"].startswith("error: relation does not exist")
        assert data["tables"]["businesses"] == "ok"
