"""Tests for business and job seeker profile routes."""

from unittest.mock import AsyncMock, patch


class TestBusinessRoutes:
    """Tests for business profile endpoints."""

    def test_save_and_get_business(self, client, business_headers, business_id):
        response = client.put(
            "/businesses/me",
            json={"company_name": "Acme Labs", "industry": "Fintech"},
            headers=business_headers,
        )
        assert response.status_code == 200
        assert response.json()["businesses_id"] == business_id
        assert response.json()["company_name"] == "Acme Labs"

        response = client.put("/businesses/me", json={"website": "https://acme.test"}, headers=business_headers)
        data = response.json()
        assert data["company_name"] == "Acme Labs"
        assert data["website"] == "https://acme.test"

        mine = client.get("/businesses/me", headers=business_headers).json()
        assert mine["industry"] == "Fintech"

    def test_job_seekers_have_no_business_profile(self, client, seeker_headers):
        response = client.put("/businesses/me", json={"company_name": "Me Inc"}, headers=seeker_headers)
        assert response.status_code == 403

    def test_public_business_lookup(self, client, business_headers, seeker_headers, business_id):
        client.put("/businesses/me", json={"company_name": "Acme Labs"}, headers=business_headers)
        response = client.get(f"/businesses/{business_id}", headers=seeker_headers)
        assert response.status_code == 200
        assert response.json()["company_name"] == "Acme Labs"

    def test_missing_business(self, client, seeker_headers):
        assert client.get("/businesses/unknown", headers=seeker_headers).status_code == 404


class TestProfileRoutes:
    """Tests for job seeker profile endpoints."""

    def test_save_profile_dedupes_skills(self, client, seeker_headers, seeker_id):
        def echo(db, user_id, data):
            return {**data, "id": user_id}

        with patch("app.routes.profiles.upsert_profile", new_callable=AsyncMock) as mock_upsert:
            mock_upsert.side_effect = echo
            response = client.put(
                "/profiles/me",
                json={
                    "first_name": "Ada",
                    "skills": [
                        {"skill": "Python", "level": "Expert"},
                        {"skill": "python", "level": "Beginner"},
                        {"skill": "SQL"},
                    ],
                },
                headers=seeker_headers,
            )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == seeker_id
        assert data["skills"] == [
            {"skill": "Python", "level": "Expert"},
            {"skill": "SQL", "level": "Intermediate"},
        ]

        saved = mock_upsert.call_args.args[2]
        assert saved["email"] == f"{seeker_id.lower()}@example.com"
        assert "updated_at" in saved
        assert len(saved["skills"]) == 2

    def test_invalid_skill_level(self, client, seeker_headers):
        response = client.put(
            "/profiles/me",
            json={"skills": [{"skill": "Python", "level": "Guru"}]},
            headers=seeker_headers,
        )
        assert response.status_code == 422

    def test_save_failure(self, client, seeker_headers):
        with patch("app.routes.profiles.upsert_profile", new_callable=AsyncMock) as mock_upsert:
            mock_upsert.return_value = None
            response = client.put("/profiles/me", json={"bio": "Hi"}, headers=seeker_headers)
        assert response.status_code == 500

    def test_get_profile(self, client, seeker_headers, seeker_id):
        row = {"id": seeker_id, "first_name": "Ada", "skills": ["Go", {"name": "Rust"}]}
        with patch("app.routes.profiles.get_profile", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = row
            response = client.get("/profiles/me", headers=seeker_headers)

        assert response.status_code == 200
        assert response.json()["skills"] == [
            {"skill": "Go", "level": "Intermediate"},
            {"skill": "Rust", "level": "Intermediate"},
        ]

    def test_get_profile_skips_blank_stored_skills(self, client, seeker_headers, seeker_id):
        row = {"id": seeker_id, "skills": [{"skill": ""}, "  ", "Go", {"name": "go"}]}
        with patch("app.routes.profiles.get_profile", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = row
            response = client.get("/profiles/me", headers=seeker_headers)

        assert response.status_code == 200
        assert response.json()["skills"] == [{"skill": "Go", "level": "Intermediate"}]

    def test_get_missing_profile(self, client, seeker_headers):
        with patch("app.routes.profiles.get_profile", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = None
            response = client.get("/profiles/me", headers=seeker_headers)
        assert response.status_code == 404
