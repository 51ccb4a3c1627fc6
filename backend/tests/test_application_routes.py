"""Tests for application, acceptance and contract routes."""

import pytest


@pytest.fixture
def application(client, seeker_headers, task):
    response = client.post(
        "/applications",
        json={"task_id": task["task_id"], "message": "I have built three marketplaces"},
        headers=seeker_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestApplyRoutes:
    """Tests for applying and listing applications."""

    def test_apply(self, application, task, seeker_id):
        assert application["task_id"] == task["task_id"]
        assert application["project_id"] == task["project_id"]
        assert application["user_id"] == seeker_id
        assert application["status"] == "pending"
        assert application["accepted_business"] is False
        assert application["accepted_jobseeker"] is False

    def test_duplicate_application(self, client, seeker_headers, task, application):
        response = client.post(
            "/applications", json={"task_id": task["task_id"]}, headers=seeker_headers
        )
        assert response.status_code == 409

    def test_apply_to_missing_task(self, client, seeker_headers):
        response = client.post("/applications", json={"task_id": "nope"}, headers=seeker_headers)
        assert response.status_code == 404

    def test_business_cannot_apply_to_own_project(self, client, business_headers, task):
        response = client.post(
            "/applications", json={"task_id": task["task_id"]}, headers=business_headers
        )
        assert response.status_code == 400

    def test_apply_to_closed_task(self, client, business_headers, seeker_headers, project, task):
        client.post(
            f"/projects/{project['project_id']}/tasks/{task['task_id']}/close",
            headers=business_headers,
        )
        response = client.post(
            "/applications", json={"task_id": task["task_id"]}, headers=seeker_headers
        )
        assert response.status_code == 400
        assert "not accepting" in response.json()["detail"]

    def test_list_mine(self, client, seeker_headers, other_seeker_headers, application):
        mine = client.get("/applications/mine", headers=seeker_headers).json()
        assert mine["total"] == 1

        others = client.get("/applications/mine", headers=other_seeker_headers).json()
        assert others["total"] == 0

    def test_list_for_project(self, client, business_headers, seeker_headers, project, application):
        response = client.get(
            f"/applications/projects/{project['project_id']}", headers=business_headers
        )
        assert response.status_code == 200
        assert response.json()["total"] == 1

        response = client.get(
            f"/applications/projects/{project['project_id']}", headers=seeker_headers
        )
        assert response.status_code == 403

    def test_list_for_business(self, client, business_headers, application):
        response = client.get("/applications/business?status=pending", headers=business_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_get_application_visibility(
        self, client, business_headers, seeker_headers, other_seeker_headers, application
    ):
        url = f"/applications/{application['job_app_id']}"
        assert client.get(url, headers=seeker_headers).status_code == 200
        assert client.get(url, headers=business_headers).status_code == 200
        assert client.get(url, headers=other_seeker_headers).status_code == 403


class TestStatusRoutes:
    """Tests for withdraw, reject, negotiation and discourse."""

    def test_withdraw(self, client, seeker_headers, application):
        response = client.post(
            f"/applications/{application['job_app_id']}/withdraw",
            json={"reason": "Took another role"},
            headers=seeker_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "withdrawn"
        assert data["notes"] == "Took another role"

    def test_withdraw_requires_reason(self, client, seeker_headers, application):
        response = client.post(
            f"/applications/{application['job_app_id']}/withdraw",
            json={"reason": ""},
            headers=seeker_headers,
        )
        assert response.status_code == 422

    def test_only_applicant_can_withdraw(self, client, business_headers, application):
        response = client.post(
            f"/applications/{application['job_app_id']}/withdraw",
            json={"reason": "No"},
            headers=business_headers,
        )
        assert response.status_code == 403

    def test_reject_then_accept_fails(self, client, business_headers, application):
        url = f"/applications/{application['job_app_id']}"
        response = client.post(f"{url}/reject", json={"reason": "Not a fit"}, headers=business_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

        response = client.post(f"{url}/accept", headers=business_headers)
        assert response.status_code == 400

    def test_move_to_negotiation(self, client, business_headers, application):
        response = client.patch(
            f"/applications/{application['job_app_id']}/status",
            json={"status": "negotiation"},
            headers=business_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["application"]["status"] == "negotiation"
        assert data["accepted_job"] is None

    def test_status_cannot_be_set_to_rejected(self, client, business_headers, application):
        response = client.patch(
            f"/applications/{application['job_app_id']}/status",
            json={"status": "rejected"},
            headers=business_headers,
        )
        assert response.status_code == 422

    def test_add_discourse(self, client, business_headers, seeker_headers, application):
        url = f"/applications/{application['job_app_id']}/discourse"
        client.post(url, json={"message": "Can you start Monday?"}, headers=business_headers)
        response = client.post(url, json={"message": "Yes"}, headers=seeker_headers)
        assert response.status_code == 200
        lines = response.json()["task_discourse"].splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("Business: Can you start Monday?")
        assert lines[1].endswith("Job seeker: Yes")


class TestAcceptRoutes:
    """Tests for the mutual acceptance handshake."""

    def test_business_accept_alone_creates_nothing(self, client, business_headers, application):
        response = client.post(
            f"/applications/{application['job_app_id']}/accept", headers=business_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["application"]["accepted_business"] is True
        assert data["application"]["status"] == "pending"
        assert data["accepted_job"] is None

    def test_mutual_acceptance_creates_accepted_job(self, accepted):
        assert accepted["application"]["status"] == "accepted"
        assert accepted["accepted_job"]["equity_agreed"] == 5
        assert accepted["accepted_job"]["jobs_equity_allocated"] == 0
        assert accepted["accepted_job"]["work_contract_status"] == "pending"

    def test_job_seeker_can_accept_first(self, client, business_headers, seeker_headers, application):
        url = f"/applications/{application['job_app_id']}/accept"
        first = client.post(url, headers=seeker_headers).json()
        assert first["accepted_job"] is None
        assert first["application"]["accepted_jobseeker"] is True

        second = client.post(url, headers=business_headers).json()
        assert second["accepted_job"]["equity_agreed"] == 5

    def test_acceptance_is_idempotent(self, client, business_headers, accepted):
        job_app_id = accepted["application"]["job_app_id"]
        again = client.post(f"/applications/{job_app_id}/accept", headers=business_headers).json()
        assert again["accepted_job"]["id"] == accepted["accepted_job"]["id"]

    def test_acceptance_closes_task(self, client, business_headers, project, accepted):
        tasks = client.get(f"/projects/{project['project_id']}/tasks", headers=business_headers).json()
        assert tasks["tasks"][0]["status"] == "closed"
        assert tasks["tasks"][0]["task_status"] == "in_progress"

    def test_acceptance_rejects_other_applicants(
        self, client, business_headers, seeker_headers, other_seeker_headers, task
    ):
        other = client.post(
            "/applications", json={"task_id": task["task_id"]}, headers=other_seeker_headers
        ).json()
        mine = client.post(
            "/applications", json={"task_id": task["task_id"]}, headers=seeker_headers
        ).json()
        client.post(f"/applications/{mine['job_app_id']}/accept", headers=business_headers)
        client.post(f"/applications/{mine['job_app_id']}/accept", headers=seeker_headers)

        response = client.get(f"/applications/{other['job_app_id']}", headers=other_seeker_headers)
        assert response.json()["status"] == "rejected"
        assert response.json()["notes"] == "Position filled"

    def test_accepted_job_lookup(self, client, seeker_headers, accepted, application=None):
        job_app_id = accepted["application"]["job_app_id"]
        response = client.get(f"/applications/{job_app_id}/accepted-job", headers=seeker_headers)
        assert response.status_code == 200
        assert response.json()["id"] == accepted["accepted_job"]["id"]

    def test_accepted_job_lookup_before_acceptance(self, client, seeker_headers, application):
        response = client.get(
            f"/applications/{application['job_app_id']}/accepted-job", headers=seeker_headers
        )
        assert response.status_code == 404


class TestContractRoutes:
    """Tests for contract management on accepted jobs."""

    def test_contract_requires_acceptance(self, client, business_headers, application):
        response = client.post(
            f"/applications/{application['job_app_id']}/contract",
            json={"document_url": "https://files.example.com/contract.pdf"},
            headers=business_headers,
        )
        assert response.status_code == 409

    def test_attach_and_sign(self, client, business_headers, seeker_headers, accepted):
        url = f"/applications/{accepted['application']['job_app_id']}/contract"
        response = client.post(
            url,
            json={"document_url": "https://files.example.com/contract.pdf"},
            headers=business_headers,
        )
        assert response.status_code == 200
        assert response.json()["work_contract_status"] == "sent"
        assert response.json()["document_url"] == "https://files.example.com/contract.pdf"

        # Only the job seeker signs
        assert client.post(f"{url}/sign", headers=business_headers).status_code == 403

        response = client.post(f"{url}/sign", headers=seeker_headers)
        assert response.status_code == 200
        assert response.json()["work_contract_status"] == "signed"

        # Signed contracts can no longer be declined or replaced
        response = client.post(f"{url}/decline", json={"reason": "Changed my mind"}, headers=seeker_headers)
        assert response.status_code == 400
        response = client.post(
            url, json={"document_url": "https://files.example.com/v2.pdf"}, headers=business_headers
        )
        assert response.status_code == 400

    def test_decline_and_resend(self, client, business_headers, seeker_headers, accepted):
        url = f"/applications/{accepted['application']['job_app_id']}/contract"
        client.post(url, json={"document_url": "https://files.example.com/v1.pdf"}, headers=business_headers)

        response = client.post(f"{url}/decline", json={"reason": "Vesting too long"}, headers=seeker_headers)
        assert response.status_code == 200
        assert response.json()["work_contract_status"] == "declined"
        assert response.json()["accepted_discourse"] == "Vesting too long"

        response = client.post(
            url, json={"document_url": "https://files.example.com/v2.pdf"}, headers=business_headers
        )
        assert response.status_code == 200
        assert response.json()["work_contract_status"] == "sent"

    def test_sign_before_sent(self, client, seeker_headers, accepted):
        url = f"/applications/{accepted['application']['job_app_id']}/contract/sign"
        assert client.post(url, headers=seeker_headers).status_code == 400
