"""Tests for athlete verification requests and admin review."""

import pytest

REQUEST = {"full_name": "Jordan Hoops", "sport": "Basketball", "league": "NBA", "team": "Chicago Bulls"}


@pytest.fixture
async def submitted(client, athlete):
    response = await client.post(
        "/api/verification/", headers=athlete["headers"], json={**REQUEST, "document_urls": ["/media/docs/id.pdf"]}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestSubmit:
    """Test submitting a request."""

    async def test_submit_marks_user_pending(self, client, athlete, submitted):
        assert submitted["status"] == "pending"
        assert submitted["document_urls"] == ["/media/docs/id.pdf"]

        me = (await client.get("/api/users/me", headers=athlete["headers"])).json()
        assert me["verification_status"] == "pending"
        assert me["is_verified"] is False

        response = await client.get("/api/verification/me", headers=athlete["headers"])
        assert response.json()["id"] == submitted["id"]

    async def test_fans_cannot_submit(self, client, fan):
        response = await client.post("/api/verification/", headers=fan["headers"], json=REQUEST)
        assert response.status_code == 403

    async def test_one_pending_request_at_a_time(self, client, athlete, submitted):
        response = await client.post("/api/verification/", headers=athlete["headers"], json=REQUEST)
        assert response.status_code == 409

    async def test_no_request_yet(self, client, athlete):
        response = await client.get("/api/verification/me", headers=athlete["headers"])
        assert response.status_code == 404


class TestReview:
    """Test admin review."""

    async def test_admin_lists_pending(self, client, admin, submitted):
        response = await client.get("/api/verification/", headers=admin["headers"])
        assert [v["id"] for v in response.json()] == [submitted["id"]]

        response = await client.get("/api/verification/", headers=admin["headers"], params={"status": "approved"})
        assert response.json() == []

    async def test_approve(self, client, admin, athlete, submitted):
        response = await client.post(
            f"/api/verification/{submitted['id']}/approve", headers=admin["headers"], json={"notes": "Checked ID"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["reviewed_by"] == admin["id"]
        assert response.json()["notes"] == "Checked ID"

        me = (await client.get("/api/users/me", headers=athlete["headers"])).json()
        assert me["is_verified"] is True
        assert me["verification_status"] == "approved"
        assert me["team"] == "Chicago Bulls"

    async def test_reject_without_notes(self, client, admin, athlete, submitted):
        response = await client.post(f"/api/verification/{submitted['id']}/reject", headers=admin["headers"])
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert response.json()["notes"] == "Verification rejected by admin"

        me = (await client.get("/api/users/me", headers=athlete["headers"])).json()
        assert me["is_verified"] is False
        assert me["verification_status"] == "rejected"

        # A rejected athlete may try again
        response = await client.post("/api/verification/", headers=athlete["headers"], json=REQUEST)
        assert response.status_code == 201

    async def test_review_only_once(self, client, admin, submitted):
        await client.post(f"/api/verification/{submitted['id']}/approve", headers=admin["headers"])
        response = await client.post(f"/api/verification/{submitted['id']}/reject", headers=admin["headers"])
        assert response.status_code == 409

    async def test_verified_athlete_cannot_resubmit(self, client, admin, athlete, submitted):
        await client.post(f"/api/verification/{submitted['id']}/approve", headers=admin["headers"])
        response = await client.post("/api/verification/", headers=athlete["headers"], json=REQUEST)
        assert response.status_code == 409

    async def test_non_admin_cannot_review(self, client, athlete, submitted):
        response = await client.post(f"/api/verification/{submitted['id']}/approve", headers=athlete["headers"])
        assert response.status_code == 403
        response = await client.get("/api/verification/", headers=athlete["headers"])
        assert response.status_code == 403
