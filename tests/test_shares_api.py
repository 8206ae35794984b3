"""End-to-end tests for the track sharing endpoints."""

import datetime
import uuid

import pytest

from balltalk.models.track_share import TrackShare


@pytest.fixture
async def song(athlete, upload_song):
    return await upload_song(athlete["headers"], visibility="private")


@pytest.fixture
def share_song(client):
    async def _share(owner: dict, song: dict, recipient: dict, permissions=("view",), **extra) -> dict:
        response = await client.post(
            "/api/shares/",
            headers=owner["headers"],
            json={"track_id": song["id"], "recipient_id": recipient["id"], "permissions": list(permissions), **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _share


@pytest.fixture
async def accepted_share(client, athlete, fan, song, share_song):
    share = await share_song(athlete, song, fan, permissions=("view", "download"))
    response = await client.post(f"/api/shares/{share['id']}/respond", headers=fan["headers"], json={"status": "accepted"})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def expire_share(session_factory):
    """Push a share's expiry into the past, which the API itself refuses to do."""
    async def _expire(share: dict) -> None:
        async with session_factory() as session:
            db_share = await session.get(TrackShare, uuid.UUID(share["id"]))
            db_share.expires_at = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=1)
            await session.commit()

    return _expire


class TestCreateShare:
    """Test POST /api/shares/."""

    async def test_create(self, athlete, fan, song, share_song):
        expires_at = (datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(days=3)).isoformat()
        share = await share_song(athlete, song, fan, permissions=("view", "remix"), message="Hop on this", expires_at=expires_at)
        assert share["status"] == "pending"
        assert share["owner_id"] == athlete["id"]
        assert share["permissions"] == ["view", "remix"]
        assert share["is_expired"] is False
        assert share["access_count"] == 0

    async def test_unknown_permission(self, client, athlete, fan, song):
        response = await client.post(
            "/api/shares/",
            headers=athlete["headers"],
            json={"track_id": song["id"], "recipient_id": fan["id"], "permissions": ["own"]},
        )
        assert response.status_code == 422

    async def test_empty_permissions(self, client, athlete, fan, song):
        response = await client.post(
            "/api/shares/",
            headers=athlete["headers"],
            json={"track_id": song["id"], "recipient_id": fan["id"], "permissions": []},
        )
        assert response.status_code == 422

    async def test_sharing_someone_elses_song(self, client, fan, other_fan, song):
        response = await client.post(
            "/api/shares/",
            headers=fan["headers"],
            json={"track_id": song["id"], "recipient_id": other_fan["id"], "permissions": ["view"]},
        )
        assert response.status_code == 403

    async def test_duplicate(self, client, athlete, fan, song, share_song):
        await share_song(athlete, song, fan)
        response = await client.post(
            "/api/shares/",
            headers=athlete["headers"],
            json={"track_id": song["id"], "recipient_id": fan["id"], "permissions": ["full"]},
        )
        assert response.status_code == 409


class TestLifecycle:
    """Test responding to and revoking shares."""

    async def test_accept_then_revoke(self, client, athlete, fan, accepted_share):
        assert accepted_share["status"] == "accepted"
        response = await client.post(f"/api/shares/{accepted_share['id']}/revoke", headers=athlete["headers"])
        assert response.status_code == 200
        assert response.json()["status"] == "revoked"

        response = await client.post(f"/api/shares/{accepted_share['id']}/revoke", headers=athlete["headers"])
        assert response.status_code == 409

    async def test_respond_twice(self, client, fan, accepted_share):
        response = await client.post(
            f"/api/shares/{accepted_share['id']}/respond", headers=fan["headers"], json={"status": "declined"}
        )
        assert response.status_code == 409

    async def test_invalid_answer(self, client, athlete, fan, song, share_song):
        share = await share_song(athlete, song, fan)
        response = await client.post(
            f"/api/shares/{share['id']}/respond", headers=fan["headers"], json={"status": "revoked"}
        )
        assert response.status_code == 422

    async def test_owner_cannot_answer(self, client, athlete, fan, song, share_song):
        share = await share_song(athlete, song, fan)
        response = await client.post(
            f"/api/shares/{share['id']}/respond", headers=athlete["headers"], json={"status": "accepted"}
        )
        assert response.status_code == 403

    async def test_recipient_cannot_revoke(self, client, fan, accepted_share):
        response = await client.post(f"/api/shares/{accepted_share['id']}/revoke", headers=fan["headers"])
        assert response.status_code == 403

    async def test_update(self, client, athlete, fan, accepted_share):
        response = await client.patch(
            f"/api/shares/{accepted_share['id']}", headers=athlete["headers"], json={"permissions": ["full"]}
        )
        assert response.status_code == 200
        assert response.json()["permissions"] == ["full"]
        assert response.json()["recipient_id"] == fan["id"]

    async def test_get_share(self, client, athlete, fan, other_fan, accepted_share):
        for user in (athlete, fan):
            response = await client.get(f"/api/shares/{accepted_share['id']}", headers=user["headers"])
            assert response.status_code == 200
        response = await client.get(f"/api/shares/{accepted_share['id']}", headers=other_fan["headers"])
        assert response.status_code == 403
        response = await client.get(f"/api/shares/{uuid.uuid4()}", headers=fan["headers"])
        assert response.status_code == 404

    async def test_response_endpoint(self, client, athlete, fan, other_fan, song, share_song):
        share = await share_song(athlete, song, fan)
        response = await client.get(f"/api/shares/{share['id']}/response", headers=athlete["headers"])
        assert response.status_code == 404

        await client.post(
            f"/api/shares/{share['id']}/respond",
            headers=fan["headers"],
            json={"status": "accepted", "message": "Let's cook"},
        )
        for user in (athlete, fan):
            response = await client.get(f"/api/shares/{share['id']}/response", headers=user["headers"])
            assert response.status_code == 200
            assert response.json()["status"] == "accepted"
            assert response.json()["message"] == "Let's cook"
            assert response.json()["recipient_id"] == fan["id"]

        response = await client.get(f"/api/shares/{share['id']}/response", headers=other_fan["headers"])
        assert response.status_code == 403

    async def test_expired_share(self, client, athlete, fan, song, accepted_share, expire_share):
        assert (await client.get(f"/api/songs/{song['id']}", headers=fan["headers"])).status_code == 200
        await expire_share(accepted_share)

        response = await client.get(f"/api/shares/{accepted_share['id']}", headers=fan["headers"])
        assert response.json()["is_expired"] is True
        assert response.json()["status"] == "accepted"

        # The private song is hidden again once the share lapses
        assert (await client.get(f"/api/songs/{song['id']}", headers=fan["headers"])).status_code == 404
        response = await client.post(
            f"/api/shares/{accepted_share['id']}/activities", headers=fan["headers"], json={"activity_type": "play"}
        )
        assert response.status_code == 410


class TestListings:
    """Test share listings."""

    async def test_sent_received_and_recent(self, client, athlete, fan, other_fan, song, share_song, accepted_share):
        await share_song(athlete, song, other_fan)

        response = await client.get("/api/shares/sent", headers=athlete["headers"])
        assert len(response.json()) == 2
        response = await client.get("/api/shares/sent", headers=athlete["headers"], params={"status": "pending"})
        assert [s["recipient_id"] for s in response.json()] == [other_fan["id"]]

        response = await client.get("/api/shares/received", headers=fan["headers"])
        assert [s["id"] for s in response.json()] == [accepted_share["id"]]

        response = await client.get("/api/shares/recent", headers=athlete["headers"], params={"limit": 1})
        assert len(response.json()) == 1

    async def test_track_shares_owner_only(self, client, athlete, fan, song, accepted_share):
        response = await client.get(f"/api/songs/{song['id']}/shares", headers=athlete["headers"])
        assert [s["id"] for s in response.json()] == [accepted_share["id"]]
        response = await client.get(f"/api/songs/{song['id']}/shares", headers=fan["headers"])
        assert response.status_code == 403


class TestUsage:
    """Test access, activity and comments through the API."""

    async def test_access_defaults_ip_to_client(self, client, fan, accepted_share):
        response = await client.post(
            f"/api/shares/{accepted_share['id']}/access",
            headers=fan["headers"],
            json={"device_info": "Pixel 8", "location": {"country": "US", "city": "Chicago"}},
        )
        assert response.status_code == 201
        access = response.json()
        assert access["device_info"] == "Pixel 8"
        assert access["location"] == {"country": "US", "city": "Chicago"}
        assert access["ip_address"]

        response = await client.get(f"/api/shares/{accepted_share['id']}", headers=fan["headers"])
        assert response.json()["access_count"] == 1

    async def test_access_without_body(self, client, fan, accepted_share):
        response = await client.post(f"/api/shares/{accepted_share['id']}/access", headers=fan["headers"])
        assert response.status_code == 201

    async def test_access_to_pending_share(self, client, athlete, fan, song, share_song):
        share = await share_song(athlete, song, fan)
        response = await client.post(f"/api/shares/{share['id']}/access", headers=fan["headers"], json={})
        assert response.status_code == 409

    async def test_activity_permissions(self, client, fan, accepted_share):
        response = await client.post(
            f"/api/shares/{accepted_share['id']}/activities", headers=fan["headers"], json={"activity_type": "download"}
        )
        assert response.status_code == 201
        response = await client.post(
            f"/api/shares/{accepted_share['id']}/activities", headers=fan["headers"], json={"activity_type": "edit"}
        )
        assert response.status_code == 403

    async def test_revoked_share_blocks_usage(self, client, athlete, fan, accepted_share):
        await client.post(f"/api/shares/{accepted_share['id']}/revoke", headers=athlete["headers"])
        response = await client.post(
            f"/api/shares/{accepted_share['id']}/activities", headers=fan["headers"], json={"activity_type": "play"}
        )
        assert response.status_code == 409

    async def test_comments(self, client, athlete, fan, accepted_share):
        response = await client.post(
            f"/api/shares/{accepted_share['id']}/comments",
            headers=fan["headers"],
            json={"text": "Drop at 0:42 goes hard", "timestamp_position": 42, "mentions": [athlete["id"]]},
        )
        assert response.status_code == 201
        assert response.json()["mentions"] == [athlete["id"]]

        await client.post(
            f"/api/shares/{accepted_share['id']}/comments",
            headers=athlete["headers"],
            json={"text": "Mixing note", "is_private": True},
        )

        response = await client.get(f"/api/shares/{accepted_share['id']}/comments", headers=fan["headers"])
        assert [c["text"] for c in response.json()] == ["Drop at 0:42 goes hard"]
        response = await client.get(f"/api/shares/{accepted_share['id']}/comments", headers=athlete["headers"])
        assert len(response.json()) == 2
