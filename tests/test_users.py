"""Tests for user profile, role, subscription and account deletion endpoints."""

import uuid

from sqlalchemy import func
from sqlalchemy.future import select

from balltalk.models.song import Song
from balltalk.models.track_share import TrackShare


class TestProfile:
    """Test reading and editing profiles."""

    async def test_users_me(self, client, fan):
        response = await client.get("/api/users/me", headers=fan["headers"])
        assert response.status_code == 200
        assert response.json()["id"] == fan["id"]

    async def test_public_profile_hides_private_fields(self, client, athlete):
        response = await client.get(f"/api/users/{athlete['id']}")
        assert response.status_code == 200
        assert response.json()["username"] == "jordan"
        assert "email" not in response.json()
        assert "subscription_tier" not in response.json()

    async def test_missing_user(self, client):
        response = await client.get(f"/api/users/{uuid.uuid4()}")
        assert response.status_code == 404

    async def test_update_own_profile(self, client, athlete):
        response = await client.patch(
            f"/api/users/{athlete['id']}",
            headers=athlete["headers"],
            json={"bio": "Point guard who makes beats", "sport": "Basketball", "team": "Chicago Bulls"},
        )
        assert response.status_code == 200
        assert response.json()["bio"] == "Point guard who makes beats"
        assert response.json()["team"] == "Chicago Bulls"

    async def test_update_fan_favorites(self, client, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}",
            headers=fan["headers"],
            json={"favorite_teams": ["Chicago Bulls"], "favorite_leagues": ["NBA"]},
        )
        assert response.json()["favorite_teams"] == ["Chicago Bulls"]
        assert response.json()["favorite_athletes"] == []

    async def test_cannot_update_someone_else(self, client, fan, athlete):
        response = await client.patch(f"/api/users/{athlete['id']}", headers=fan["headers"], json={"bio": "hacked"})
        assert response.status_code == 403

    async def test_username_must_stay_unique(self, client, fan, athlete):
        response = await client.patch(
            f"/api/users/{fan['id']}", headers=fan["headers"], json={"username": athlete["username"]}
        )
        assert response.status_code == 400


class TestPassword:
    """Test password changes."""

    async def test_change_password(self, client, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}/password",
            headers=fan["headers"],
            json={"old_password": "secret123", "new_password": "newsecret456"},
        )
        assert response.status_code == 204

        response = await client.post("/api/auth/login", json={"email": fan["email"], "password": "newsecret456"})
        assert response.status_code == 200

    async def test_wrong_old_password(self, client, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}/password",
            headers=fan["headers"],
            json={"old_password": "guess", "new_password": "newsecret456"},
        )
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "auth/wrong-password"

    async def test_weak_new_password(self, client, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}/password",
            headers=fan["headers"],
            json={"old_password": "secret123", "new_password": "abc"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "auth/weak-password"


class TestRolesAndSubscriptions:
    """Test admin role changes and subscription updates."""

    async def test_admin_lists_users(self, client, admin, fan):
        response = await client.get("/api/users/", headers=admin["headers"])
        assert response.status_code == 200
        assert {u["username"] for u in response.json()} == {"commissioner", "courtside"}

    async def test_non_admin_cannot_list_users(self, client, fan):
        response = await client.get("/api/users/", headers=fan["headers"])
        assert response.status_code == 403

    async def test_admin_changes_role(self, client, admin, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}/role", headers=admin["headers"], json={"role": "athlete"}
        )
        assert response.status_code == 200
        assert response.json()["role"] == "athlete"

    async def test_fan_cannot_change_roles(self, client, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}/role", headers=fan["headers"], json={"role": "admin"}
        )
        assert response.status_code == 403

    async def test_update_subscription(self, client, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}/subscription",
            headers=fan["headers"],
            json={"subscription_tier": "premium", "subscription_expires_at": "2030-01-01T00:00:00Z"},
        )
        assert response.status_code == 200
        assert response.json()["subscription_tier"] == "premium"
        assert response.json()["subscription_expires_at"].startswith("2030-01-01")

    async def test_unknown_tier(self, client, fan):
        response = await client.patch(
            f"/api/users/{fan['id']}/subscription", headers=fan["headers"], json={"subscription_tier": "gold"}
        )
        assert response.status_code == 422


class TestDeleteAccount:
    """Test account deletion and its cascade."""

    async def test_delete_artist_removes_songs_and_shares(self, client, db, athlete, fan, upload_song):
        song = await upload_song(athlete["headers"])
        await client.post(
            "/api/shares/",
            headers=athlete["headers"],
            json={"track_id": song["id"], "recipient_id": fan["id"], "permissions": ["view"]},
        )

        response = await client.delete(f"/api/users/{athlete['id']}", headers=athlete["headers"])
        assert response.status_code == 204

        assert (await db.execute(select(func.count()).select_from(Song))).scalar_one() == 0
        assert (await db.execute(select(func.count()).select_from(TrackShare))).scalar_one() == 0
        response = await client.get(f"/api/users/{athlete['id']}")
        assert response.status_code == 404

    async def test_delete_fan_fixes_like_counts(self, client, athlete, fan, upload_song):
        song = await upload_song(athlete["headers"])
        await client.post(f"/api/songs/{song['id']}/like", headers=fan["headers"])
        await client.post(f"/api/songs/{song['id']}/comments", headers=fan["headers"], json={"text": "Fire"})

        response = await client.delete(f"/api/users/{fan['id']}", headers=fan["headers"])
        assert response.status_code == 204

        response = await client.get(f"/api/songs/{song['id']}")
        assert response.json()["like_count"] == 0
        assert response.json()["comment_count"] == 0

    async def test_cannot_delete_someone_else(self, client, athlete, fan):
        response = await client.delete(f"/api/users/{athlete['id']}", headers=fan["headers"])
        assert response.status_code == 403

    async def test_delete_artist_removes_files_after_commit(self, client, athlete, upload_song, storage):
        song = await upload_song(athlete["headers"], cover=True)
        audio_key = f"songs/{athlete['id']}/{song['id']}/audio.mp3"
        cover_key = f"songs/{athlete['id']}/{song['id']}/cover.jpg"
        assert await storage.exists(audio_key)

        response = await client.delete(f"/api/users/{athlete['id']}", headers=athlete["headers"])
        assert response.status_code == 204
        assert not await storage.exists(audio_key)
        assert not await storage.exists(cover_key)
