"""Tests for the local storage provider."""

import uuid

import pytest

from balltalk.core.config import settings
from balltalk.services.storage import LocalStorageProvider


@pytest.fixture
def provider(tmp_path):
    return LocalStorageProvider(str(tmp_path / "blobs"), "/media/")


class TestLocalStorageProvider:
    """Test local blob storage."""

    async def test_upload_and_delete(self, provider):
        url = await provider.upload_bytes("songs/a/b/audio.mp3", b"abc", "audio/mpeg")
        assert url == "/media/songs/a/b/audio.mp3"
        assert await provider.exists("songs/a/b/audio.mp3")

        assert await provider.delete("songs/a/b/audio.mp3") is True
        assert not await provider.exists("songs/a/b/audio.mp3")

    async def test_upload_replaces(self, provider):
        await provider.upload_bytes("k.bin", b"old")
        await provider.upload_bytes("k.bin", b"new")
        assert (provider.base_path / "k.bin").read_bytes() == b"new"

    async def test_delete_missing(self, provider):
        assert await provider.delete("nothing/here.mp3") is False

    async def test_rejects_keys_outside_root(self, provider):
        with pytest.raises(ValueError):
            await provider.upload_bytes("../escape.mp3", b"x")


class TestMediaMount:
    """Test the static media mount."""

    async def test_files_are_served_by_url_without_login(self, client):
        # Access control happens where file URLs are handed out, not on the files themselves
        provider = LocalStorageProvider(settings.STORAGE_ROOT, settings.MEDIA_URL)
        url = await provider.upload_bytes(f"songs/{uuid.uuid4()}/audio.mp3", b"ID3 mounted", "audio/mpeg")

        response = await client.get(url)
        assert response.status_code == 200
        assert response.content == b"ID3 mounted"
