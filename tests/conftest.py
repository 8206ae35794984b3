"""Shared fixtures: a throwaway SQLite database per test and an HTTP client over the app."""

import os
import tempfile
import uuid

# Settings are read at import time, so the environment has to be ready first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="balltalk-media-")
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from main import app
from balltalk.core.security import get_password_hash
from balltalk.models.song import Song, SongVisibility
from balltalk.models.user import User, UserRole
from balltalk.services.database import Base, get_db
from balltalk.services.storage import LocalStorageProvider, get_storage

PASSWORD = "secret123"


@pytest.fixture
async def engine(tmp_path):
    """Create a temporary database with every table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'balltalk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path):
    return LocalStorageProvider(str(tmp_path / "media"), "/media")


@pytest.fixture
async def client(session_factory, storage):
    """HTTP client talking to the app, wired to the temporary database and storage."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Sign up through the API and return the user plus auth headers."""
    async def _signup(username: str, role: str = "fan", password: str = PASSWORD) -> dict:
        email = f"{username}@balltalk.app"
        response = await client.post(
            "/api/auth/signup",
            json={"username": username, "email": email, "password": password, "role": role},
        )
        assert response.status_code == 201, response.text
        user = response.json()

        response = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        user["headers"] = {"Authorization": f"Bearer {response.json()['access_token']}"}
        return user

    return _signup


@pytest.fixture
async def athlete(signup):
    return await signup("jordan", role="athlete")


@pytest.fixture
async def fan(signup):
    return await signup("courtside")


@pytest.fixture
async def other_fan(signup):
    return await signup("bleachers")


@pytest.fixture
async def admin(signup, session_factory):
    """A fan promoted to admin directly in the database."""
    user = await signup("commissioner")
    async with session_factory() as session:
        db_user = await session.get(User, uuid.UUID(user["id"]))
        db_user.role = UserRole.ADMIN.value
        await session.commit()
    user["role"] = UserRole.ADMIN.value
    return user


@pytest.fixture
def upload_song(client):
    """Upload a song through the API and return its JSON."""
    async def _upload(headers: dict, title: str = "Warmup", genre: str = "hiphop", visibility: str = "public", cover: bool = False) -> dict:
        files = {"audio_file": ("warmup.mp3", b"ID3 fake audio bytes", "audio/mpeg")}
        if cover:
            files["cover_art"] = ("cover.jpg", b"fake jpeg bytes", "image/jpeg")
        response = await client.post(
            "/api/songs/",
            headers=headers,
            data={"title": title, "genre": genre, "visibility": visibility, "duration": "182.5"},
            files=files,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _upload


# Service-level fixtures that skip the HTTP layer

@pytest.fixture
def make_user(db):
    async def _make_user(username: str, role: UserRole = UserRole.FAN) -> User:
        user = User(
            username=username,
            email=f"{username}@balltalk.app",
            password_hash=get_password_hash(PASSWORD),
            role=role.value,
            display_name=username,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_song(db):
    async def _make_song(artist: User, title: str = "Warmup", visibility: SongVisibility = SongVisibility.PUBLIC) -> Song:
        song = Song(
            artist_id=artist.id,
            title=title,
            genre="hiphop",
            file_url=f"/media/songs/{artist.id}/{title}/audio.mp3",
            visibility=visibility.value,
        )
        db.add(song)
        await db.commit()
        await db.refresh(song)
        return song

    return _make_song
