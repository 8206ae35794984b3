import uuid
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from balltalk.services.database import get_db
from balltalk.services.song_service import SongService
from balltalk.services.storage import StorageProvider, get_storage
from balltalk.schemas.song import SongResponse, SongUpdate, SongCommentCreate, SongCommentResponse
from balltalk.models.song import SongVisibility
from balltalk.models.user import User
from balltalk.core.security import get_current_user, get_current_user_optional


logger = logging.getLogger(__name__)

router = APIRouter()


async def get_song_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
) -> SongService:
    return SongService(db, storage)


# Static routes first
@router.post("/songs/", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
async def upload_song(
    title: str = Form(...),
    genre: str = Form(...),
    description: Optional[str] = Form(None),
    duration: float = Form(0, ge=0),
    visibility: SongVisibility = Form(SongVisibility.PUBLIC),
    audio_file: UploadFile = File(...),
    cover_art: Optional[UploadFile] = File(None),
    song_service: SongService = Depends(get_song_service),
    current_user: User = Depends(get_current_user)
):
    """Upload a new song with its audio file and optional cover art"""
    audio = await audio_file.read()
    cover = await cover_art.read() if cover_art is not None else None
    return await song_service.upload_song(
        current_user,
        title=title,
        genre=genre,
        audio=audio,
        cover_art=cover,
        description=description,
        duration=duration,
        visibility=visibility,
        audio_content_type=audio_file.content_type,
        cover_content_type=cover_art.content_type if cover_art is not None else None
    )

@router.get("/songs/genre/{genre}", response_model=List[SongResponse])
async def list_songs_by_genre(
    genre: str,
    limit: int = Query(20, ge=1, le=100),
    song_service: SongService = Depends(get_song_service)
):
    """Public songs of a genre, newest first"""
    return await song_service.get_songs_by_genre(genre, limit)

@router.get("/users/{artist_id}/songs/", response_model=List[SongResponse])
async def list_artist_songs(
    artist_id: uuid.UUID,
    song_service: SongService = Depends(get_song_service),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await song_service.get_songs_by_artist(artist_id, current_user)

# Dynamic routes after static ones
@router.get("/songs/{song_id}", response_model=SongResponse)
async def get_song(
    song_id: uuid.UUID,
    song_service: SongService = Depends(get_song_service),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await song_service.get_song_for(song_id, current_user)

@router.patch("/songs/{song_id}", response_model=SongResponse)
async def update_song(
    song_id: uuid.UUID,
    song_data: SongUpdate,
    song_service: SongService = Depends(get_song_service),
    current_user: User = Depends(get_current_user)
):
    return await song_service.update_song(song_id, current_user, song_data)

@router.delete("/songs/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_song(
    song_id: uuid.UUID,
    song_service: SongService = Depends(get_song_service),
    current_user: User = Depends(get_current_user)
):
    await song_service.delete_song(song_id, current_user)

@router.post("/songs/{song_id}/play", response_model=SongResponse)
async def record_play(
    song_id: uuid.UUID,
    song_service: SongService = Depends(get_song_service),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    await song_service.get_song_for(song_id, current_user)
    return await song_service.record_play(song_id)

@router.post("/songs/{song_id}/like", response_model=SongResponse)
async def like_song(
    song_id: uuid.UUID,
    song_service: SongService = Depends(get_song_service),
    current_user: User = Depends(get_current_user)
):
    await song_service.get_song_for(song_id, current_user)
    return await song_service.like_song(song_id, current_user)

@router.delete("/songs/{song_id}/like", response_model=SongResponse)
async def unlike_song(
    song_id: uuid.UUID,
    song_service: SongService = Depends(get_song_service),
    current_user: User = Depends(get_current_user)
):
    return await song_service.unlike_song(song_id, current_user)

@router.post("/songs/{song_id}/comments", response_model=SongCommentResponse, status_code=status.HTTP_201_CREATED)
async def add_song_comment(
    song_id: uuid.UUID,
    comment_data: SongCommentCreate,
    song_service: SongService = Depends(get_song_service),
    current_user: User = Depends(get_current_user)
):
    await song_service.get_song_for(song_id, current_user)
    return await song_service.add_comment(song_id, current_user, comment_data.text)

@router.get("/songs/{song_id}/comments", response_model=List[SongCommentResponse])
async def list_song_comments(
    song_id: uuid.UUID,
    song_service: SongService = Depends(get_song_service),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    await song_service.get_song_for(song_id, current_user)
    return await song_service.get_song_comments(song_id)
