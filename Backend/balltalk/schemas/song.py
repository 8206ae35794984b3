from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from balltalk.models.song import SongVisibility

class SongBase(BaseModel):
    title: str
    genre: str
    description: Optional[str] = None
    visibility: SongVisibility = SongVisibility.PUBLIC

class SongUpdate(BaseModel):
    title: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[SongVisibility] = None
    duration: Optional[float] = Field(default=None, ge=0)

class SongResponse(SongBase):
    id: UUID
    artist_id: UUID
    file_url: str
    cover_art_url: Optional[str] = None
    duration: float
    play_count: int
    like_count: int
    comment_count: int
    release_date: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class SongCommentCreate(BaseModel):
    text: str = Field(min_length=1)

class SongCommentResponse(BaseModel):
    id: UUID
    song_id: UUID
    user_id: UUID
    text: str
    timestamp: datetime
    likes: int = 0

    model_config = ConfigDict(from_attributes=True)
