from pydantic import BaseModel
from typing import Optional, List
from uuid import UUID
from .song import SongResponse

class PlaylistBase(BaseModel):
    title: str
    description: Optional[str] = ""
    is_public: Optional[bool] = True

class PlaylistCreate(PlaylistBase):
    pass  # No additional fields needed for creation

class PlaylistUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None

class PlaylistResponse(PlaylistBase):
    id: UUID
    user_id: UUID
    songs: List[SongResponse] = []

    class Config:
        from_attributes = True  # Allows Pydantic to convert SQLAlchemy models to JSON
