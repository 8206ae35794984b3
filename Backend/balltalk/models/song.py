import enum
import uuid
from sqlalchemy import Column, String, Integer, Float, ForeignKey, DateTime, Text, Uuid
from sqlalchemy.orm import relationship

from balltalk.core.clock import utcnow
from balltalk.services.database import Base
from balltalk.models.playlist_song import playlist_song

class SongVisibility(str, enum.Enum):
    PUBLIC = "public"
    SUBSCRIBERS = "subscribers"
    PRIVATE = "private"

class Song(Base):
    __tablename__ = "songs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, unique=True, nullable=False)
    artist_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    genre = Column(String(100), nullable=False, index=True)

    # Blob references
    file_url = Column(String, nullable=False)
    cover_art_url = Column(String, nullable=True)
    duration = Column(Float, default=0, nullable=False)  # seconds

    visibility = Column(String(20), default=SongVisibility.PUBLIC.value, nullable=False)

    # Engagement counters
    play_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    comment_count = Column(Integer, default=0, nullable=False)

    release_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    playlists = relationship(
        "Playlist",
        secondary=playlist_song,
        back_populates="songs",
        passive_deletes=True
    )
