from sqlalchemy import Column, String, ForeignKey, Boolean, DateTime, Text, Uuid
from sqlalchemy.orm import relationship
from balltalk.core.clock import utcnow
from balltalk.models.playlist_song import playlist_song
import uuid

from balltalk.services.database import Base

class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, default="", nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    songs = relationship(
        "Song",
        secondary=playlist_song,
        order_by=playlist_song.c.added_at,
        back_populates="playlists",
        passive_deletes=True
    )
