import uuid
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Uuid

from balltalk.core.clock import utcnow
from balltalk.services.database import Base

class SongComment(Base):
    __tablename__ = "song_comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    song_id = Column(Uuid(as_uuid=True), ForeignKey("songs.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    likes = Column(Integer, default=0, nullable=False)
