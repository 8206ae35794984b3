from sqlalchemy import Table, Column, ForeignKey, DateTime, Uuid
from balltalk.core.clock import utcnow
from balltalk.services.database import Base

playlist_song = Table(
    'playlist_song',
    Base.metadata,
    Column('playlist_id', Uuid(as_uuid=True), ForeignKey('playlists.id', ondelete='CASCADE'), primary_key=True),
    Column('song_id', Uuid(as_uuid=True), ForeignKey('songs.id', ondelete='CASCADE'), primary_key=True),
    Column('added_at', DateTime(timezone=True), default=utcnow, nullable=False)
)
