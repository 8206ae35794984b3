from sqlalchemy import Table, Column, ForeignKey, Uuid
from balltalk.services.database import Base

# One row per (user, song); the song's like_count follows this table.
song_like = Table(
    'song_likes',
    Base.metadata,
    Column('user_id', Uuid(as_uuid=True), ForeignKey('users.id'), primary_key=True),
    Column('song_id', Uuid(as_uuid=True), ForeignKey('songs.id'), primary_key=True)
)
