import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from balltalk.core.clock import utcnow
from balltalk.core.config import settings
from balltalk.core.exceptions import BadRequestError, ForbiddenError, NotFoundException
from balltalk.models.playlist_song import playlist_song
from balltalk.models.song import Song, SongVisibility
from balltalk.models.song_comment import SongComment
from balltalk.models.song_like import song_like
from balltalk.models.track_share import TrackShare
from balltalk.models.user import User, UserRole
from balltalk.schemas.song import SongUpdate
from balltalk.services.storage import StorageProvider
from balltalk.services.track_sharing_service import TrackSharingService

logger = logging.getLogger(__name__)

AUDIO_FILENAME = "audio.mp3"
COVER_FILENAME = "cover.jpg"


def song_storage_key(artist_id: uuid.UUID, song_id: uuid.UUID, filename: str) -> str:
    return f"songs/{artist_id}/{song_id}/{filename}"


class SongService:
    def __init__(self, db_session: AsyncSession, storage: Optional[StorageProvider] = None):
        self.db = db_session
        self.storage = storage

    async def upload_song(
        self,
        artist: User,
        title: str,
        genre: str,
        audio: bytes,
        cover_art: Optional[bytes] = None,
        description: Optional[str] = None,
        duration: float = 0,
        visibility: SongVisibility = SongVisibility.PUBLIC,
        audio_content_type: Optional[str] = None,
        cover_content_type: Optional[str] = None
    ) -> Song:
        """Store the audio (and optional cover art) and create the song record."""
        if artist.role not in (UserRole.ATHLETE.value, UserRole.ADMIN.value):
            raise ForbiddenError("Only athletes can upload songs")
        if not audio:
            raise BadRequestError("Audio file is empty")
        if not title.strip():
            raise BadRequestError("Title is required")

        song_id = uuid.uuid4()
        file_url = await self.storage.upload_bytes(
            song_storage_key(artist.id, song_id, AUDIO_FILENAME), audio, audio_content_type
        )
        cover_art_url = None
        if cover_art:
            cover_art_url = await self.storage.upload_bytes(
                song_storage_key(artist.id, song_id, COVER_FILENAME), cover_art, cover_content_type
            )

        now = utcnow()
        song = Song(
            id=song_id,
            artist_id=artist.id,
            title=title.strip(),
            description=description,
            genre=genre,
            file_url=file_url,
            cover_art_url=cover_art_url,
            duration=duration or 0,
            visibility=SongVisibility(visibility).value,
            play_count=0,
            like_count=0,
            comment_count=0,
            release_date=now,
            created_at=now,
            updated_at=now
        )
        self.db.add(song)
        await self.db.commit()
        await self.db.refresh(song)
        logger.info(f"Song {song.id} uploaded by {artist.id}")
        return song

    async def get_song(self, song_id: uuid.UUID) -> Song:
        song = await self.db.get(Song, song_id)
        if song is None:
            raise NotFoundException("Song", song_id)
        return song

    async def can_view(self, song: Song, viewer: Optional[User]) -> bool:
        if song.visibility == SongVisibility.PUBLIC.value:
            return True
        if viewer is None:
            return False
        if viewer.id == song.artist_id or viewer.is_admin:
            return True
        if song.visibility == SongVisibility.SUBSCRIBERS.value:
            return viewer.has_active_subscription()
        # Private songs are open to recipients of an accepted share.
        share = await TrackSharingService(self.db).get_active_share(song.id, viewer.id)
        return share is not None

    async def get_song_for(self, song_id: uuid.UUID, viewer: Optional[User]) -> Song:
        """Fetch a song the viewer is allowed to see. Hidden songs look missing."""
        song = await self.get_song(song_id)
        if not await self.can_view(song, viewer):
            raise NotFoundException("Song", song_id)
        return song

    async def get_songs_by_artist(self, artist_id: uuid.UUID, viewer: Optional[User] = None) -> List[Song]:
        result = await self.db.execute(
            select(Song)
            .where(Song.artist_id == artist_id)
            .order_by(Song.release_date.desc())
        )
        songs = result.scalars().all()
        return [song for song in songs if await self.can_view(song, viewer)]

    async def get_songs_by_genre(self, genre: str, limit: Optional[int] = None) -> List[Song]:
        result = await self.db.execute(
            select(Song)
            .where(Song.genre == genre, Song.visibility == SongVisibility.PUBLIC.value)
            .order_by(Song.release_date.desc())
            .limit(limit or settings.GENRE_SONGS_LIMIT)
        )
        return list(result.scalars().all())

    async def update_song(self, song_id: uuid.UUID, user: User, updates: SongUpdate) -> Song:
        song = await self.get_song(song_id)
        if song.artist_id != user.id:
            raise ForbiddenError("Not authorized to update this song")

        update_data = updates.model_dump(exclude_unset=True)
        if "visibility" in update_data and update_data["visibility"] is not None:
            update_data["visibility"] = SongVisibility(update_data["visibility"]).value
        for key, value in update_data.items():
            if value is not None:
                setattr(song, key, value)
        song.updated_at = utcnow()

        await self.db.commit()
        await self.db.refresh(song)
        return song

    async def delete_song(self, song_id: uuid.UUID, user: User) -> None:
        """Delete a song, its stored files and every row that points at it."""
        song = await self.get_song(song_id)
        if song.artist_id != user.id:
            raise ForbiddenError("Not authorized to delete this song")

        keys = await self._purge(song)
        await self.db.commit()
        # Files go only once the rows are gone for good
        await self.delete_files(keys)
        logger.info(f"Song {song_id} deleted by {user.id}")

    async def delete_songs_by_artist(self, artist_id: uuid.UUID) -> List[str]:
        """
        Remove every song row of an artist and return the storage keys of their files.
        The caller commits, then passes the keys to delete_files.
        """
        result = await self.db.execute(select(Song).where(Song.artist_id == artist_id))
        keys: List[str] = []
        for song in result.scalars().all():
            keys.extend(await self._purge(song))
        return keys

    async def delete_files(self, keys: List[str]) -> None:
        for key in keys:
            await self.storage.delete(key)

    async def _purge(self, song: Song) -> List[str]:
        keys = [song_storage_key(song.artist_id, song.id, AUDIO_FILENAME)]
        if song.cover_art_url:
            keys.append(song_storage_key(song.artist_id, song.id, COVER_FILENAME))

        await TrackSharingService(self.db).delete_shares(TrackShare.track_id == song.id)
        await self.db.execute(delete(song_like).where(song_like.c.song_id == song.id))
        await self.db.execute(delete(playlist_song).where(playlist_song.c.song_id == song.id))
        await self.db.execute(
            delete(SongComment)
            .where(SongComment.song_id == song.id)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(song)
        return keys

    async def record_play(self, song_id: uuid.UUID) -> Song:
        await self._bump(song_id, play_count=Song.play_count + 1)
        await self.db.commit()
        return await self._reload(song_id)

    async def like_song(self, song_id: uuid.UUID, user: User) -> Song:
        """Like a song. Liking twice is a no-op."""
        await self.get_song(song_id)
        result = await self.db.execute(
            select(song_like).where(song_like.c.song_id == song_id, song_like.c.user_id == user.id)
        )
        if result.first() is None:
            await self.db.execute(insert(song_like).values(song_id=song_id, user_id=user.id))
            await self._bump(song_id, like_count=Song.like_count + 1)
            await self.db.commit()
        return await self._reload(song_id)

    async def unlike_song(self, song_id: uuid.UUID, user: User) -> Song:
        await self.get_song(song_id)
        result = await self.db.execute(
            delete(song_like).where(song_like.c.song_id == song_id, song_like.c.user_id == user.id)
        )
        if result.rowcount:
            await self._bump(song_id, like_count=Song.like_count - 1)
            await self.db.commit()
        return await self._reload(song_id)

    async def add_comment(self, song_id: uuid.UUID, user: User, text: str) -> SongComment:
        await self.get_song(song_id)
        comment = SongComment(
            song_id=song_id,
            user_id=user.id,
            text=text,
            timestamp=utcnow(),
            likes=0
        )
        self.db.add(comment)
        await self._bump(song_id, comment_count=Song.comment_count + 1)
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def get_song_comments(self, song_id: uuid.UUID) -> List[SongComment]:
        result = await self.db.execute(
            select(SongComment)
            .where(SongComment.song_id == song_id)
            .order_by(SongComment.timestamp.desc())
        )
        return list(result.scalars().all())

    async def _bump(self, song_id: uuid.UUID, **values) -> None:
        # Counter updates happen in SQL so concurrent requests do not lose increments.
        await self.db.execute(
            update(Song)
            .where(Song.id == song_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    async def _reload(self, song_id: uuid.UUID) -> Song:
        song = await self.get_song(song_id)
        await self.db.refresh(song)
        return song
