import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import delete
from typing import List, Optional
from sqlalchemy.orm import selectinload, attributes

from balltalk.core.clock import utcnow
from balltalk.services.database import get_db
from balltalk.services.song_service import SongService
from balltalk.models.playlist import Playlist
from balltalk.models.playlist_song import playlist_song
from balltalk.schemas.playlist import PlaylistCreate, PlaylistResponse, PlaylistUpdate
from balltalk.core.exceptions import NotFoundException
from balltalk.core.security import get_current_user, get_current_user_optional
from balltalk.models.user import User

router = APIRouter()

@router.post("/playlists/", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED)
async def create_playlist(playlist_data: PlaylistCreate, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Create new playlist, automatically assigning it to the logged-in user
    db_playlist = Playlist(
        title=playlist_data.title,
        description=playlist_data.description or "",
        user_id=current_user.id,
        is_public=True if playlist_data.is_public is None else playlist_data.is_public
    )

    db.add(db_playlist)
    await db.commit()
    await db.refresh(db_playlist)

    # A new playlist has no songs; setting the relationship avoids a lazy load on serialization.
    attributes.set_committed_value(db_playlist, "songs", [])

    return db_playlist

@router.get("/playlists/", response_model=List[PlaylistResponse])
async def list_playlists(db: AsyncSession = Depends(get_db), current_user: Optional[User] = Depends(get_current_user_optional)):
    query = select(Playlist).options(selectinload(Playlist.songs))
    if current_user:
        # If user is logged in, show their playlists (public and private) and all other public playlists
        query = query.where(
            (Playlist.is_public == True) | (Playlist.user_id == current_user.id)  # noqa: E712
        )
    else:
        # If user is not logged in, only show public playlists
        query = query.where(Playlist.is_public == True)  # noqa: E712

    result = await db.execute(query.order_by(Playlist.created_at.desc()))
    playlists = result.scalars().unique().all()
    return playlists

@router.get("/playlists/{playlist_id}", response_model=PlaylistResponse)
async def get_playlist(playlist_id: uuid.UUID, db: AsyncSession = Depends(get_db), current_user: Optional[User] = Depends(get_current_user_optional)):
    query = select(Playlist).where(Playlist.id == playlist_id).options(selectinload(Playlist.songs))
    result = await db.execute(query)
    playlist = result.scalar_one_or_none()

    if playlist is None:
        raise NotFoundException("Playlist", playlist_id)

    # Check privacy
    if not playlist.is_public:
        if not current_user or playlist.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to view this playlist"
            )

    return playlist

@router.get("/users/{user_id}/playlists/", response_model=List[PlaylistResponse])
async def get_user_playlists(user_id: uuid.UUID, db: AsyncSession = Depends(get_db), current_user: Optional[User] = Depends(get_current_user_optional)):
    query = select(Playlist).where(Playlist.user_id == user_id).options(selectinload(Playlist.songs))
    if not current_user or current_user.id != user_id:
        query = query.where(Playlist.is_public == True)  # noqa: E712
    result = await db.execute(query.order_by(Playlist.created_at.desc()))
    playlists = result.scalars().unique().all()
    return playlists

@router.patch("/playlists/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(playlist_id: uuid.UUID, playlist_data: PlaylistUpdate, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Get existing playlist with its songs pre-loaded for the response
    result = await db.execute(
        select(Playlist).where(Playlist.id == playlist_id).options(selectinload(Playlist.songs))
    )
    playlist = result.scalar_one_or_none()
    if playlist is None:
        raise NotFoundException("Playlist", playlist_id)

    # Check if the current user is the owner of the playlist
    if playlist.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to update this playlist"
        )

    # Update fields if provided
    update_data = playlist_data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if value is not None:
            setattr(playlist, key, value)
    playlist.updated_at = utcnow()

    await db.commit()
    # No refresh needed, the in-memory object is up-to-date and fully loaded.
    return playlist

@router.delete("/playlists/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_playlist(playlist_id: uuid.UUID, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    result = await db.execute(select(Playlist).where(Playlist.id == playlist_id))
    playlist = result.scalar_one_or_none()
    if not playlist:
        raise NotFoundException("Playlist", playlist_id)

    # Check if the current user is the owner of the playlist
    if playlist.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this playlist"
        )

    await db.execute(delete(playlist_song).where(playlist_song.c.playlist_id == playlist_id))
    await db.delete(playlist)
    await db.commit()

@router.post("/playlists/{playlist_id}/songs/{song_id}", response_model=PlaylistResponse)
async def add_song_to_playlist(
    playlist_id: uuid.UUID,
    song_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Get playlist with its songs pre-loaded for the response model
    result = await db.execute(
        select(Playlist).where(Playlist.id == playlist_id).options(selectinload(Playlist.songs))
    )
    playlist = result.scalar_one_or_none()
    if not playlist:
        raise NotFoundException("Playlist", playlist_id)

    # Check ownership
    if playlist.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")

    # The song has to exist and be visible to the playlist owner
    song = await SongService(db).get_song_for(song_id, current_user)

    # Add song to playlist if not already present
    if song not in playlist.songs:
        playlist.songs.append(song)
        playlist.updated_at = utcnow()
        await db.commit()
        # No refresh needed, the in-memory object is up-to-date and fully loaded.

    return playlist


@router.delete("/playlists/{playlist_id}/songs/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_song_from_playlist(
    playlist_id: uuid.UUID,
    song_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Get playlist with its songs pre-loaded
    result = await db.execute(
        select(Playlist).where(Playlist.id == playlist_id).options(selectinload(Playlist.songs))
    )
    playlist = result.scalar_one_or_none()
    if not playlist:
        raise NotFoundException("Playlist", playlist_id)

    # Check ownership
    if playlist.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")

    # Find and remove the song
    song_to_remove = next((s for s in playlist.songs if s.id == song_id), None)
    if song_to_remove:
        playlist.songs.remove(song_to_remove)
        playlist.updated_at = utcnow()
        await db.commit()
    # Removing a song that is not there is a no-op
