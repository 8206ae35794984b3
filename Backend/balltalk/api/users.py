import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_
from typing import List

from balltalk.services.database import get_db
from balltalk.services.auth_service import AuthService
from balltalk.services.song_service import SongService
from balltalk.services.storage import StorageProvider, get_storage
from balltalk.services.track_sharing_service import TrackSharingService
from balltalk.models.user import User
from balltalk.models.song import Song
from balltalk.models.song_like import song_like
from balltalk.models.song_comment import SongComment
from balltalk.models.playlist import Playlist
from balltalk.models.playlist_song import playlist_song
from balltalk.models.track_share import TrackShare
from balltalk.models.verification import AthleteVerification
from balltalk.schemas.user import (
    UserResponse, UserUpdate, UserPublicResponse, UserPasswordUpdate, UserRoleUpdate, SubscriptionUpdate
)
from balltalk.core.clock import utcnow
from balltalk.core.config import settings
from balltalk.core.security import get_password_hash, get_current_user, verify_password, require_admin
from balltalk.core.exceptions import NotFoundException, DuplicateError, AuthError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """
    Fetch the current logged-in user.
    """
    return current_user

@router.get("/users/", response_model=List[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    return await AuthService(db).get_all_users()

@router.get("/users/{user_id}", response_model=UserPublicResponse)
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundException("User", user_id)
    return user

@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(user_id: uuid.UUID, user_data: UserUpdate, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Check for authorization
    if current_user.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to update this user")

    # Get existing user
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundException("User", user_id)

    update_data = user_data.model_dump(exclude_unset=True)

    # Check username uniqueness if updating
    username = update_data.pop("username", None)
    if username and username != user.username:
        result = await db.execute(
            select(User).where(
                User.username == username,
                User.id != user_id
            )
        )
        if result.scalar_one_or_none():
            raise DuplicateError("Username", username)
        user.username = username

    # Check email uniqueness if updating
    email = update_data.pop("email", None)
    if email and email.lower() != user.email:
        email = email.lower()
        result = await db.execute(
            select(User).where(
                User.email == email,
                User.id != user_id
            )
        )
        if result.scalar_one_or_none():
            raise DuplicateError("Email", email)
        user.email = email

    # Remaining profile fields are copied as given
    for key, value in update_data.items():
        if value is not None:
            setattr(user, key, value)
    user.updated_at = utcnow()

    await db.commit()
    await db.refresh(user)
    return user


@router.patch("/users/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
async def update_user_password(
    user_id: uuid.UUID,
    password_data: UserPasswordUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Check for authorization: User can only change their own password
    if current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to update this user's password"
        )

    # Verify old password
    if not verify_password(password_data.old_password, current_user.password_hash):
        raise AuthError('auth/wrong-password')
    if len(password_data.new_password) < settings.MIN_PASSWORD_LENGTH:
        raise AuthError('auth/weak-password')

    # Hash and set new password
    current_user.password_hash = get_password_hash(password_data.new_password)
    current_user.updated_at = utcnow()
    await db.commit()


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: uuid.UUID,
    role_data: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return await AuthService(db).update_user_role(user_id, role_data.role)


@router.patch("/users/{user_id}/subscription", response_model=UserResponse)
async def update_subscription(
    user_id: uuid.UUID,
    subscription_data: SubscriptionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if current_user.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to change this subscription")
    return await AuthService(db).update_subscription(user_id, subscription_data)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    current_user: User = Depends(get_current_user)
):
    # Check for authorization
    if current_user.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this user")

    # First get the user
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundException("User", user_id)

    # Songs go first, taking their files, likes, comments and shares with them
    song_service = SongService(db, storage)
    keys = await song_service.delete_songs_by_artist(user_id)

    # Shares the user received on other artists' songs
    await TrackSharingService(db).delete_shares(
        or_(TrackShare.owner_id == user_id, TrackShare.recipient_id == user_id)
    )

    # Likes and comments left on other songs, keeping their counters right
    result = await db.execute(select(song_like.c.song_id).where(song_like.c.user_id == user_id))
    for song_id in result.scalars().all():
        await db.execute(update(Song).where(Song.id == song_id).values(like_count=Song.like_count - 1))
    await db.execute(delete(song_like).where(song_like.c.user_id == user_id))

    result = await db.execute(select(SongComment.song_id).where(SongComment.user_id == user_id))
    for song_id in result.scalars().all():
        await db.execute(update(Song).where(Song.id == song_id).values(comment_count=Song.comment_count - 1))
    await db.execute(delete(SongComment).where(SongComment.user_id == user_id))

    # Delete all playlists belonging to the user
    result = await db.execute(select(Playlist.id).where(Playlist.user_id == user_id))
    playlist_ids = list(result.scalars().all())
    if playlist_ids:
        await db.execute(delete(playlist_song).where(playlist_song.c.playlist_id.in_(playlist_ids)))
        await db.execute(delete(Playlist).where(Playlist.id.in_(playlist_ids)))

    await db.execute(delete(AthleteVerification).where(AthleteVerification.user_id == user_id))
    await db.execute(
        update(AthleteVerification)
        .where(AthleteVerification.reviewed_by == user_id)
        .values(reviewed_by=None)
    )

    # Now delete the user
    await db.delete(user)
    await db.commit()
    await song_service.delete_files(keys)
    logger.info(f"User {user_id} deleted")
    return  # Explicitly return None for clarity with 204 No Content
