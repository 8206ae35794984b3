import uuid
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from balltalk.services.database import get_db
from balltalk.services.song_service import SongService
from balltalk.services.track_sharing_service import TrackSharingService
from balltalk.schemas.track_share import (
    TrackShareCreate, TrackShareUpdate, TrackShareOut, ShareReply, ShareReplyOut,
    AccessCreate, AccessOut, ActivityCreate, ActivityOut, CommentCreate, CommentOut
)
from balltalk.models.track_share import ShareStatus
from balltalk.models.user import User
from balltalk.core.exceptions import ForbiddenError
from balltalk.core.security import get_current_user


logger = logging.getLogger(__name__)

router = APIRouter()


def get_sharing_service(db: AsyncSession = Depends(get_db)) -> TrackSharingService:
    return TrackSharingService(db)


@router.post("/shares/", response_model=TrackShareOut, status_code=status.HTTP_201_CREATED)
async def share_track(
    share_data: TrackShareCreate,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    """Share one of your tracks with another user"""
    return await sharing.share_track(
        track_id=share_data.track_id,
        owner_id=current_user.id,
        recipient_id=share_data.recipient_id,
        permissions=share_data.permissions,
        message=share_data.message,
        expires_at=share_data.expires_at
    )

@router.get("/shares/sent", response_model=List[TrackShareOut])
async def list_sent_shares(
    share_status: Optional[ShareStatus] = Query(None, alias="status"),
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.get_shares_by_owner(current_user.id, share_status)

@router.get("/shares/received", response_model=List[TrackShareOut])
async def list_received_shares(
    share_status: Optional[ShareStatus] = Query(None, alias="status"),
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.get_shares_by_recipient(current_user.id, share_status)

@router.get("/shares/recent", response_model=List[TrackShareOut])
async def list_recent_shares(
    limit: Optional[int] = Query(None, ge=1, le=100),
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.get_recent_shares(current_user.id, limit)

@router.get("/songs/{track_id}/shares", response_model=List[TrackShareOut])
async def list_track_shares(
    track_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    song = await SongService(db).get_song(track_id)
    if song.artist_id != current_user.id:
        raise ForbiddenError("Only the owner can list the shares of a track")
    return await sharing.get_shares_by_track(track_id)

@router.get("/shares/{share_id}", response_model=TrackShareOut)
async def get_share(
    share_id: uuid.UUID,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.get_share_for_user(share_id, current_user.id)

@router.patch("/shares/{share_id}", response_model=TrackShareOut)
async def update_share(
    share_id: uuid.UUID,
    share_data: TrackShareUpdate,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.update_share(share_id, current_user.id, share_data)

@router.post("/shares/{share_id}/revoke", response_model=TrackShareOut)
async def revoke_share(
    share_id: uuid.UUID,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.revoke_share(share_id, current_user.id)

@router.post("/shares/{share_id}/respond", response_model=TrackShareOut)
async def respond_to_share(
    share_id: uuid.UUID,
    reply: ShareReply,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    """Accept or decline a share you received"""
    return await sharing.respond_to_share(share_id, current_user.id, reply.status, reply.message)

@router.get("/shares/{share_id}/response", response_model=ShareReplyOut)
async def get_share_response(
    share_id: uuid.UUID,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.get_share_response(share_id, current_user.id)

@router.post("/shares/{share_id}/access", response_model=AccessOut, status_code=status.HTTP_201_CREATED)
async def record_access(
    share_id: uuid.UUID,
    request: Request,
    access_data: Optional[AccessCreate] = None,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    access_data = access_data or AccessCreate()
    ip_address = access_data.ip_address
    if ip_address is None and request.client is not None:
        ip_address = request.client.host
    location = access_data.location.model_dump(exclude_none=True) if access_data.location else None
    return await sharing.record_access(
        share_id,
        current_user.id,
        device_info=access_data.device_info,
        ip_address=ip_address,
        location=location
    )

@router.post("/shares/{share_id}/activities", response_model=ActivityOut, status_code=status.HTTP_201_CREATED)
async def record_activity(
    share_id: uuid.UUID,
    activity_data: ActivityCreate,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.record_activity(
        share_id, current_user.id, activity_data.activity_type, activity_data.details
    )

@router.post("/shares/{share_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    share_id: uuid.UUID,
    comment_data: CommentCreate,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.add_comment(
        share_id,
        current_user.id,
        comment_data.text,
        is_private=comment_data.is_private,
        parent_id=comment_data.parent_id,
        mentions=comment_data.mentions,
        timestamp_position=comment_data.timestamp_position
    )

@router.get("/shares/{share_id}/comments", response_model=List[CommentOut])
async def list_comments(
    share_id: uuid.UUID,
    sharing: TrackSharingService = Depends(get_sharing_service),
    current_user: User = Depends(get_current_user)
):
    return await sharing.get_comments(share_id, current_user.id)
