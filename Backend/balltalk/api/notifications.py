import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from balltalk.services.database import get_db
from balltalk.services.track_sharing_service import TrackSharingService
from balltalk.schemas.notification import NotificationResponse, MarkAllReadResponse
from balltalk.models.user import User
from balltalk.core.security import get_current_user

router = APIRouter()


@router.get("/notifications/", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Share notifications for the current user, newest first"""
    return await TrackSharingService(db).get_notifications(current_user.id, unread_only, limit)

@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_as_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    updated = await TrackSharingService(db).mark_all_notifications_as_read(current_user.id)
    return {"updated": updated}

@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_as_read(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await TrackSharingService(db).mark_notification_as_read(notification_id, current_user.id)
