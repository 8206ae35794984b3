from pydantic import BaseModel, ConfigDict
from typing import Any, Optional
from uuid import UUID
from datetime import datetime

from balltalk.models.notification import NotificationType

class NotificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    sender_id: UUID
    type: NotificationType
    share_id: UUID
    track_id: UUID
    message: Optional[str] = None
    is_read: bool
    timestamp: datetime
    data: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)

class MarkAllReadResponse(BaseModel):
    updated: int
