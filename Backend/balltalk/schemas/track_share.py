from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional
from uuid import UUID
from datetime import datetime

from balltalk.models.track_share import SharePermission, ShareStatus, ActivityType

class TrackShareCreate(BaseModel):
    track_id: UUID
    recipient_id: UUID
    permissions: List[SharePermission] = Field(min_length=1)
    message: Optional[str] = None
    expires_at: Optional[datetime] = None

class TrackShareUpdate(BaseModel):
    # track_id, owner_id and recipient_id are fixed once a share exists
    permissions: Optional[List[SharePermission]] = Field(default=None, min_length=1)
    message: Optional[str] = None
    expires_at: Optional[datetime] = None

class ShareReply(BaseModel):
    status: ShareStatus
    message: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_is_an_answer(cls, value: ShareStatus) -> ShareStatus:
        if value not in (ShareStatus.ACCEPTED, ShareStatus.DECLINED):
            raise ValueError("status must be 'accepted' or 'declined'")
        return value

class TrackShareOut(BaseModel):
    id: UUID
    track_id: UUID
    owner_id: UUID
    recipient_id: UUID
    permissions: List[SharePermission]
    message: Optional[str] = None
    status: ShareStatus
    expires_at: Optional[datetime] = None
    is_expired: bool
    created_at: datetime
    updated_at: datetime
    last_accessed_at: Optional[datetime] = None
    access_count: int = 0

    model_config = ConfigDict(from_attributes=True)

class ShareReplyOut(BaseModel):
    id: UUID
    share_id: UUID
    recipient_id: UUID
    status: ShareStatus
    message: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class AccessLocation(BaseModel):
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None

class AccessCreate(BaseModel):
    device_info: Optional[str] = None
    ip_address: Optional[str] = None
    location: Optional[AccessLocation] = None

class AccessOut(BaseModel):
    id: UUID
    share_id: UUID
    user_id: UUID
    accessed_at: datetime
    ip_address: Optional[str] = None
    device_info: Optional[str] = None
    location: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)

class ActivityCreate(BaseModel):
    activity_type: ActivityType
    details: Optional[dict[str, Any]] = None

class ActivityOut(BaseModel):
    id: UUID
    share_id: UUID
    track_id: UUID
    user_id: UUID
    activity_type: ActivityType
    timestamp: datetime
    details: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)

class CommentCreate(BaseModel):
    text: str = Field(min_length=1)
    is_private: bool = False
    parent_id: Optional[UUID] = None
    mentions: List[UUID] = []
    timestamp_position: Optional[float] = Field(default=None, ge=0)

class CommentOut(BaseModel):
    id: UUID
    share_id: UUID
    track_id: UUID
    user_id: UUID
    text: str
    timestamp: datetime
    is_private: bool
    parent_id: Optional[UUID] = None
    mentions: List[UUID] = []
    timestamp_position: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)
