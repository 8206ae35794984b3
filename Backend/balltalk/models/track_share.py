import enum
import uuid
import datetime
from typing import Iterable, Optional
from sqlalchemy import String, ForeignKey, DateTime, Integer, Text, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from balltalk.core.clock import utcnow, ensure_utc
from balltalk.services.database import Base

class SharePermission(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"
    REMIX = "remix"
    DOWNLOAD = "download"
    FULL = "full"

class ShareStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REVOKED = "revoked"

# Statuses a share can still move out of.
OPEN_STATUSES = (ShareStatus.PENDING.value, ShareStatus.ACCEPTED.value)

class ActivityType(str, enum.Enum):
    VIEW = "view"
    PLAY = "play"
    DOWNLOAD = "download"
    EDIT = "edit"
    REMIX = "remix"
    COMMENT = "comment"

# Permission a recipient needs for each activity. None means any grant will do.
ACTIVITY_PERMISSIONS = {
    ActivityType.VIEW: None,
    ActivityType.PLAY: None,
    ActivityType.COMMENT: None,
    ActivityType.DOWNLOAD: SharePermission.DOWNLOAD,
    ActivityType.EDIT: SharePermission.EDIT,
    ActivityType.REMIX: SharePermission.REMIX,
}


def normalize_permissions(permissions: Iterable) -> list[str]:
    """Deduplicate permissions, keeping first-seen order, as plain strings."""
    seen: list[str] = []
    for permission in permissions:
        value = SharePermission(permission).value
        if value not in seen:
            seen.append(value)
    return seen


class TrackShare(Base):
    __tablename__ = "track_shares"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Fixed at creation
    track_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("songs.id"), index=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True)
    recipient_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True)

    permissions: Mapped[list] = mapped_column(JSON, default=list)
    message: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default=ShareStatus.PENDING.value, index=True)
    expires_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Access tracking
    last_accessed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))
    access_count: Mapped[int] = mapped_column(Integer, default=0)

    @property
    def is_expired(self) -> bool:
        return self.expired_at(utcnow())

    def expired_at(self, moment: datetime.datetime) -> bool:
        expires_at = ensure_utc(self.expires_at)
        return expires_at is not None and expires_at < moment

    def is_participant(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.owner_id, self.recipient_id)

    def other_party(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.recipient_id if user_id == self.owner_id else self.owner_id

    def has_permission(self, permission: SharePermission) -> bool:
        granted = set(self.permissions or [])
        return SharePermission.FULL.value in granted or SharePermission(permission).value in granted

    def allows(self, user_id: uuid.UUID, activity: ActivityType) -> bool:
        """Whether user_id may perform activity on the shared track."""
        if user_id == self.owner_id:
            return True
        if user_id != self.recipient_id or not self.permissions:
            return False
        required: Optional[SharePermission] = ACTIVITY_PERMISSIONS[ActivityType(activity)]
        return required is None or self.has_permission(required)


class TrackShareResponse(Base):
    """The recipient's answer to a share, written once."""
    __tablename__ = "track_share_responses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    share_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("track_shares.id"), index=True)
    recipient_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"))
    status: Mapped[str] = mapped_column(String(20))
    message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class SharedTrackAccess(Base):
    __tablename__ = "track_share_accesses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    share_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("track_shares.id"), index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"))
    accessed_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    device_info: Mapped[str | None] = mapped_column(String(255))
    location: Mapped[dict | None] = mapped_column(JSON)  # country / region / city


class SharedTrackActivity(Base):
    __tablename__ = "track_share_activities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    share_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("track_shares.id"), index=True)
    track_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("songs.id"))
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"))
    activity_type: Mapped[str] = mapped_column(String(20))
    timestamp: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    details: Mapped[dict | None] = mapped_column(JSON)


class SharedTrackComment(Base):
    __tablename__ = "track_share_comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    share_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("track_shares.id"), index=True)
    track_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("songs.id"))
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"))
    text: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # Private comments are visible only to the share owner and the commenter.
    is_private: Mapped[bool] = mapped_column(default=False)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("track_share_comments.id"))
    mentions: Mapped[list] = mapped_column(JSON, default=list)
    timestamp_position: Mapped[float | None] = mapped_column()  # seconds into the track
