import enum
import uuid
import datetime
from sqlalchemy import String, ForeignKey, DateTime, Text, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from balltalk.core.clock import utcnow
from balltalk.services.database import Base

class NotificationType(str, enum.Enum):
    SHARE_RECEIVED = "share_received"
    SHARE_ACCEPTED = "share_accepted"
    SHARE_DECLINED = "share_declined"
    SHARE_REVOKED = "share_revoked"
    TRACK_ACCESSED = "track_accessed"
    TRACK_COMMENTED = "track_commented"
    TRACK_EDITED = "track_edited"
    TRACK_REMIXED = "track_remixed"

class TrackShareNotification(Base):
    __tablename__ = "track_share_notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # The user being notified, and the one whose action triggered it.
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True)
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"))

    type: Mapped[str] = mapped_column(String(30))
    share_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("track_shares.id"), index=True)
    track_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("songs.id"))
    message: Mapped[str | None] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(default=False, index=True)
    timestamp: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    data: Mapped[dict | None] = mapped_column(JSON)
