import uuid
import datetime
from sqlalchemy import String, ForeignKey, DateTime, Text, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from balltalk.core.clock import utcnow
from balltalk.models.user import VerificationStatus
from balltalk.services.database import Base

class AthleteVerification(Base):
    __tablename__ = "athlete_verifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True)

    full_name: Mapped[str] = mapped_column(String(255))
    sport: Mapped[str] = mapped_column(String(100))
    league: Mapped[str | None] = mapped_column(String(100))
    team: Mapped[str | None] = mapped_column(String(100))
    document_urls: Mapped[list] = mapped_column(JSON, default=list)

    # Only pending/approved/rejected are used here; NONE belongs to the user record.
    status: Mapped[str] = mapped_column(String(20), default=VerificationStatus.PENDING.value, index=True)

    submitted_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    reviewed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"))
    notes: Mapped[str | None] = mapped_column(Text)
