import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, Uuid

from balltalk.core.clock import ensure_utc, utcnow
from balltalk.services.database import Base

class UserRole(str, enum.Enum):
    ATHLETE = "athlete"
    FAN = "fan"
    ADMIN = "admin"

class VerificationStatus(str, enum.Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class SubscriptionTier(str, enum.Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    VIP = "vip"

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, unique=True, nullable=False)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default=UserRole.FAN.value, nullable=False)

    # Profile
    display_name = Column(String(255), nullable=True)
    photo_url = Column(String, nullable=True)
    bio = Column(Text, nullable=True)

    # Athlete-specific fields
    sport = Column(String(100), nullable=True)
    league = Column(String(100), nullable=True)
    team = Column(String(100), nullable=True)
    position = Column(String(100), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    verification_status = Column(String(20), default=VerificationStatus.NONE.value, nullable=False)

    # Fan-specific fields
    favorite_athletes = Column(JSON, default=list, nullable=False)
    favorite_leagues = Column(JSON, default=list, nullable=False)
    favorite_teams = Column(JSON, default=list, nullable=False)

    subscription_tier = Column(String(20), default=SubscriptionTier.FREE.value, nullable=False)
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def has_active_subscription(self, moment=None) -> bool:
        """A paid tier counts until subscription_expires_at passes; no expiry means open-ended."""
        if self.subscription_tier == SubscriptionTier.FREE.value:
            return False
        if self.subscription_expires_at is None:
            return True
        return ensure_utc(self.subscription_expires_at) > (moment or utcnow())
