from pydantic import BaseModel, EmailStr, ConfigDict
from typing import Literal, List, Optional
from uuid import UUID
from datetime import datetime

from balltalk.models.user import UserRole, VerificationStatus, SubscriptionTier

class UserBase(BaseModel):
    username: str
    email: EmailStr

class UserCreate(UserBase):
    email: str  # syntax checked by the auth service so it can report auth/invalid-email
    password: str  # Raw password, will be hashed before storage
    # Admins are promoted by other admins, never at signup.
    role: Literal["athlete", "fan"] = "fan"
    display_name: Optional[str] = None

class UserUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    sport: Optional[str] = None
    league: Optional[str] = None
    team: Optional[str] = None
    position: Optional[str] = None
    favorite_athletes: Optional[List[str]] = None
    favorite_leagues: Optional[List[str]] = None
    favorite_teams: Optional[List[str]] = None


class UserPasswordUpdate(BaseModel):
    old_password: str
    new_password: str

class UserRoleUpdate(BaseModel):
    role: UserRole

class SubscriptionUpdate(BaseModel):
    subscription_tier: SubscriptionTier
    subscription_expires_at: Optional[datetime] = None

class UserResponse(UserBase):
    id: UUID
    role: UserRole
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    sport: Optional[str] = None
    league: Optional[str] = None
    team: Optional[str] = None
    position: Optional[str] = None
    favorite_athletes: List[str] = []
    favorite_leagues: List[str] = []
    favorite_teams: List[str] = []
    is_verified: bool
    verification_status: VerificationStatus
    subscription_tier: SubscriptionTier
    subscription_expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True  # Allows Pydantic to convert SQLAlchemy models to JSON


class UserPublicResponse(BaseModel):
    """Schema for publicly available user information."""
    id: UUID
    username: str
    role: UserRole
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    sport: Optional[str] = None
    team: Optional[str] = None
    is_verified: bool

    model_config = ConfigDict(from_attributes=True)
