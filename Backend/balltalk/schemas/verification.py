from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from balltalk.models.user import VerificationStatus

class VerificationCreate(BaseModel):
    full_name: str
    sport: str
    league: Optional[str] = None
    team: Optional[str] = None
    document_urls: List[str] = []

class VerificationReview(BaseModel):
    notes: Optional[str] = None

class VerificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    full_name: str
    sport: str
    league: Optional[str] = None
    team: Optional[str] = None
    document_urls: List[str] = []
    status: VerificationStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
