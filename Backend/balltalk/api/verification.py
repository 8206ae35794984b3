import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from balltalk.services.database import get_db
from balltalk.services.verification_service import VerificationService
from balltalk.schemas.verification import VerificationCreate, VerificationResponse, VerificationReview
from balltalk.models.user import User, VerificationStatus
from balltalk.core.exceptions import NotFoundException
from balltalk.core.security import get_current_user, require_admin

router = APIRouter()


@router.post("/verification/", response_model=VerificationResponse, status_code=status.HTTP_201_CREATED)
async def submit_verification(
    verification_data: VerificationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Ask an admin to verify the current athlete account"""
    return await VerificationService(db).submit(current_user, verification_data)

@router.get("/verification/me", response_model=VerificationResponse)
async def get_my_verification(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    verification = await VerificationService(db).get_latest_for_user(current_user.id)
    if verification is None:
        raise NotFoundException("Verification for user", current_user.id)
    return verification

@router.get("/verification/", response_model=List[VerificationResponse])
async def list_verifications(
    verification_status: VerificationStatus = Query(VerificationStatus.PENDING, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return await VerificationService(db).list_requests(verification_status, limit)

@router.post("/verification/{verification_id}/approve", response_model=VerificationResponse)
async def approve_verification(
    verification_id: uuid.UUID,
    review: Optional[VerificationReview] = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return await VerificationService(db).approve(verification_id, admin, review.notes if review else None)

@router.post("/verification/{verification_id}/reject", response_model=VerificationResponse)
async def reject_verification(
    verification_id: uuid.UUID,
    review: Optional[VerificationReview] = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return await VerificationService(db).reject(verification_id, admin, review.notes if review else None)
