import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from balltalk.core.clock import utcnow
from balltalk.core.exceptions import ConflictError, ForbiddenError, NotFoundException
from balltalk.models.user import User, UserRole, VerificationStatus
from balltalk.models.verification import AthleteVerification
from balltalk.schemas.verification import VerificationCreate

logger = logging.getLogger(__name__)


class VerificationService:
    """Athlete verification requests and their admin review."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def submit(self, user: User, data: VerificationCreate) -> AthleteVerification:
        if user.role != UserRole.ATHLETE.value:
            raise ForbiddenError("Only athletes can request verification")
        if user.is_verified:
            raise ConflictError(f"User {user.id} is already verified")

        result = await self.db.execute(
            select(AthleteVerification).where(
                AthleteVerification.user_id == user.id,
                AthleteVerification.status == VerificationStatus.PENDING.value
            )
        )
        if result.scalars().first():
            raise ConflictError("A verification request is already pending")

        verification = AthleteVerification(
            user_id=user.id,
            full_name=data.full_name,
            sport=data.sport,
            league=data.league,
            team=data.team,
            document_urls=list(data.document_urls),
            status=VerificationStatus.PENDING.value
        )
        self.db.add(verification)
        user.verification_status = VerificationStatus.PENDING.value
        user.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(verification)
        logger.info(f"Verification {verification.id} submitted by {user.id}")
        return verification

    async def get(self, verification_id: uuid.UUID) -> AthleteVerification:
        verification = await self.db.get(AthleteVerification, verification_id)
        if verification is None:
            raise NotFoundException("Verification", verification_id)
        return verification

    async def get_latest_for_user(self, user_id: uuid.UUID) -> Optional[AthleteVerification]:
        result = await self.db.execute(
            select(AthleteVerification)
            .where(AthleteVerification.user_id == user_id)
            .order_by(AthleteVerification.submitted_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_requests(
        self,
        status: VerificationStatus = VerificationStatus.PENDING,
        limit: int = 50
    ) -> List[AthleteVerification]:
        result = await self.db.execute(
            select(AthleteVerification)
            .where(AthleteVerification.status == VerificationStatus(status).value)
            .order_by(AthleteVerification.submitted_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def approve(self, verification_id: uuid.UUID, reviewer: User, notes: Optional[str] = None) -> AthleteVerification:
        return await self._review(verification_id, reviewer, VerificationStatus.APPROVED, notes)

    async def reject(self, verification_id: uuid.UUID, reviewer: User, notes: Optional[str] = None) -> AthleteVerification:
        return await self._review(verification_id, reviewer, VerificationStatus.REJECTED, notes)

    async def _review(
        self,
        verification_id: uuid.UUID,
        reviewer: User,
        status: VerificationStatus,
        notes: Optional[str]
    ) -> AthleteVerification:
        verification = await self.get(verification_id)
        if verification.status != VerificationStatus.PENDING.value:
            raise ConflictError(f"Verification {verification_id} is already {verification.status}")

        user = await self.db.get(User, verification.user_id)
        if user is None:
            raise NotFoundException("User", verification.user_id)

        now = utcnow()
        verification.status = status.value
        verification.reviewed_at = now
        verification.reviewed_by = reviewer.id
        verification.notes = notes or f"Verification {status.value} by admin"

        user.verification_status = status.value
        user.is_verified = status == VerificationStatus.APPROVED
        if user.is_verified:
            # The reviewed request is the source of truth for athlete details.
            user.sport = verification.sport
            user.league = verification.league or user.league
            user.team = verification.team or user.team
        user.updated_at = now

        await self.db.commit()
        await self.db.refresh(verification)
        logger.info(f"Verification {verification_id} {status.value} by {reviewer.id}")
        return verification
