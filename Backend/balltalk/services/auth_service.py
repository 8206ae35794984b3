import logging
import uuid
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from balltalk.core.clock import utcnow
from balltalk.core.config import settings
from balltalk.core.exceptions import AuthError, NotFoundException
from balltalk.core.security import create_access_token, get_password_hash, verify_password
from balltalk.models.user import User, UserRole, SubscriptionTier
from balltalk.schemas.user import UserCreate, SubscriptionUpdate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Validate the address syntax and return its normalized form."""
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise AuthError('auth/invalid-email')


class AuthService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def sign_up(self, user_data: UserCreate) -> User:
        """Create an account. New users start unverified on the free tier."""
        email = normalize_email(user_data.email)
        if len(user_data.password) < settings.MIN_PASSWORD_LENGTH:
            raise AuthError('auth/weak-password')

        if await self.check_user_exists(email):
            raise AuthError('auth/email-already-in-use')

        result = await self.db.execute(select(User).where(User.username == user_data.username))
        if result.scalar_one_or_none():
            raise AuthError('auth/username-already-in-use')

        user = User(
            username=user_data.username,
            email=email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            display_name=user_data.display_name or user_data.username,
            is_verified=False,
            subscription_tier=SubscriptionTier.FREE.value
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Created {user.role} account {user.id} ({user.username})")
        return user

    async def sign_in(self, email: str, password: str) -> str:
        """Check credentials and issue a bearer token."""
        user = await self.get_user_by_email(email)
        if user is None:
            raise AuthError('auth/user-not-found')
        if not verify_password(password, user.password_hash):
            logger.warning(f"Failed sign-in for user {user.id}")
            raise AuthError('auth/wrong-password')
        return create_access_token({"sub": str(user.id), "role": user.role})

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def check_user_exists(self, email: str) -> bool:
        return await self.get_user_by_email(email) is not None

    async def get_all_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def update_user_role(self, user_id: uuid.UUID, role: UserRole) -> User:
        user = await self.get_user(user_id)
        user.role = UserRole(role).value
        user.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"User {user_id} role set to {user.role}")
        return user

    async def update_subscription(self, user_id: uuid.UUID, data: SubscriptionUpdate) -> User:
        user = await self.get_user(user_id)
        user.subscription_tier = SubscriptionTier(data.subscription_tier).value
        user.subscription_expires_at = data.subscription_expires_at
        user.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(user)
        return user
