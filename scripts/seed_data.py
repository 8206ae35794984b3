import sys
import os
import asyncio

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend')))

from balltalk.models.user import User, UserRole, VerificationStatus, SubscriptionTier
from balltalk.models.playlist import Playlist
from balltalk.core.security import get_password_hash
from balltalk.services.database import engine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

DEMO_PASSWORD = "balltalk123"

async def create_demo_data():
    # Create async session
    async_session = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        # Create demo users, one per role
        users = [
            User(
                username="admin",
                email="admin@balltalk.app",
                password_hash=get_password_hash(DEMO_PASSWORD),
                role=UserRole.ADMIN.value,
                display_name="BallTalk Admin",
            ),
            User(
                username="jordan_hoops",
                email="jordan@balltalk.app",
                password_hash=get_password_hash(DEMO_PASSWORD),
                role=UserRole.ATHLETE.value,
                display_name="Jordan Hoops",
                sport="Basketball",
                league="NBA",
                team="Chicago Bulls",
                position="Guard",
                is_verified=True,
                verification_status=VerificationStatus.APPROVED.value,
            ),
            User(
                username="courtside_fan",
                email="fan@balltalk.app",
                password_hash=get_password_hash(DEMO_PASSWORD),
                role=UserRole.FAN.value,
                display_name="Courtside Fan",
                favorite_athletes=["jordan_hoops"],
                favorite_leagues=["NBA"],
                favorite_teams=["Chicago Bulls"],
                subscription_tier=SubscriptionTier.PREMIUM.value,
            )
        ]
        session.add_all(users)
        await session.flush()

        # An empty playlist for the fan
        session.add(
            Playlist(
                title="Game Day",
                description="Warm-up tracks from my favorite athletes",
                user_id=users[2].id,
                is_public=True
            )
        )

        await session.commit()
        print(f"✅ Demo data created successfully! Every demo account uses the password '{DEMO_PASSWORD}'.")

if __name__ == "__main__":
    asyncio.run(create_demo_data())
