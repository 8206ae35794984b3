from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from balltalk.services.database import get_db
from balltalk.services.auth_service import AuthService
from balltalk.models.user import User
from balltalk.schemas.auth import LoginPayload, Token, EmailCheckResponse
from balltalk.schemas.user import UserCreate, UserResponse
from balltalk.core.security import get_current_user

router = APIRouter()

@router.post("/auth/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService(db).sign_up(user_data)


@router.post("/auth/login", response_model=Token)
async def login(payload: LoginPayload, db: AsyncSession = Depends(get_db)):
    access_token = await AuthService(db).sign_in(payload.email, payload.password)
    return Token(access_token=access_token)


@router.get("/auth/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    """
    Fetch the current logged-in user.
    """
    return current_user


@router.get("/auth/check-email", response_model=EmailCheckResponse)
async def check_email(email: str = Query(...), db: AsyncSession = Depends(get_db)):
    exists = await AuthService(db).check_user_exists(email)
    return EmailCheckResponse(email=email, exists=exists)
