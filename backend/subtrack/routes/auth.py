"""
SubTrack Backend: Auth Route Handlers
======================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
How:   Thin wrappers over AuthService. Register and login both return a
       bearer token the client sends on every /api/subscriptions call.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from subtrack.database import get_db_session
from subtrack.dependencies import get_current_user_id
from subtrack.schemas.common import ErrorResponse
from subtrack.schemas.user import AuthResponse, CurrentUserResponse, UserLogin, UserRegister
from subtrack.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid input or e-mail taken", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db=db, data=payload)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange e-mail and password for a token",
)
async def login(
    payload: UserLogin,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db=db, data=payload)


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
    summary="Profile of the authenticated user",
)
async def me(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUserResponse:
    return await auth_service.get_profile(db=db, user_id=user_id)
