"""
SubTrack Backend: Auth Service
===============================

What:  Registration, credential checks and JWT access tokens.
How:   passlib CryptContext for password hashes, python-jose for signing
       and verifying HS256 tokens whose `sub` claim is the user id.
Who:   Called by routes/auth.py and by the `get_current_user_id`
       dependency that guards every subscription route.

Token format:
    {"sub": "<user uuid>", "iat": <issued>, "exp": <expiry>}
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subtrack.config import settings
from subtrack.exceptions import AuthenticationError, ConflictError, DatabaseError
from subtrack.models.user import User
from subtrack.schemas.user import (
    AuthResponse,
    CurrentUserResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)

logger = logging.getLogger(__name__)

# pbkdf2_sha256 has no native dependency
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Token is not valid"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Signs a JWT for the given user id."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """
    Resolves a bearer token to the user id it was issued for.

    Raises:
        AuthenticationError: bad signature, expired, or missing/garbled `sub`
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return UUID(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise AuthenticationError(INVALID_TOKEN)


class AuthService:
    """
    Account operations.

    Error Handling:
        Duplicate e-mail → ConflictError (400)
        Wrong e-mail or password → AuthenticationError (401), same message
        for both so the endpoint does not reveal which accounts exist
        Driver failures → DatabaseError (500)
    """

    async def _get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, data: UserRegister) -> AuthResponse:
        try:
            if await self._get_by_email(db, data.email) is not None:
                raise ConflictError("User already exists", context={"email": data.email})

            user = User(
                name=data.name,
                email=data.email,
                password_hash=hash_password(data.password),
            )
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same e-mail
            raise ConflictError("User already exists", context={"email": data.email})
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User registered: %s", user.id)
        return AuthResponse(
            message="User registered successfully",
            token=create_access_token(user.id),
            user=UserResponse.model_validate(user),
        )

    async def login(self, db: AsyncSession, data: UserLogin) -> AuthResponse:
        try:
            user = await self._get_by_email(db, data.email)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None or not verify_password(data.password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)

        return AuthResponse(
            message="Login successful",
            token=create_access_token(user.id),
            user=UserResponse.model_validate(user),
        )

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> CurrentUserResponse:
        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error loading user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})

        # Token outlived its account
        if user is None:
            raise AuthenticationError(INVALID_TOKEN)
        return CurrentUserResponse(user=UserResponse.model_validate(user))


auth_service = AuthService()
