"""
SubTrack Backend: Auth Request/Response Schemas
================================================

What:  Contracts for POST /api/auth/register, POST /api/auth/login and
       GET /api/auth/me.
"""

import uuid
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from subtrack.schemas.common import CamelModel

PASSWORD_MIN_LENGTH = 6


class UserRegister(CamelModel):
    name: str = Field(max_length=100)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=128)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Name is required")
        return cleaned


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(CamelModel):
    """Public user profile; the password hash is never part of it."""
    id: uuid.UUID
    name: str
    email: str
    created_at: datetime


class AuthResponse(CamelModel):
    """Returned by register (201) and login (200)."""
    success: bool = True
    message: str
    token: str = Field(description="Bearer access token (JWT)")
    user: UserResponse


class CurrentUserResponse(CamelModel):
    success: bool = True
    user: UserResponse
