"""
SubTrack Backend: User SQLAlchemy Model
========================================

What:  ORM model representing the `users` table.
Who:   Used by AuthService for registration/login and by Alembic.

Table Design:
    - UUID primary key: non-sequential, so ids cannot be enumerated
    - email: unique, stored lower-cased (login is case-insensitive)
    - password_hash: passlib hash string, never serialized to clients
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from subtrack.database import Base


class User(Base):
    """An account that owns subscriptions."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        return value.strip().lower()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
