"""
SubTrack Backend: Subscription SQLAlchemy Model
================================================

What:  ORM model representing the `subscriptions` table.
How:   Write-time rules live in `@validates` hooks on the model, so every
       insert and every partial update passes through the same checks no
       matter which service performs the write. `touch()` is the explicit
       pre-update step that refreshes `updated_at`.
Who:   Used by SubscriptionService for CRUD and by Alembic for schema management.

Table Design:
    - user_id: owner's id. Weak reference with no foreign key: deleting a user
      does not cascade, and rows never block on a missing account.
    - cost: NUMERIC(12, 2) so that monthly/yearly math stays in Decimal
    - billing_cycle / category: stored as short strings, checked against enums
    - is_active: soft-delete flag; False rows are invisible through the API
    - monthly_cost: derived at read time, never stored

    Index on (user_id, is_active, created_at):
        Matches the only list query: "active subscriptions of this user,
        newest first".
"""

import enum
import re
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from subtrack.database import Base
from subtrack.exceptions import ValidationError

MONTHS_PER_YEAR = 12
NOTES_MAX_LENGTH = 500
# NUMERIC(12, 2): ten integer digits, two decimals
COST_MAX_DIGITS = 12
COST_DECIMAL_PLACES = 2
COST_LIMIT = Decimal(10) ** (COST_MAX_DIGITS - COST_DECIMAL_PLACES)
CENT = Decimal("0.01")
DEFAULT_COLOR = "#6366f1"
HEX_COLOR_RE = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


class BillingCycle(str, enum.Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Category(str, enum.Enum):
    ENTERTAINMENT = "entertainment"
    PRODUCTIVITY = "productivity"
    FITNESS = "fitness"
    EDUCATION = "education"
    MUSIC = "music"
    NEWS = "news"
    CLOUD = "cloud"
    OTHER = "other"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def monthly_cost(cost: Decimal, billing_cycle: str) -> Decimal:
    """
    Normalizes a stored cost to a per-month amount.

    yearly  → cost / 12
    monthly → cost
    """
    if billing_cycle == BillingCycle.YEARLY.value:
        return Decimal(cost) / MONTHS_PER_YEAR
    return Decimal(cost)


class Subscription(Base):
    """
    A recurring charge tracked by one user.

    Lifecycle:
        1. Created active (is_active=True)
        2. Partially updated any number of times; each write calls touch()
        3. Soft-deleted: is_active=False, row retained, hidden from the API
    """

    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    cost: Mapped[Decimal] = mapped_column(
        Numeric(COST_MAX_DIGITS, COST_DECIMAL_PLACES),
        nullable=False,
    )

    billing_cycle: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BillingCycle.MONTHLY.value,
    )

    renewal_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    category: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=Category.OTHER.value,
    )

    color: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        default=DEFAULT_COLOR,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_subscriptions_cost_non_negative"),
        Index("idx_subscriptions_owner_active", "user_id", "is_active", "created_at"),
    )

    # ── Write-time validation ─────────────────────────────────────────────

    @validates("name")
    def _validate_name(self, key: str, value: Optional[str]) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValidationError("Please provide a subscription name", field="name")
        return cleaned

    @validates("cost")
    def _validate_cost(self, key: str, value) -> Decimal:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError("Please provide the cost", field="cost")
        if not amount.is_finite() or amount < 0:
            raise ValidationError("Cost must be a positive number", field="cost")
        if amount >= COST_LIMIT:
            raise ValidationError("Cost is too large", field="cost")
        if amount != amount.quantize(CENT):
            raise ValidationError("Cost cannot have more than 2 decimal places", field="cost")
        return amount

    @validates("billing_cycle")
    def _validate_billing_cycle(self, key: str, value) -> str:
        try:
            return BillingCycle(value).value
        except ValueError:
            raise ValidationError("Billing cycle must be monthly or yearly", field="billingCycle")

    @validates("category")
    def _validate_category(self, key: str, value) -> str:
        try:
            return Category(value).value
        except ValueError:
            raise ValidationError("Invalid category", field="category")

    @validates("color")
    def _validate_color(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not HEX_COLOR_RE.match(value):
            raise ValidationError("Please provide a valid hex color", field="color")
        return value

    @validates("notes")
    def _validate_notes(self, key: str, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > NOTES_MAX_LENGTH:
            raise ValidationError(
                f"Notes cannot exceed {NOTES_MAX_LENGTH} characters", field="notes"
            )
        return value

    # ── Derived values / hooks ────────────────────────────────────────────

    @property
    def monthly_cost(self) -> Decimal:
        return monthly_cost(self.cost, self.billing_cycle)

    def touch(self) -> None:
        """Refreshes updated_at; every mutating write calls this."""
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, name='{self.name}', "
            f"cost={self.cost}, cycle='{self.billing_cycle}', active={self.is_active})>"
        )
