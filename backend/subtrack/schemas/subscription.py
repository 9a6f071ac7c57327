"""
SubTrack Backend: Subscription Request/Response Schemas
========================================================

What:  Pydantic models defining the subscription API contract.
How:   FastAPI validates request bodies against SubscriptionCreate /
       SubscriptionUpdate and serializes responses through the envelope
       models below. Field names are camelCase on the wire.
Who:   Used by routes/subscriptions.py and SubscriptionService.

Validation rules (create):
    name          required, trimmed, non-empty
    cost          required, >= 0, at most 2 decimals and 10 integer digits
    billingCycle  required, monthly | yearly
    category      optional, one of the Category enum (default other)
    color         optional, #RRGGBB (default #6366f1)
    renewalDate   optional date (ISO datetimes become their UTC date)
    notes         optional, <= 500 characters

Update applies the same rules, every field optional. Sending null clears
`renewalDate` and `notes`; null is rejected for the other fields.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from subtrack.models.subscription import (
    COST_DECIMAL_PLACES,
    COST_MAX_DIGITS,
    DEFAULT_COLOR,
    HEX_COLOR_RE,
    NOTES_MAX_LENGTH,
    BillingCycle,
    Category,
)
from subtrack.schemas.common import CamelModel


# ── Shared field checks ───────────────────────────────────────────────────

def _check_name(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Subscription name is required")
    return cleaned


def _check_cost(value: Decimal) -> Decimal:
    if value < 0:
        raise ValueError("Cost must be a positive number")
    return value


def _check_color(value: str) -> str:
    if not HEX_COLOR_RE.match(value):
        raise ValueError("Please provide a valid hex color")
    return value


def _coerce_date(value):
    # Browsers usually send renewal dates as full ISO timestamps; the calendar
    # day is taken in UTC, and timestamps without an offset are read as UTC
    if isinstance(value, str) and "T" in value:
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SubscriptionCreate(CamelModel):
    """Body of POST /api/subscriptions."""
    name: str = Field(description="Display name, e.g. 'Netflix'")
    cost: Decimal = Field(
        max_digits=COST_MAX_DIGITS,
        decimal_places=COST_DECIMAL_PLACES,
        description="Amount charged per billing cycle",
    )
    billing_cycle: BillingCycle = Field(description="monthly or yearly")
    renewal_date: Optional[date] = Field(default=None, description="Next renewal date")
    category: Category = Field(default=Category.OTHER)
    color: str = Field(default=DEFAULT_COLOR, description="Hex color used by the UI")
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("cost")
    @classmethod
    def validate_cost(cls, v: Decimal) -> Decimal:
        return _check_cost(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return _check_color(v)

    @field_validator("renewal_date", mode="before")
    @classmethod
    def coerce_renewal_date(cls, v):
        return _coerce_date(v)


class SubscriptionUpdate(CamelModel):
    """Body of PUT /api/subscriptions/{id}; only the sent fields are applied."""
    name: Optional[str] = None
    cost: Optional[Decimal] = Field(
        default=None, max_digits=COST_MAX_DIGITS, decimal_places=COST_DECIMAL_PLACES
    )
    billing_cycle: Optional[BillingCycle] = None
    renewal_date: Optional[date] = None
    category: Optional[Category] = None
    color: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator("name", "cost", "billing_cycle", "category", "color", mode="before")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name.replace('_', ' ').capitalize()} cannot be null")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("cost")
    @classmethod
    def validate_cost(cls, v: Decimal) -> Decimal:
        return _check_cost(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return _check_color(v)

    @field_validator("renewal_date", mode="before")
    @classmethod
    def coerce_renewal_date(cls, v):
        return _coerce_date(v)

    def changes(self) -> Dict[str, object]:
        """Fields the client actually sent, keyed by model attribute name."""
        data = self.model_dump(exclude_unset=True)
        for key in ("billing_cycle", "category"):
            if key in data:
                data[key] = data[key].value
        return data


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SubscriptionResponse(CamelModel):
    """Full representation of a subscription, including the derived monthlyCost."""
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    cost: float
    billing_cycle: BillingCycle
    renewal_date: Optional[date] = None
    category: Category
    color: str
    is_active: bool
    notes: Optional[str] = None
    monthly_cost: float
    created_at: datetime
    updated_at: datetime


class CostTotals(CamelModel):
    monthly: float = Field(description="Sum of monthly costs, rounded to cents")
    yearly: float = Field(description="monthly * 12, rounded to cents")


class SubscriptionListResponse(CamelModel):
    """GET /api/subscriptions."""
    success: bool = True
    count: int
    subscriptions: List[SubscriptionResponse]
    totals: CostTotals


class SubscriptionDetailResponse(CamelModel):
    """GET /api/subscriptions/{id}."""
    success: bool = True
    subscription: SubscriptionResponse


class SubscriptionMutationResponse(CamelModel):
    """POST and PUT responses."""
    success: bool = True
    message: str
    subscription: SubscriptionResponse


class UpcomingRenewal(CamelModel):
    id: uuid.UUID
    name: str
    renewal_date: date
    cost: float
    billing_cycle: BillingCycle


class SubscriptionStats(CamelModel):
    total_subscriptions: int
    totals: CostTotals
    category_breakdown: Dict[str, float]
    upcoming_renewals: List[UpcomingRenewal]


class SubscriptionStatsResponse(CamelModel):
    """GET /api/subscriptions/stats/overview."""
    success: bool = True
    stats: SubscriptionStats
