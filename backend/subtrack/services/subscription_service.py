"""
SubTrack Backend: Subscription Service
=======================================

What:  CRUD for subscriptions plus the statistics overview.
How:   Every query goes through `_owned_active()`, which filters by the
       caller's user id and `is_active = true`. Rows are mapped to
       response schemas here, with cost totals computed by services/stats.py.
Who:   Called by routes/subscriptions.py.

Ownership Rule:
    A subscription that does not exist, belongs to someone else, has been
    soft-deleted, or whose id is not a valid UUID all produce the same
    NotFoundError("Subscription"). Callers cannot probe for other users' ids.

Write Path (create / update / delete):
    1. Model-level @validates hooks run on each assigned attribute
    2. touch() refreshes updated_at
    3. flush() sends the statement; get_db_session commits after the route returns
"""

import logging
import uuid
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import Select, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subtrack.config import settings
from subtrack.exceptions import DatabaseError, NotFoundError
from subtrack.models.subscription import Subscription, utcnow
from subtrack.schemas.common import MessageResponse
from subtrack.schemas.subscription import (
    CostTotals,
    SubscriptionCreate,
    SubscriptionDetailResponse,
    SubscriptionListResponse,
    SubscriptionMutationResponse,
    SubscriptionResponse,
    SubscriptionStats,
    SubscriptionStatsResponse,
    SubscriptionUpdate,
    UpcomingRenewal,
)
from subtrack.services import stats

logger = logging.getLogger(__name__)

RESOURCE = "Subscription"


def _owned_active(user_id: UUID) -> Select:
    return select(Subscription).where(
        Subscription.user_id == user_id,
        Subscription.is_active.is_(True),
    )


def _parse_id(subscription_id: str) -> Optional[UUID]:
    try:
        return UUID(str(subscription_id))
    except ValueError:
        return None


def _totals(subscriptions: List[Subscription]) -> CostTotals:
    monthly, yearly = stats.compute_totals(subscriptions)
    return CostTotals(monthly=stats.round_money(monthly), yearly=stats.round_money(yearly))


class SubscriptionService:
    """
    Business logic for subscription records.

    Error Handling Strategy:
        NotFoundError and ValidationError propagate untouched.
        SQLAlchemy failures are logged with context and re-raised as
        DatabaseError, whose client message is generic.
    """

    async def _load_active(self, db: AsyncSession, user_id: UUID) -> List[Subscription]:
        result = await db.execute(
            _owned_active(user_id).order_by(desc(Subscription.created_at))
        )
        return list(result.scalars().all())

    async def _get_owned(
        self, db: AsyncSession, user_id: UUID, subscription_id: str
    ) -> Subscription:
        parsed = _parse_id(subscription_id)
        if parsed is None:
            raise NotFoundError(RESOURCE, resource_id=str(subscription_id))

        result = await db.execute(_owned_active(user_id).where(Subscription.id == parsed))
        subscription = result.scalar_one_or_none()
        if subscription is None:
            raise NotFoundError(RESOURCE, resource_id=str(subscription_id))
        return subscription

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_subscriptions(
        self, db: AsyncSession, user_id: UUID
    ) -> SubscriptionListResponse:
        """Active subscriptions of the caller, newest first, with cost totals."""
        try:
            subscriptions = await self._load_active(db, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error listing subscriptions: %s", str(e), exc_info=True)
            raise DatabaseError(context={"user_id": str(user_id)})

        return SubscriptionListResponse(
            count=len(subscriptions),
            subscriptions=[SubscriptionResponse.model_validate(s) for s in subscriptions],
            totals=_totals(subscriptions),
        )

    async def get_subscription(
        self, db: AsyncSession, user_id: UUID, subscription_id: str
    ) -> SubscriptionDetailResponse:
        try:
            subscription = await self._get_owned(db, user_id, subscription_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching subscription %s: %s", subscription_id, str(e))
            raise DatabaseError(context={"subscription_id": str(subscription_id)})

        return SubscriptionDetailResponse(
            subscription=SubscriptionResponse.model_validate(subscription)
        )

    async def get_stats(
        self, db: AsyncSession, user_id: UUID, today: Optional[date] = None
    ) -> SubscriptionStatsResponse:
        """
        Aggregated overview of the caller's active subscriptions.

        Returns:
            totalSubscriptions, monthly/yearly totals, monthly cost per
            category, and up to `upcoming_renewal_limit` renewals due within
            `upcoming_renewal_days`.
        """
        try:
            subscriptions = await self._load_active(db, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error computing stats: %s", str(e), exc_info=True)
            raise DatabaseError(context={"user_id": str(user_id)})

        breakdown = stats.category_breakdown(subscriptions)
        renewals = stats.upcoming_renewals(
            subscriptions,
            today=today,
            days=settings.upcoming_renewal_days,
            limit=settings.upcoming_renewal_limit,
        )

        return SubscriptionStatsResponse(
            stats=SubscriptionStats(
                total_subscriptions=len(subscriptions),
                totals=_totals(subscriptions),
                category_breakdown={
                    category: stats.round_money(amount)
                    for category, amount in breakdown.items()
                },
                upcoming_renewals=[UpcomingRenewal.model_validate(s) for s in renewals],
            )
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_subscription(
        self, db: AsyncSession, user_id: UUID, data: SubscriptionCreate
    ) -> SubscriptionMutationResponse:
        now = utcnow()
        subscription = Subscription(
            id=uuid.uuid4(),
            user_id=user_id,
            name=data.name,
            cost=data.cost,
            billing_cycle=data.billing_cycle.value,
            renewal_date=data.renewal_date,
            category=data.category.value,
            color=data.color,
            notes=data.notes,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        try:
            db.add(subscription)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating subscription: %s", str(e), exc_info=True)
            raise DatabaseError(context={"user_id": str(user_id)})

        logger.info("Subscription %s created for user %s", subscription.id, user_id)
        return SubscriptionMutationResponse(
            message="Subscription created successfully",
            subscription=SubscriptionResponse.model_validate(subscription),
        )

    async def update_subscription(
        self,
        db: AsyncSession,
        user_id: UUID,
        subscription_id: str,
        data: SubscriptionUpdate,
    ) -> SubscriptionMutationResponse:
        """Applies only the fields present in the request body."""
        try:
            subscription = await self._get_owned(db, user_id, subscription_id)

            for field, value in data.changes().items():
                setattr(subscription, field, value)
            subscription.touch()

            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating subscription %s: %s", subscription_id, str(e))
            raise DatabaseError(context={"subscription_id": str(subscription_id)})

        logger.info("Subscription %s updated", subscription.id)
        return SubscriptionMutationResponse(
            message="Subscription updated successfully",
            subscription=SubscriptionResponse.model_validate(subscription),
        )

    async def delete_subscription(
        self, db: AsyncSession, user_id: UUID, subscription_id: str
    ) -> MessageResponse:
        """Soft delete: the row stays, is_active flips to False."""
        try:
            subscription = await self._get_owned(db, user_id, subscription_id)
            subscription.is_active = False
            subscription.touch()
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting subscription %s: %s", subscription_id, str(e))
            raise DatabaseError(context={"subscription_id": str(subscription_id)})

        logger.info("Subscription %s soft-deleted", subscription.id)
        return MessageResponse(message="Subscription deleted successfully")


subscription_service = SubscriptionService()
