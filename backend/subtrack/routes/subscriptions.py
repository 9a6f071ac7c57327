"""
SubTrack Backend: Subscription Route Handlers
==============================================

What:  /api/subscriptions CRUD and GET /api/subscriptions/stats/overview.
How:   Resolves the caller via get_current_user_id, delegates to
       SubscriptionService, returns the `{success, ...}` envelope.
Who:   Called by the frontend dashboard and subscription forms.

Route order matters: /stats/overview is registered before /{subscription_id}.

Caching:
    Responses are per-user and change on every write, so every handler
    sends `Cache-Control: private, no-store`.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from subtrack.database import get_db_session
from subtrack.dependencies import get_current_user_id
from subtrack.schemas.common import ErrorResponse, MessageResponse
from subtrack.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionDetailResponse,
    SubscriptionListResponse,
    SubscriptionMutationResponse,
    SubscriptionStatsResponse,
    SubscriptionUpdate,
)
from subtrack.services.subscription_service import subscription_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["Subscriptions"])

NO_STORE = "private, no-store"

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}
_NOT_FOUND = {404: {"description": "Subscription not found", "model": ErrorResponse}}
_INVALID = {400: {"description": "Validation failed", "model": ErrorResponse}}


@router.get(
    "",
    response_model=SubscriptionListResponse,
    responses=_AUTH_ERRORS,
    summary="List active subscriptions with cost totals",
)
async def list_subscriptions(
    response: Response,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionListResponse:
    """
    Active subscriptions of the caller, newest first.

    `totals.monthly` sums each subscription's monthly cost (yearly plans
    count cost / 12); `totals.yearly` is monthly * 12.
    """
    result = await subscription_service.list_subscriptions(db=db, user_id=user_id)
    response.headers["Cache-Control"] = NO_STORE
    return result


@router.get(
    "/stats/overview",
    response_model=SubscriptionStatsResponse,
    responses=_AUTH_ERRORS,
    summary="Subscription statistics and upcoming renewals",
)
async def get_stats_overview(
    response: Response,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionStatsResponse:
    result = await subscription_service.get_stats(db=db, user_id=user_id)
    response.headers["Cache-Control"] = NO_STORE
    return result


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionDetailResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Get a single subscription",
)
async def get_subscription(
    subscription_id: str,
    response: Response,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionDetailResponse:
    """
    Args:
        subscription_id: kept as a plain string; malformed ids get the same
                         404 as unknown ones instead of a 422.
    """
    result = await subscription_service.get_subscription(
        db=db, user_id=user_id, subscription_id=subscription_id
    )
    response.headers["Cache-Control"] = NO_STORE
    return result


@router.post(
    "",
    response_model=SubscriptionMutationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_AUTH_ERRORS, **_INVALID},
    summary="Create a subscription",
)
async def create_subscription(
    payload: SubscriptionCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionMutationResponse:
    return await subscription_service.create_subscription(db=db, user_id=user_id, data=payload)


@router.put(
    "/{subscription_id}",
    response_model=SubscriptionMutationResponse,
    responses={**_AUTH_ERRORS, **_INVALID, **_NOT_FOUND},
    summary="Partially update a subscription",
)
async def update_subscription(
    subscription_id: str,
    payload: SubscriptionUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionMutationResponse:
    return await subscription_service.update_subscription(
        db=db, user_id=user_id, subscription_id=subscription_id, data=payload
    )


@router.delete(
    "/{subscription_id}",
    response_model=MessageResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Soft-delete a subscription",
)
async def delete_subscription(
    subscription_id: str,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await subscription_service.delete_subscription(
        db=db, user_id=user_id, subscription_id=subscription_id
    )
