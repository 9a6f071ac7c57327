"""
SubTrack Backend: Subscription Cost Aggregation
================================================

What:  Pure functions that turn a user's active subscriptions into totals,
       a per-category breakdown and an upcoming-renewals slice.
How:   Everything is computed in Decimal over an in-memory list; the only
       rounding happens in `round_money`, called when building responses.
Who:   Called by SubscriptionService for GET /api/subscriptions (totals)
       and GET /api/subscriptions/stats/overview (full overview).

Input objects only need the attributes `cost`, `billing_cycle`, `category`,
`renewal_date` (and `id`/`name` for renewals), so ORM rows and plain test
doubles are interchangeable.

Invariants:
    yearly == monthly * 12 exactly (before rounding)
    renewals: at most `limit` items, ascending by renewal_date,
              every renewal_date <= today + horizon
"""

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from subtrack.models.subscription import MONTHS_PER_YEAR, monthly_cost

CENT = Decimal("0.01")
ZERO = Decimal("0")


def subscription_monthly_cost(subscription) -> Decimal:
    return monthly_cost(subscription.cost, subscription.billing_cycle)


def compute_totals(subscriptions: Iterable) -> Tuple[Decimal, Decimal]:
    """
    Returns (monthly, yearly) totals, unrounded.

    An empty iterable gives (0, 0).
    """
    monthly = sum((subscription_monthly_cost(s) for s in subscriptions), ZERO)
    return monthly, monthly * MONTHS_PER_YEAR


def category_breakdown(subscriptions: Iterable) -> Dict[str, Decimal]:
    """Sums monthly cost per category; categories without subscriptions are absent."""
    breakdown: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for subscription in subscriptions:
        breakdown[subscription.category] += subscription_monthly_cost(subscription)
    return dict(breakdown)


def upcoming_renewals(
    subscriptions: Sequence,
    today: Optional[date] = None,
    days: int = 30,
    limit: int = 5,
) -> List:
    """
    Picks the subscriptions renewing soonest.

    Subscriptions without a renewal date are skipped. Dates already in the
    past are kept: they are still on or before the horizon.
    """
    if today is None:
        today = datetime.now(timezone.utc).date()
    horizon = today + timedelta(days=days)

    due = [
        s for s in subscriptions
        if s.renewal_date is not None and s.renewal_date <= horizon
    ]
    due.sort(key=lambda s: s.renewal_date)
    return due[:limit]


def round_money(value: Decimal) -> float:
    """Rounds to cents (half-up) for JSON output."""
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
