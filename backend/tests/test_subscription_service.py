"""
SubTrack Backend: Subscription Service Unit Tests
==================================================

What:  Tests for SubscriptionService business logic.
How:   Uses mock DB sessions (no real DB); query results are MagicMocks
       returning transient Subscription instances.

What we test:
    ✅ Lookups that find nothing raise NotFoundError (also for malformed ids)
    ✅ Listing an empty set returns zero totals
    ✅ Create builds an active row and flushes it
    ✅ Update applies only sent fields and refreshes updated_at
    ✅ Delete flips is_active and refreshes updated_at
    ✅ Driver errors are wrapped in DatabaseError
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from subtrack.exceptions import DatabaseError, NotFoundError
from subtrack.models.subscription import Subscription
from subtrack.schemas.subscription import SubscriptionCreate, SubscriptionUpdate
from subtrack.services.subscription_service import SubscriptionService


def _result_with_one(row):
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    return result


def _result_with_all(rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


class TestSubscriptionServiceGet:
    """Tests for single-subscription retrieval."""

    def setup_method(self):
        self.service = SubscriptionService()

    @pytest.mark.asyncio
    async def test_get_found(self, mock_db_session, sample_subscription_data):
        sub = Subscription(**sample_subscription_data)
        mock_db_session.execute.return_value = _result_with_one(sub)

        result = await self.service.get_subscription(
            mock_db_session, sub.user_id, str(sub.id)
        )

        assert result.success is True
        assert result.subscription.id == sub.id
        assert result.subscription.monthly_cost == 15.99

    @pytest.mark.asyncio
    async def test_get_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _result_with_one(None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_subscription(mock_db_session, uuid4(), str(uuid4()))

        assert exc_info.value.message == "Subscription not found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found_without_query(self, mock_db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_subscription(mock_db_session, uuid4(), "not-a-uuid")

        assert exc_info.value.message == "Subscription not found"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_database_error_is_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await self.service.get_subscription(mock_db_session, uuid4(), str(uuid4()))


class TestSubscriptionServiceList:

    def setup_method(self):
        self.service = SubscriptionService()

    @pytest.mark.asyncio
    async def test_list_empty(self, mock_db_session):
        mock_db_session.execute.return_value = _result_with_all([])

        result = await self.service.list_subscriptions(mock_db_session, uuid4())

        assert result.count == 0
        assert result.subscriptions == []
        assert result.totals.monthly == 0
        assert result.totals.yearly == 0

    @pytest.mark.asyncio
    async def test_list_totals(self, mock_db_session, sample_subscription_data):
        monthly = Subscription(**{**sample_subscription_data, "id": uuid4(), "cost": Decimal("12")})
        yearly = Subscription(**{
            **sample_subscription_data,
            "id": uuid4(),
            "cost": Decimal("120"),
            "billing_cycle": "yearly",
        })
        mock_db_session.execute.return_value = _result_with_all([monthly, yearly])

        result = await self.service.list_subscriptions(mock_db_session, monthly.user_id)

        assert result.count == 2
        assert result.totals.monthly == 22.0
        assert result.totals.yearly == 264.0


class TestSubscriptionServiceStats:

    def setup_method(self):
        self.service = SubscriptionService()

    @pytest.mark.asyncio
    async def test_stats_overview(self, mock_db_session, sample_subscription_data):
        netflix = Subscription(**{**sample_subscription_data, "id": uuid4()})
        storage = Subscription(**{
            **sample_subscription_data,
            "id": uuid4(),
            "name": "Cloud Drive",
            "cost": Decimal("100"),
            "billing_cycle": "yearly",
            "category": "cloud",
            "renewal_date": date(2024, 1, 20),
        })
        mock_db_session.execute.return_value = _result_with_all([netflix, storage])

        result = await self.service.get_stats(
            mock_db_session, netflix.user_id, today=date(2024, 1, 15)
        )

        overview = result.stats
        assert overview.total_subscriptions == 2
        assert overview.category_breakdown == {"entertainment": 15.99, "cloud": 8.33}
        assert [r.name for r in overview.upcoming_renewals] == ["Cloud Drive", "Netflix"]


class TestSubscriptionServiceWrites:

    def setup_method(self):
        self.service = SubscriptionService()

    @pytest.mark.asyncio
    async def test_create(self, mock_db_session):
        user_id = uuid4()
        data = SubscriptionCreate(name="Gym", cost=Decimal("30"), billingCycle="monthly")

        result = await self.service.create_subscription(mock_db_session, user_id, data)

        mock_db_session.add.assert_called_once()
        mock_db_session.flush.assert_awaited_once()
        created = mock_db_session.add.call_args.args[0]
        assert created.user_id == user_id
        assert created.is_active is True
        assert created.category == "other"
        assert created.color == "#6366f1"
        assert result.message == "Subscription created successfully"
        assert result.subscription.created_at == result.subscription.updated_at

    @pytest.mark.asyncio
    async def test_update_applies_only_sent_fields(self, mock_db_session, sample_subscription_data):
        sub = Subscription(**sample_subscription_data)
        before = sub.updated_at
        mock_db_session.execute.return_value = _result_with_one(sub)

        result = await self.service.update_subscription(
            mock_db_session,
            sub.user_id,
            str(sub.id),
            SubscriptionUpdate(cost=Decimal("17.99")),
        )

        assert sub.cost == Decimal("17.99")
        assert sub.name == "Netflix"
        assert sub.renewal_date == date(2024, 2, 1)
        assert sub.updated_at > before
        assert result.message == "Subscription updated successfully"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_can_clear_notes(self, mock_db_session, sample_subscription_data):
        sub = Subscription(**{**sample_subscription_data, "notes": "family plan"})
        mock_db_session.execute.return_value = _result_with_one(sub)

        await self.service.update_subscription(
            mock_db_session, sub.user_id, str(sub.id), SubscriptionUpdate(notes=None)
        )

        assert sub.notes is None

    @pytest.mark.asyncio
    async def test_update_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _result_with_one(None)

        with pytest.raises(NotFoundError):
            await self.service.update_subscription(
                mock_db_session, uuid4(), str(uuid4()), SubscriptionUpdate(name="x")
            )
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, mock_db_session, sample_subscription_data):
        sub = Subscription(**sample_subscription_data)
        before = sub.updated_at
        mock_db_session.execute.return_value = _result_with_one(sub)
        mock_db_session.delete = AsyncMock()

        result = await self.service.delete_subscription(mock_db_session, sub.user_id, str(sub.id))

        assert sub.is_active is False
        assert sub.updated_at > before
        assert result.message == "Subscription deleted successfully"
        mock_db_session.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_flush_failure(self, mock_db_session, sample_subscription_data):
        sub = Subscription(**sample_subscription_data)
        mock_db_session.execute.return_value = _result_with_one(sub)
        mock_db_session.flush.side_effect = OperationalError("UPDATE", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await self.service.delete_subscription(mock_db_session, sub.user_id, str(sub.id))
