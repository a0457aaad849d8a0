"""Unit tests for the order persistence service."""
import pytest
from datetime import date, datetime
from sqlalchemy import func, select, update

from app.core.errors import InvalidStatusError, InvalidStatusTransitionError, NotFoundError
from app.db.models import Order, OrderItem
from app.services.ordering.builder import OrderBuilder
from app.services.ordering.models import OrderCreate
from app.services.persistence.orders import OrderPersistenceService


@pytest.fixture
def order_service(test_db, stats_cache):
    return OrderPersistenceService(test_db, timezone="America/Bahia", stats_cache=stats_cache)


@pytest.fixture
async def place_order(test_db, catalog):
    """Create orders through the builder."""
    builder = OrderBuilder(test_db, timezone="America/Bahia")

    async def _place_order(quantity=1, customer="Maria Silva"):
        return await builder.create_order(
            OrderCreate.model_validate(
                {
                    "customerInfo": {"name": customer, "phone": "(71) 99999-1111"},
                    "items": [{"menuItem": catalog.tradicional, "quantity": quantity}],
                    "deliveryArea": catalog.barra,
                    "paymentMethod": "cash",
                }
            )
        )

    return _place_order


class TestOrderPersistence:
    """Test order persistence service."""

    @pytest.mark.asyncio
    async def test_get_order_by_id(self, order_service, place_order):
        """Test retrieving an order with its items."""
        created = await place_order(quantity=2)

        order = await order_service.get_order_by_id(created.id)

        assert order is not None
        assert order.order_number == created.order_number
        assert order.items[0].quantity == 2
        assert order.delivery_area.name == "Barra"

    @pytest.mark.asyncio
    async def test_get_missing_order(self, order_service):
        assert await order_service.get_order_by_id(9999) is None
        with pytest.raises(NotFoundError):
            await order_service.require_order(9999)

    @pytest.mark.asyncio
    async def test_list_orders_newest_first(self, order_service, place_order):
        for name in ["Maria Silva", "João Santos", "Ana Costa"]:
            await place_order(customer=name)

        orders, total, total_pages = await order_service.list_orders()

        assert total == 3
        assert total_pages == 1
        assert [order.order_number for order in orders] == ["PED0003", "PED0002", "PED0001"]

    @pytest.mark.asyncio
    async def test_list_orders_pagination(self, order_service, place_order):
        for _ in range(5):
            await place_order()

        orders, total, total_pages = await order_service.list_orders(page=2, limit=2)

        assert total == 5
        assert total_pages == 3
        assert [order.order_number for order in orders] == ["PED0003", "PED0002"]

    @pytest.mark.asyncio
    async def test_list_orders_by_status(self, order_service, place_order):
        """Test that the status filter returns matching orders only."""
        first = await place_order()
        await place_order()
        await order_service.set_status(first.id, "confirmed")

        orders, total, _ = await order_service.list_orders(status="confirmed")

        assert total == 1
        assert [order.id for order in orders] == [first.id]

    @pytest.mark.asyncio
    async def test_list_orders_by_local_day(self, order_service, place_order, test_db):
        """Test that the date filter uses the business timezone day."""
        late_evening = await place_order()
        next_morning = await place_order()
        # 2026-03-10 22:30 and 2026-03-11 08:00 in Salvador (UTC-3)
        await test_db.execute(
            update(Order).where(Order.id == late_evening.id).values(created_at=datetime(2026, 3, 11, 1, 30))
        )
        await test_db.execute(
            update(Order).where(Order.id == next_morning.id).values(created_at=datetime(2026, 3, 11, 11, 0))
        )
        await test_db.commit()

        orders, total, _ = await order_service.list_orders(day=date(2026, 3, 10))

        assert total == 1
        assert orders[0].id == late_evening.id

    @pytest.mark.asyncio
    async def test_list_orders_rejects_unknown_status(self, order_service):
        with pytest.raises(InvalidStatusError):
            await order_service.list_orders(status="lost")

    @pytest.mark.asyncio
    async def test_set_status(self, order_service, place_order):
        order = await place_order()

        updated = await order_service.set_status(order.id, "confirmed")

        assert updated.status == "confirmed"

    @pytest.mark.asyncio
    async def test_set_status_not_found_leaves_store_unchanged(self, order_service, place_order, test_db):
        order = await place_order()
        order_id = order.id

        with pytest.raises(NotFoundError):
            await order_service.set_status(9999, "confirmed")

        statuses = (await test_db.execute(select(Order.status))).scalars().all()
        assert statuses == ["pending"]
        assert (await order_service.require_order(order_id)).status == "pending"

    @pytest.mark.asyncio
    async def test_set_status_rejects_skipping_steps(self, order_service, place_order):
        order = await place_order()
        order_id = order.id

        with pytest.raises(InvalidStatusTransitionError):
            await order_service.set_status(order_id, "delivered")

        assert (await order_service.require_order(order_id)).status == "pending"

    @pytest.mark.asyncio
    async def test_set_status_invalidates_cache(self, order_service, place_order, stats_cache):
        order = await place_order()
        stats_cache.set("2026-03-10", "stale")

        await order_service.set_status(order.id, "confirmed")

        assert stats_cache.get("2026-03-10") is None

    @pytest.mark.asyncio
    async def test_cancel_order_keeps_record(self, order_service, place_order):
        """Test that cancelling flips the status and keeps the order and its number."""
        order = await place_order()

        cancelled = await order_service.cancel_order(order.id)

        assert cancelled.status == "cancelled"
        assert cancelled.order_number == order.order_number
        assert len(cancelled.items) == 1

    @pytest.mark.asyncio
    async def test_cancel_delivered_order_rejected(self, order_service, place_order):
        order = await place_order()
        for status in ["confirmed", "preparing", "ready", "delivered"]:
            await order_service.set_status(order.id, status)

        with pytest.raises(InvalidStatusTransitionError):
            await order_service.cancel_order(order.id)

    @pytest.mark.asyncio
    async def test_purge_order_removes_items(self, order_service, place_order, test_db):
        order = await place_order()

        await order_service.purge_order(order.id)

        assert await order_service.get_order_by_id(order.id) is None
        assert await test_db.scalar(select(func.count(OrderItem.id))) == 0

    @pytest.mark.asyncio
    async def test_purged_number_is_not_reissued(self, order_service, place_order):
        """Test that numbering continues after the newest order is purged."""
        await place_order()
        second = await place_order()
        await order_service.purge_order(second.id)

        third = await place_order()

        assert third.order_number == "PED0003"

    @pytest.mark.asyncio
    async def test_purging_oldest_order_keeps_sequence(self, order_service, place_order):
        """Test that PED0003 follows after the first of two orders is purged."""
        first = await place_order()
        await place_order()
        await order_service.purge_order(first.id)

        third = await place_order()

        assert third.order_number == "PED0003"

    @pytest.mark.asyncio
    async def test_purge_missing_order(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.purge_order(9999)
