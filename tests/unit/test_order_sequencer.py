"""Unit tests for order number sequencing."""
import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.errors import DataIntegrityError
from app.db.database import atomic
from app.db.models import Base, Order, OrderCounter
from app.services.catalog.menu import MenuRepository
from app.services.ordering.builder import OrderBuilder
from app.services.ordering.models import OrderCreate
from app.services.ordering.sequencer import (
    OrderSequencer,
    format_order_number,
    next_order_number,
    parse_order_number,
)


def _order(order_number: str) -> Order:
    return Order(
        order_number=order_number,
        customer_name="Maria Silva",
        customer_phone="(71) 99999-1111",
        payment_method="pix",
        delivery_fee=0.0,
        subtotal=8.0,
        total=8.0,
    )


class TestOrderNumberFormat:
    """Test the pure order number helpers."""

    def test_first_order_number(self):
        assert next_order_number(None) == "PED0001"

    def test_increments_last_issued(self):
        assert next_order_number("PED0041") == "PED0042"

    def test_grows_past_four_digits(self):
        assert next_order_number("PED9999") == "PED10000"

    def test_format_pads_to_four_digits(self):
        assert format_order_number(7) == "PED0007"

    @pytest.mark.parametrize("malformed", ["ORD0001", "PED", "PED12a", "", "ped0001"])
    def test_malformed_number_raises(self, malformed):
        with pytest.raises(DataIntegrityError):
            parse_order_number(malformed)

    def test_malformed_last_issued_raises(self):
        with pytest.raises(DataIntegrityError):
            next_order_number("PEDIDO-1")


class TestOrderSequencer:
    """Test counter-backed allocation."""

    @pytest.mark.asyncio
    async def test_allocates_consecutive_numbers(self, test_db):
        """Test that the first allocation on an empty store is PED0001 and the rest follow."""
        sequencer = OrderSequencer(test_db)

        issued = []
        for _ in range(3):
            async with atomic(test_db, None):
                issued.append(await sequencer.allocate())

        assert issued == ["PED0001", "PED0002", "PED0003"]
        last_value = await test_db.scalar(
            select(OrderCounter.last_value).where(OrderCounter.name == OrderSequencer.COUNTER_NAME)
        )
        assert last_value == 3

    @pytest.mark.asyncio
    async def test_seeds_counter_from_existing_orders(self, test_db):
        """Test that a store with orders but no counter continues after the newest order."""
        test_db.add(_order("PED0007"))
        await test_db.commit()

        async with atomic(test_db, None):
            order_number = await OrderSequencer(test_db).allocate()

        assert order_number == "PED0008"

    @pytest.mark.asyncio
    async def test_rolled_back_allocation_is_reissued(self, test_db):
        """Test that a number is only consumed when its transaction commits."""
        sequencer = OrderSequencer(test_db)
        async with atomic(test_db, None):
            assert await sequencer.allocate() == "PED0001"

        with pytest.raises(RuntimeError):
            async with atomic(test_db, None):
                assert await sequencer.allocate() == "PED0002"
                raise RuntimeError("order insert failed")

        async with atomic(test_db, None):
            assert await sequencer.allocate() == "PED0002"

    @pytest.mark.asyncio
    async def test_malformed_stored_number_fails_without_writing(self, test_db):
        """Test that a malformed newest order number aborts allocation and writes nothing."""
        test_db.add(_order("LEGACY-12"))
        await test_db.commit()

        with pytest.raises(DataIntegrityError):
            async with atomic(test_db, None):
                await OrderSequencer(test_db).allocate()

        counters = await test_db.scalar(select(func.count()).select_from(OrderCounter))
        orders = await test_db.scalar(select(func.count(Order.id)))
        assert counters == 0
        assert orders == 1


@pytest.fixture
async def file_session_factory(tmp_path):
    """Sessions on separate connections to one SQLite file, so writers really contend."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


class TestConcurrentAllocation:
    """Test numbering when several orders are created at once."""

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_numbers(self, file_session_factory):
        async with file_session_factory() as session:
            item = await MenuRepository(session).create(
                {"name": "Acarajé Tradicional", "category": "acarajes", "price": 8.0}
            )
            menu_item_id = item.id

        async def place_order(index):
            async with file_session_factory() as session:
                order = await OrderBuilder(session, timeout=10).create_order(
                    OrderCreate.model_validate(
                        {
                            "customerInfo": {"name": f"Cliente {index}", "phone": "(71) 99999-0000"},
                            "items": [{"menuItem": menu_item_id}],
                            "paymentMethod": "pix",
                        }
                    )
                )
                return order.order_number

        numbers = await asyncio.gather(*(place_order(index) for index in range(8)))

        expected = [format_order_number(value) for value in range(1, 9)]
        assert sorted(numbers) == expected
        async with file_session_factory() as session:
            stored = (await session.execute(select(Order.order_number))).scalars().all()
        assert sorted(stored) == expected
